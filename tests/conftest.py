"""Shared helpers for building synthetic composites."""

import pytest


def build_composite(
    product: str,
    fields: str = "",
    payload: bytes = b"",
    ddhhmm: str = "262115",
    mmyy: str = "0616",
    data_length: int | None = None,
) -> bytes:
    """
    Assemble raw composite bytes with a consistent BY field.

    `fields` follows the BY field and must start with a key. `data_length`
    overrides the payload length declared in the header.
    """
    head = f"{product}{ddhhmm}10000{mmyy}"
    tail = f"{fields}\x03"
    declared = len(payload) if data_length is None else data_length

    # BY counts header and payload, its own digits included
    size = len(head) + len("BY") + len(tail) + declared
    digits = len(str(size))
    while len(str(size + digits)) != digits:
        digits += 1
    total = size + digits

    return (head + f"BY{total}" + tail).encode("latin-1") + payload


@pytest.fixture
def make_composite():
    return build_composite
