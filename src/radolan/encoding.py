"""
Binary payload decoding.

The payload of a composite uses one of three encodings, identified purely from
header facts:

- run-length: lines of offset/run bytes referencing the level table
- packed: two bytes per value, 12-bit magnitude plus no-data and sign flags
- single-byte: one byte per value, 250 marking no data

Each codec decodes the payload into a (ny, nx) float32 plane with NaN marking
missing data.
"""

from enum import Enum
from typing import ClassVar, Sequence

import numpy as np

from radolan.errors import (
    DestinationOverflowError,
    InvalidOffsetError,
    MissingDimensionsError,
    TruncatedPayloadError,
    UnknownEncodingError,
)


class Encoding(Enum):
    RUN_LENGTH = "runlength"
    PACKED = "packed"
    SINGLE_BYTE = "singlebyte"
    UNKNOWN = "unknown"


def classify(
    data_length: int, nx: int, ny: int, level: Sequence[float] | None = None
) -> Encoding:
    """
    Identify the payload encoding from header characteristics.

    Parameters
    ----------
    data_length : int
        Payload length in bytes as declared by the header.
    nx : int
        Width of the plane as stored on disk.
    ny : int
        Height of the plane as stored on disk.
    level : Sequence[float], optional
        Level table, present only for run-length encoded products.

    Returns
    -------
    Encoding
        The identified encoding, `Encoding.UNKNOWN` if nothing matches.
    """
    values = nx * ny

    if level is not None:
        return Encoding.RUN_LENGTH
    if data_length == values * 2:
        return Encoding.PACKED
    if data_length == values:
        return Encoding.SINGLE_BYTE

    return Encoding.UNKNOWN


class RunLengthCodec:
    """
    Decoder for run-length encoded products (e.g. PG).

    Every line ends with a newline byte. The first byte of a line is the line
    number. It is followed by offset bytes (value - 16 empty positions, 255
    announces another offset byte) and then run bytes [XXXX|YYYY] which repeat
    level id YYYY XXXX times. Level id 0 and ids beyond the level table are
    no data.

    Lines are written in on-disk order.
    """

    LINE_END: ClassVar[bytes] = b"\n"
    BOTTOM_UP: ClassVar[bool] = False

    def __init__(self, level: Sequence[float]):
        self.level = np.asarray(level, dtype=np.float32)

    def lookup(self, level_id: int) -> float:
        if level_id == 0:
            return np.nan
        if level_id - 1 >= len(self.level):  # border markings
            return np.nan
        return self.level[level_id - 1]

    def decode_line(self, line: bytes, dst: np.ndarray) -> None:
        """
        Decode a single line (without newline) into `dst`.

        Positions not covered by a run are left as NaN.
        """
        dst[:] = np.nan

        pos = 0
        offset = True
        for i, value in enumerate(line):
            if i == 0:  # line number
                continue

            if offset:
                if value < 16:
                    raise InvalidOffsetError(f"invalid offset value: {value}")
                pos += value - 16
                offset = value == 255
                continue

            repeat = value >> 4
            if repeat == 0:
                continue
            end = pos + repeat
            if end > len(dst):
                raise DestinationOverflowError(
                    f"destination size exceeded: {end} > {len(dst)}"
                )
            dst[pos:end] = self.lookup(value & 0x0F)
            pos = end

    def decode(self, payload: bytes, nx: int, ny: int) -> np.ndarray:
        plane = np.full((ny, nx), np.nan, dtype=np.float32)

        cursor = 0
        for row in range(ny):
            end = payload.find(self.LINE_END, cursor)
            if end == -1:
                raise TruncatedPayloadError(f"line {row} of {ny} is incomplete")

            dst = plane[ny - 1 - row] if self.BOTTOM_UP else plane[row]
            self.decode_line(payload[cursor:end], dst)
            cursor = end + 1

        return plane


class PackedCodec:
    """
    Decoder for 16-bit packed products (e.g. RW, SF, FZ).

    Each value is a (low, high) byte tuple: the 12-bit magnitude is
    low | (high & 0x0F) << 8, bit 5 of the high byte flags no data and bit 6
    flags a negative value.

    Lines are stored south to north and are written vertically flipped.
    """

    NO_DATA: ClassVar[int] = 1 << 5
    NEGATIVE: ClassVar[int] = 1 << 6
    BOTTOM_UP: ClassVar[bool] = True

    def __init__(self, precision: int = 0):
        self.precision = precision

    def decode_line(self, line: bytes) -> np.ndarray:
        tuples = np.frombuffer(line, dtype=np.uint8).reshape(-1, 2).astype(np.int32)
        low, high = tuples[:, 0], tuples[:, 1]

        value = ((high & 0x0F) << 8) | low
        value = np.where(high & self.NEGATIVE, -value, value)

        # set decimal point
        values = (value * 10.0**self.precision).astype(np.float32)
        values[(high & self.NO_DATA) != 0] = np.nan
        return values

    def decode(self, payload: bytes, nx: int, ny: int) -> np.ndarray:
        plane = np.empty((ny, nx), dtype=np.float32)

        length = nx * 2
        for row in range(ny):
            line = payload[row * length : (row + 1) * length]
            if len(line) != length:
                raise TruncatedPayloadError(f"line {row} of {ny} is incomplete")

            dst = ny - 1 - row if self.BOTTOM_UP else row
            plane[dst] = self.decode_line(line)

        return plane


class SingleByteCodec:
    """
    Decoder for single-byte products (e.g. RX, EX).

    Each byte is one raw value, 250 marks no data.

    Lines are stored south to north and are written vertically flipped.
    """

    NO_DATA: ClassVar[int] = 250
    BOTTOM_UP: ClassVar[bool] = True

    def __init__(self, precision: int = 0):
        self.precision = precision

    def decode_line(self, line: bytes) -> np.ndarray:
        raw = np.frombuffer(line, dtype=np.uint8)

        values = (raw * 10.0**self.precision).astype(np.float32)
        values[raw == self.NO_DATA] = np.nan
        return values

    def decode(self, payload: bytes, nx: int, ny: int) -> np.ndarray:
        plane = np.empty((ny, nx), dtype=np.float32)

        for row in range(ny):
            line = payload[row * nx : (row + 1) * nx]
            if len(line) != nx:
                raise TruncatedPayloadError(f"line {row} of {ny} is incomplete")

            dst = ny - 1 - row if self.BOTTOM_UP else row
            plane[dst] = self.decode_line(line)

        return plane


def decode_plane(
    encoding: Encoding,
    payload: bytes,
    nx: int,
    ny: int,
    precision: int = 0,
    level: Sequence[float] | None = None,
) -> np.ndarray:
    """
    Decode the payload with the codec matching `encoding`.

    Parameters
    ----------
    encoding : Encoding
        Encoding identified by `classify`.
    payload : bytes
        Binary section following the header.
    nx : int
        Width of the plane as stored on disk.
    ny : int
        Height of the plane as stored on disk.
    precision : int, optional
        Decimal exponent applied to packed and single-byte values.
    level : Sequence[float], optional
        Level table for run-length encoded payloads.

    Returns
    -------
    np.ndarray
        Decoded (ny, nx) float32 plane.
    """
    if nx <= 0 or ny <= 0:
        raise MissingDimensionsError("parsed header data required")

    if encoding is Encoding.RUN_LENGTH:
        codec = RunLengthCodec(level if level is not None else [])
    elif encoding is Encoding.PACKED:
        codec = PackedCodec(precision)
    elif encoding is Encoding.SINGLE_BYTE:
        codec = SingleByteCodec(precision)
    else:
        raise UnknownEncodingError("unknown encoding")

    return codec.decode(payload, nx, ny)
