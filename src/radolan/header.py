"""
RADOLAN header parsing.

This module splits the ASCII header that precedes every composite into its
fields and parses them into a `Header`. The header starts with a fixed-position
prefix (product, capture time, WMO number) followed by delimiter-free
key/value fields and ends with an ETX (0x03) byte:

    PG262115100000616BY22205LV 6  1.0 19.0 28.0 37.0 46.0 55.0CS0MX 0MS ...\x03
"""

import re
import warnings
from dataclasses import dataclass, field
from typing import Any, ClassVar

import numpy as np
import pandas as pd

from radolan.catalog import DIMENSIONS, INTERVAL_MULTIPLIERS, Unit, lookup_unit
from radolan.errors import (
    BadCaptureTimeError,
    BadDataLengthError,
    BadDimensionsError,
    BadForecastOffsetError,
    BadFormatVersionError,
    BadIntervalError,
    BadLevelFormatError,
    BadPrecisionError,
    HeaderTooShortError,
    MissingDimensionsError,
    UnknownUnitWarning,
)

_INTEGER = re.compile(r"\s*([+-]?\d+)")
_DIMENSIONS = re.compile(r"\s*(\d+)x\s*(\d+)")
_DECIMAL = re.compile(r"\s*[+-]?(\d+\.?\d*|\.\d+)")


def split_header(header: str) -> dict[str, str]:
    """
    Split header text into its fields.

    A key is a run of uppercase letters and its value is everything up to the
    next key. There is no delimiter between keys and values, e.g.
    ``"BY22205LV 6  1.0"`` splits into ``{"BY": "22205", "LV": " 6  1.0"}``.

    Parameters
    ----------
    header : str
        Header text without the fixed prefix and terminator.

    Returns
    -------
    dict[str, str]
        Field values by key. Later duplicates overwrite earlier ones. Empty if
        the text does not start with a key.
    """
    fields = {}
    begin_key = end_key = begin_value = end_value = 0
    dispatch = False  # value span open

    for i, c in enumerate(header):
        if c.isupper():
            if dispatch:
                fields[header[begin_key:end_key]] = header[begin_value:end_value]
                begin_key = i
                dispatch = False
            end_key = i + 1
        else:
            if i == 0:
                return {}  # no key prefixing value
            if not dispatch:
                begin_value = i
                dispatch = True
            end_value = i + 1

    if end_key > begin_key:
        fields[header[begin_key:end_key]] = (
            header[begin_value:end_value] if dispatch else ""
        )

    return fields


def scan_int(value: str) -> int:
    """
    Read a leading integer from a field value.

    Leading whitespace and a sign are accepted, trailing characters are ignored.
    """
    match = _INTEGER.match(value)
    if match is None:
        raise ValueError(f"invalid integer: {value!r}")
    return int(match.group(1))


def parse_dimensions(fields: dict[str, str]) -> tuple[int, int] | None:
    """
    Parse the plane dimensions from the `GP` or `BG` field.

    Parameters
    ----------
    fields : dict[str, str]
        Tokenized header fields.

    Returns
    -------
    tuple[int, int] or None
        (nx, ny) if a dimension field is present, otherwise None.

    Raises
    ------
    BadDimensionsError
        If the field is present but cannot be parsed.
    """
    if "GP" in fields:  # "GP 450x 450" or "GP 1500x1400" (rows x cols)
        dims = fields["GP"]
    elif "BG" in fields:  # "BG460460"
        bg = fields["BG"]
        half = len(bg) // 2
        dims = bg[:half] + "x" + bg[half:]
    else:
        return None

    match = _DIMENSIONS.match(dims)
    if match is None:
        raise BadDimensionsError(f"could not parse dimensions: {dims!r}")

    ny, nx = int(match.group(1)), int(match.group(2))
    if nx == 0 or ny == 0:
        raise BadDimensionsError(f"empty dimensions: {dims!r}")
    return nx, ny


def parse_level(lv: str) -> np.ndarray:
    """
    Parse the level table of run-length encoded products.

    The field holds a two character count followed by `count` values of five
    characters each, e.g. ``" 6  1.0 19.0 28.0 37.0 46.0 55.0"``.

    Parameters
    ----------
    lv : str
        Value of the `LV` field.

    Returns
    -------
    np.ndarray
        Level values (float32) indexed by level id - 1.

    Raises
    ------
    BadLevelFormatError
        If the count or a value cannot be parsed or the field length does not
        match the count.
    """
    try:
        count = scan_int(lv[:2])
    except ValueError as err:
        raise BadLevelFormatError(f"invalid level count: {lv!r}") from err

    if count < 0 or len(lv) != count * 5 + 2:
        raise BadLevelFormatError(f"invalid level format: {lv!r}")

    level = np.empty(count, dtype=np.float32)
    for i in range(count):
        chunk = lv[2 + i * 5 : 7 + i * 5]
        if _DECIMAL.fullmatch(chunk) is None:
            raise BadLevelFormatError(f"invalid level value: {chunk!r}")
        level[i] = float(chunk)

    return level


@dataclass
class Header:
    """
    Parsed composite header.

    Parameters
    ----------
    product : str
        Two letter product label, e.g. "PG" or "RW".
    capture_time : pd.Timestamp
        Time of source data capture (UTC).
    forecast_time : pd.Timestamp
        Time the data is valid for. Equals `capture_time` for analyses.
    interval : pd.Timedelta
        Duration until the next forecast or accumulation interval.
    data_length : int
        Length of the binary payload in bytes.
    plain_nx : int
        Width of the plane as stored on disk.
    plain_ny : int
        Height of the plane as stored on disk.
    nx : int
        Width of one data layer.
    ny : int
        Height of one data layer.
    rx : float
        Horizontal resolution in km/px, NaN until calibrated unless cataloged.
    ry : float
        Vertical resolution in km/px, NaN until calibrated unless cataloged.
    precision : int
        Decimal exponent applied to each raw value (value * 10**precision).
    format_version : int
        Format version from the `VS` field, 0 if absent.
    unit : Unit
        Physical unit of the product.
    n_bytes : int
        Length of the header in bytes, terminator included.
    level : np.ndarray or None
        Level table of run-length encoded products, None otherwise.
    """

    product: str
    capture_time: pd.Timestamp
    forecast_time: pd.Timestamp
    interval: pd.Timedelta
    data_length: int
    plain_nx: int
    plain_ny: int
    nx: int
    ny: int
    rx: float
    ry: float
    precision: int
    format_version: int
    unit: Unit
    n_bytes: int
    level: np.ndarray | None = field(default=None, repr=False, compare=False)

    TERMINATOR: ClassVar[bytes] = b"\x03"
    MIN_BYTES: ClassVar[int] = 22
    PREFIX_LENGTH: ClassVar[int] = 17  # product, ddhhmm, WMO number, MMYY
    TIME_FORMAT: ClassVar[str] = "%d%H%M%m%y"

    @classmethod
    def from_bytes(cls, data: bytes) -> "Header":
        """
        Parse header from raw bytes.

        Parameters
        ----------
        data : bytes
            Header bytes including the terminating ETX byte.

        Returns
        -------
        Header
            The parsed header.
        """
        if (
            data is None
            or len(data) < cls.MIN_BYTES
            or not data.endswith(cls.TERMINATOR)
        ):
            raise HeaderTooShortError("header corrupted: too short")

        # latin-1 keeps character positions equal to byte positions
        header = data.decode("latin-1")
        fields = split_header(header[cls.PREFIX_LENGTH : -1])

        product = header[:2]

        # Parse DataLength - Example: "BY 405160"
        try:
            data_length = scan_int(fields["BY"]) - len(data)
        except (KeyError, ValueError) as err:
            raise BadDataLengthError(f"could not parse data length: {err}") from err

        # Parse CaptureTime - Example: "PG262115100000616" (cut WMO number)
        date = header[2:8] + header[13:17]
        try:
            capture_time = pd.to_datetime(date, format=cls.TIME_FORMAT)
        except ValueError as err:
            raise BadCaptureTimeError(
                f"could not parse capture time: {date!r}"
            ) from err

        # Parse ForecastTime - Example: "VV 005"
        forecast_time = capture_time
        if "VV" in fields:
            try:
                minutes = scan_int(fields["VV"])
            except ValueError as err:
                raise BadForecastOffsetError(
                    f"could not parse forecast time: {err}"
                ) from err
            forecast_time = capture_time + pd.Timedelta(minutes=minutes)

        # Parse Interval - Example: "INT   5" or "INT1008"
        interval = pd.Timedelta(0)
        if "INT" in fields:
            try:
                minutes = scan_int(fields["INT"])
            except ValueError as err:
                raise BadIntervalError(f"could not parse interval: {err}") from err
            minutes *= INTERVAL_MULTIPLIERS.get(product, 1)
            interval = pd.Timedelta(minutes=minutes)

        # Parse Dimensions - local picture products fall back to the catalog
        dims = parse_dimensions(fields)
        if dims is not None:
            plain_nx, plain_ny = nx, ny = dims
            rx = ry = np.nan
        elif product in DIMENSIONS:
            spec = DIMENSIONS[product]
            plain_nx, plain_ny = spec.plain_nx, spec.plain_ny
            nx, ny = spec.nx, spec.ny
            rx, ry = float(spec.rx), float(spec.ry)
        else:
            raise MissingDimensionsError(
                f"no dimension information available for product {product!r}"
            )

        # Parse Version - Example: "VS 3"
        format_version = 0
        if "VS" in fields:
            try:
                format_version = scan_int(fields["VS"])
            except ValueError as err:
                raise BadFormatVersionError(
                    f"could not parse format version: {err}"
                ) from err

        # Parse Precision - Example: "PR E-01" or "PR E+00"
        precision = 0
        if "E" in fields:
            try:
                precision = scan_int(fields["E"])
            except ValueError as err:
                raise BadPrecisionError(f"could not parse precision: {err}") from err

        # Parse Level - Example: "LV 6  1.0 19.0 28.0 37.0 46.0 55.0"
        level = None
        if "LV" in fields:
            level = parse_level(fields["LV"])

        unit = lookup_unit(product)
        if unit is Unit.UNKNOWN:
            warnings.warn(
                f"unknown unit for product {product!r}", UnknownUnitWarning, stacklevel=2
            )

        return cls(
            product=product,
            capture_time=capture_time,
            forecast_time=forecast_time,
            interval=interval,
            data_length=data_length,
            plain_nx=plain_nx,
            plain_ny=plain_ny,
            nx=nx,
            ny=ny,
            rx=rx,
            ry=ry,
            precision=precision,
            format_version=format_version,
            unit=unit,
            n_bytes=len(data),
            level=level,
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert header to dictionary.

        Returns
        -------
        dict[str, Any]
            Dictionary representation of the header fields.
        """
        return {
            "product": self.product,
            "capture_time": self.capture_time,
            "forecast_time": self.forecast_time,
            "interval": self.interval,
            "data_length": self.data_length,
            "plain_nx": self.plain_nx,
            "plain_ny": self.plain_ny,
            "nx": self.nx,
            "ny": self.ny,
            "precision": self.precision,
            "format_version": self.format_version,
            "unit": self.unit.symbol,
        }


def read_header(data: bytes) -> tuple[Header, bytes]:
    """
    Split raw composite bytes into the parsed header and the binary payload.

    Parameters
    ----------
    data : bytes
        Complete composite (header and payload).

    Returns
    -------
    tuple[Header, bytes]
        The parsed header and the payload following the terminator.
    """
    if data is None:
        raise HeaderTooShortError("header corrupted: too short")

    end = data.find(Header.TERMINATOR)
    if end == -1:
        raise HeaderTooShortError("header corrupted: too short")

    header = Header.from_bytes(data[: end + 1])
    return header, data[end + 1 :]
