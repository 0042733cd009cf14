"""
Static product tables for RADOLAN composites.

Local picture products do not state their dimensions in the header, so they
are dimensioned from `DIMENSIONS`. The physical unit of every product is
looked up in `PRODUCTS` and is never inferred from the payload.
"""

from dataclasses import dataclass
from enum import Enum


class Unit(Enum):
    """Physical unit of the decoded values."""

    UNKNOWN = ""
    MM = "mm"
    DBZ = "dBZ"
    KM = "km"
    MPS = "m/s"

    @property
    def symbol(self) -> str:
        return self.value


@dataclass(frozen=True)
class ProductSpec:
    """
    Dimensions of a product that omits them from its header.

    Parameters
    ----------
    plain_nx : int
        Width of the plane as stored on disk.
    plain_ny : int
        Height of the plane as stored on disk.
    nx : int
        Width of one data layer.
    ny : int
        Height of one data layer.
    rx : float
        Horizontal resolution in km/px.
    ry : float
        Vertical resolution in km/px.
    """

    plain_nx: int
    plain_ny: int
    nx: int
    ny: int
    rx: float
    ry: float


# local picture products (single radar sweeps)
DIMENSIONS: dict[str, ProductSpec] = {
    "OL": ProductSpec(200, 224, 200, 200, 2, 2),  # reflectivity (no clutter detection)
    "OX": ProductSpec(200, 224, 200, 200, 1, 1),  # reflectivity (no clutter detection)
    "PD": ProductSpec(200, 224, 200, 200, 1, 1),  # radial velocity
    "PE": ProductSpec(200, 224, 200, 200, 2, 2),  # echotop
    "PF": ProductSpec(200, 224, 200, 200, 1, 1),  # reflectivity (15 classes)
    "PH": ProductSpec(200, 224, 200, 200, 1, 1),  # accumulated rainfall
    "PL": ProductSpec(200, 224, 200, 200, 2, 2),  # reflectivity
    "PM": ProductSpec(200, 224, 200, 200, 2, 2),  # max. reflectivity
    "PR": ProductSpec(200, 224, 200, 200, 1, 1),  # radial velocity
    "PU": ProductSpec(200, 2400, 200, 200, 1, 1),  # 3D radial velocity
    "PV": ProductSpec(200, 224, 200, 200, 1, 1),  # radial velocity
    "PX": ProductSpec(200, 224, 200, 200, 1, 1),  # reflectivity (6 classes)
    "PY": ProductSpec(200, 224, 200, 200, 1, 1),  # accumulated rainfall
    "PZ": ProductSpec(200, 2400, 200, 200, 2, 2),  # 3D reflectivity CAPPI
}

# product -> (description, unit)
PRODUCTS: dict[str, tuple[str, Unit]] = {
    # composites
    "EX": ("Reflectivity, middle-European composite", Unit.DBZ),
    "FX": ("Reflectivity forecast, national composite", Unit.DBZ),
    "FZ": ("Reflectivity forecast, national composite (half resolution)", Unit.DBZ),
    "PG": ("Reflectivity, national picture composite", Unit.DBZ),
    "RX": ("Reflectivity, national composite", Unit.DBZ),
    "WN": ("Reflectivity forecast, DE1200 composite", Unit.DBZ),
    "WX": ("Reflectivity, extended national composite", Unit.DBZ),
    "EB": ("Precipitation (1-h), middle-European composite", Unit.MM),
    "EW": ("Precipitation (1-h), middle-European composite", Unit.MM),
    "EY": ("Precipitation (5-min), middle-European composite", Unit.MM),
    "RH": ("Precipitation (1-h)", Unit.MM),
    "RQ": ("Precipitation forecast (1-h)", Unit.MM),
    "RW": ("Precipitation (1-h), adjusted", Unit.MM),
    "RY": ("Precipitation (5-min)", Unit.MM),
    "SF": ("Precipitation (24-h), adjusted", Unit.MM),
    "SH": ("Precipitation (12-h)", Unit.MM),
    "SW": ("Precipitation (24-h)", Unit.MM),
    "W1": ("Precipitation (7-d)", Unit.MM),
    "W2": ("Precipitation (14-d)", Unit.MM),
    "W3": ("Precipitation (21-d)", Unit.MM),
    "W4": ("Precipitation (30-d)", Unit.MM),
    "YW": ("Precipitation (5-min), adjusted", Unit.MM),
    # local picture products
    "OL": ("Reflectivity (no clutter detection)", Unit.DBZ),
    "OX": ("Reflectivity (no clutter detection)", Unit.DBZ),
    "PD": ("Radial velocity", Unit.MPS),
    "PE": ("Echotop", Unit.KM),
    "PF": ("Reflectivity (15 classes)", Unit.DBZ),
    "PH": ("Accumulated rainfall", Unit.MM),
    "PL": ("Reflectivity", Unit.DBZ),
    "PM": ("Max. reflectivity", Unit.DBZ),
    "PR": ("Radial velocity", Unit.MPS),
    "PU": ("3D radial velocity", Unit.MPS),
    "PV": ("Radial velocity", Unit.MPS),
    "PX": ("Reflectivity (6 classes)", Unit.DBZ),
    "PY": ("Accumulated rainfall", Unit.MM),
    "PZ": ("3D reflectivity CAPPI", Unit.DBZ),
}

# the INT field of these products is stored in units of 10 minutes
INTERVAL_MULTIPLIERS: dict[str, int] = {
    "W1": 10,
    "W2": 10,
    "W3": 10,
    "W4": 10,
}


def lookup_unit(product: str) -> Unit:
    """
    Get the physical unit of a product.

    Returns `Unit.UNKNOWN` when the product is not cataloged.
    """
    if product in PRODUCTS:
        return PRODUCTS[product][1]
    return Unit.UNKNOWN
