"""
Grid and projection definitions for RADOLAN composites.

This module identifies the composite grid from its dimensions and calibrates
the polar stereographic projection that maps geographic coordinates onto the
grid. Two forward formulas are supported: a spherical earth (true at 60°N,
centered on 10°E) used by most grids, and the WGS84 ellipsoid used by the
DE1200 grid from format version 5 on.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

import numpy as np
import pyproj


class GridType(Enum):
    """Known composite grids."""

    UNKNOWN = "unknown"
    NATIONAL = "national"  # 900 km x 900 km
    NATIONAL_PICTURE = "national_picture"  # 920 km x 920 km
    EXTENDED_NATIONAL = "extended_national"  # 900 km x 1100 km
    DE1200 = "de1200"  # 1100 km x 1200 km
    MIDDLE_EUROPEAN = "middle_european"  # 1400 km x 1500 km


# (nx, ny) of each grid at 1 km resolution, first match wins
GRID_DIMENSIONS: tuple[tuple[GridType, tuple[int, int]], ...] = (
    (GridType.NATIONAL, (900, 900)),
    (GridType.NATIONAL_PICTURE, (920, 920)),
    (GridType.EXTENDED_NATIONAL, (900, 1100)),
    (GridType.DE1200, (1100, 1200)),
    (GridType.MIDDLE_EUROPEAN, (1400, 1500)),
)

# corner coordinates ((top, left), (bottom, right)) as (lat N, lon E)
CORNERS: dict[GridType, tuple[tuple[float, float], tuple[float, float]]] = {
    GridType.NATIONAL: ((54.5877, 2.0715), (47.0705, 14.6209)),
    GridType.NATIONAL_PICTURE: (
        (54.66218275, 1.900684377),
        (46.98044293, 14.73300934),
    ),
    GridType.EXTENDED_NATIONAL: ((55.5482, 3.0889), (46.1827, 15.4801)),
    GridType.DE1200: ((55.86584289, 1.435612143), (45.68358331, 16.60186543)),
    GridType.MIDDLE_EUROPEAN: ((56.5423, -0.8654), (43.8736, 18.2536)),
}

# DE1200 corners from format version 5 on (WGS84)
CORNERS_DE1200_WGS84 = ((55.86208711, 1.463301510), (45.68460578, 16.58086935))

WGS84_FORMAT_VERSION = 5


def min_resolution(nx: int, ny: int) -> tuple[int, int]:
    """
    Bisect both edges until at least one of them is odd.

    Parameters
    ----------
    nx : int
        Grid width.
    ny : int
        Grid height.

    Returns
    -------
    tuple[int, int]
        The reduced (nx, ny).
    """
    if nx == 0 or ny == 0:
        return nx, ny

    while nx % 2 == 0 and ny % 2 == 0:
        nx //= 2
        ny //= 2
    return nx, ny


def detect_grid(nx: int, ny: int) -> GridType:
    """
    Identify the composite grid from the layer dimensions.

    Grids are matched at any resolution sharing the aspect ratio of a known
    grid, e.g. 900x900, 450x450 and 225x225 all detect as the national grid.
    """
    reduced = min_resolution(nx, ny)
    for grid, dims in GRID_DIMENSIONS:
        if reduced == min_resolution(*dims):
            return grid
    return GridType.UNKNOWN


def corner_points(
    grid: GridType, format_version: int = 0
) -> tuple[tuple[float, float], tuple[float, float]] | None:
    """
    Get the (top, left) and (bottom, right) corner coordinates of a grid.

    Returns None for unknown grids.
    """
    if grid is GridType.DE1200 and format_version >= WGS84_FORMAT_VERSION:
        return CORNERS_DE1200_WGS84
    return CORNERS.get(grid)


@dataclass(frozen=True)
class Projection:
    """
    Polar stereographic projection onto a composite grid.

    Subclasses implement `transform`, the raw forward formula returning
    kilometres with y pointing south. `project` then removes the calibrated
    offset and scales to pixels.

    Parameters
    ----------
    offset_x : float
        Projected x (km) of the top-left grid corner.
    offset_y : float
        Projected y (km) of the top-left grid corner.
    rx : float
        Horizontal resolution in km/px.
    ry : float
        Vertical resolution in km/px.
    """

    offset_x: float = 0.0
    offset_y: float = 0.0
    rx: float = 1.0
    ry: float = 1.0

    PARAMS: ClassVar[dict[str, Any]] = {}

    def transform(self, lat, lon) -> tuple[Any, Any]:
        raise NotImplementedError

    def project(self, lat, lon) -> tuple[Any, Any]:
        """
        Project geographic coordinates to fractional pixel coordinates.

        Parameters
        ----------
        lat : float or np.ndarray
            Latitude in degrees north.
        lon : float or np.ndarray
            Longitude in degrees east.

        Returns
        -------
        tuple
            (x, y) pixel coordinates, (0, 0) being the top-left grid corner.
        """
        x, y = self.transform(lat, lon)
        x = (x - self.offset_x) / self.rx
        y = (y - self.offset_y) / self.ry
        return x, y

    def unproject(self, x, y) -> tuple[Any, Any]:
        """
        Convert fractional pixel coordinates back to (lat, lon).
        """
        # raw km with y pointing south -> crs metres with y pointing north
        east = (np.asarray(x) * self.rx + self.offset_x) * 1000
        north = -(np.asarray(y) * self.ry + self.offset_y) * 1000

        crs = self.crs
        transformer = pyproj.Transformer.from_crs(
            crs, crs.geodetic_crs, always_xy=True
        )
        lon, lat = transformer.transform(east, north)
        return lat, lon

    @property
    def crs(self) -> pyproj.CRS:
        """
        Coordinate reference system equivalent to `transform` (in metres).
        """
        return pyproj.CRS.from_dict(self.PARAMS)

    @classmethod
    def calibrate(
        cls,
        top_left: tuple[float, float],
        bottom_right: tuple[float, float],
        nx: int,
        ny: int,
    ) -> "Projection":
        """
        Derive offset and resolution from the grid corners.

        The top-left corner becomes the pixel origin and the bottom-right
        corner is scaled onto (nx, ny).

        Parameters
        ----------
        top_left : tuple[float, float]
            (lat, lon) of the top-left corner.
        bottom_right : tuple[float, float]
            (lat, lon) of the bottom-right corner.
        nx : int
            Grid width in pixels.
        ny : int
            Grid height in pixels.

        Returns
        -------
        Projection
            Calibrated projection of the same type.
        """
        # resolution of 1 km/px for calibration
        offset_x, offset_y = cls().project(*top_left)

        edge_x, edge_y = cls(offset_x=offset_x, offset_y=offset_y).project(
            *bottom_right
        )
        return cls(
            offset_x=offset_x,
            offset_y=offset_y,
            rx=edge_x / nx,
            ry=edge_y / ny,
        )


@dataclass(frozen=True)
class SphericalProjection(Projection):
    """
    Polar stereographic projection on a sphere, true at 60°N, centered on 10°E.
    """

    EARTH_RADIUS: ClassVar[float] = 6370.04  # km
    JUNCTION_NORTH: ClassVar[float] = 60.0  # N
    JUNCTION_EAST: ClassVar[float] = 10.0  # E

    PARAMS: ClassVar[dict[str, Any]] = {
        "proj": "stere",
        "lat_0": 90.0,
        "lat_ts": 60.0,
        "lon_0": 10.0,
        "R": 6370.04 * 1e3,
        "units": "m",
    }

    def transform(self, lat, lon) -> tuple[Any, Any]:
        lamda0, phi0 = np.radians(self.JUNCTION_EAST), np.radians(self.JUNCTION_NORTH)
        lamda, phi = np.radians(lon), np.radians(lat)

        m = (1.0 + np.sin(phi0)) / (1.0 + np.sin(phi))
        x = self.EARTH_RADIUS * m * np.cos(phi) * np.sin(lamda - lamda0)
        y = self.EARTH_RADIUS * m * np.cos(phi) * np.cos(lamda - lamda0)
        return x, y


@dataclass(frozen=True)
class WGS84Projection(Projection):
    """
    Polar stereographic projection on the WGS84 ellipsoid (DE1200 grid).

    Equivalent to ``+proj=stere +lat_0=90 +lat_ts=60 +lon_0=10 +a=6378137
    +b=6356752.3142451802 +x_0=543196.83521776402 +y_0=3622588.861931001``.
    """

    LON_0: ClassVar[float] = 10.0
    ECCENTRICITY: ClassVar[float] = 0.08181919084262032
    K_0: ClassVar[float] = 11862667.042661695
    X_0: ClassVar[float] = 543196.83521776402
    Y_0: ClassVar[float] = 3622588.861931001
    SCALE: ClassVar[float] = 1000.0  # m per km

    PARAMS: ClassVar[dict[str, Any]] = {
        "proj": "stere",
        "lat_0": 90.0,
        "lat_ts": 60.0,
        "lon_0": 10.0,
        "a": 6378137.0,
        "b": 6356752.3142451802,
        "x_0": 543196.83521776402,
        "y_0": 3622588.861931001,
        "units": "m",
    }

    def transform(self, lat, lon) -> tuple[Any, Any]:
        phi, lamda = np.radians(lat), np.radians(lon)
        lamda0 = np.radians(self.LON_0)
        ecc = self.ECCENTRICITY

        sin_phi = np.sin(phi)
        s = (
            self.K_0
            * np.tan(0.5 * (np.pi / 2 - phi))
            / ((1 - ecc * sin_phi) / (1 + ecc * sin_phi)) ** (0.5 * ecc)
        )

        x = self.X_0 + s * np.sin(lamda - lamda0)
        y = self.Y_0 - s * np.cos(lamda - lamda0)
        return x / self.SCALE, y / -self.SCALE


class Grid:
    """
    Represents the horizontal grid of a composite layer.

    Parameters
    ----------
    nx : int
        Number of grid points in the x-direction (columns).
    ny : int
        Number of grid points in the y-direction (rows).
    format_version : int, optional
        Format version of the composite, selects the DE1200 formula.

    Attributes
    ----------
    kind : GridType
        The detected grid, `GridType.UNKNOWN` if none matched.
    projection : Projection or None
        Calibrated projection, None if the grid is unknown.
    """

    def __init__(self, nx: int, ny: int, format_version: int = 0):
        self.nx = nx
        self.ny = ny
        self.format_version = format_version

        self.kind = detect_grid(nx, ny)
        self.projection = self._calibrate()

        self._coords = None

    def _calibrate(self) -> Projection | None:
        corners = corner_points(self.kind, self.format_version)
        if corners is None:
            return None

        if (
            self.kind is GridType.DE1200
            and self.format_version >= WGS84_FORMAT_VERSION
        ):
            cls = WGS84Projection
        else:
            cls = SphericalProjection

        top_left, bottom_right = corners
        return cls.calibrate(top_left, bottom_right, nx=self.nx, ny=self.ny)

    @property
    def has_projection(self) -> bool:
        return self.projection is not None

    @property
    def rx(self) -> float:
        """Horizontal resolution in km/px, NaN without projection."""
        return self.projection.rx if self.has_projection else np.nan

    @property
    def ry(self) -> float:
        """Vertical resolution in km/px, NaN without projection."""
        return self.projection.ry if self.has_projection else np.nan

    @property
    def crs(self) -> pyproj.CRS | None:
        return self.projection.crs if self.has_projection else None

    def project(self, lat, lon) -> tuple[Any, Any]:
        """
        Project (lat, lon) to fractional pixel coordinates of this grid.

        NaN is returned when no projection is available.
        """
        if not self.has_projection:
            shape = np.broadcast(lat, lon).shape
            if shape == ():
                return np.nan, np.nan
            return np.full(shape, np.nan), np.full(shape, np.nan)
        return self.projection.project(lat, lon)

    @property
    def dims(self) -> tuple:
        return ("y", "x")

    @property
    def coords(self) -> dict[str, Any]:
        """
        Grid coordinates of pixel centers.

        Returns
        -------
        dict[str, Any]
            "x" and "y" 1D pixel coordinates and, if a projection is
            available, "lat" and "lon" 2D arrays.
        """
        if self._coords is None:
            x = np.arange(self.nx) + 0.5
            y = np.arange(self.ny) + 0.5
            coords = {"x": x, "y": y}

            if self.has_projection:
                xx, yy = np.meshgrid(x, y)
                lats, lons = self.projection.unproject(xx, yy)
                coords["lat"] = (("y", "x"), lats)
                coords["lon"] = (("y", "x"), lons)

            self._coords = coords

        return self._coords

    def get_coord_attrs(self) -> dict[str, dict[str, Any]]:
        """
        Get CF-compliant attributes for coordinates.

        Returns
        -------
        dict[str, dict[str, Any]]
            Dictionary mapping coordinate names to their attributes.
        """
        attrs = {
            "x": {
                "units": "1",
                "long_name": "x pixel coordinate (west to east)",
            },
            "y": {
                "units": "1",
                "long_name": "y pixel coordinate (north to south)",
            },
        }

        if self.has_projection:
            attrs["lon"] = {
                "units": "degrees_east",
                "long_name": "longitude",
                "standard_name": "longitude",
            }
            attrs["lat"] = {
                "units": "degrees_north",
                "long_name": "latitude",
                "standard_name": "latitude",
            }

        return attrs

    def __repr__(self) -> str:
        return (
            f"Grid(kind={self.kind.value}, nx={self.nx}, ny={self.ny}, "
            f"format_version={self.format_version})"
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grid):
            return False
        return (
            self.nx == other.nx
            and self.ny == other.ny
            and self.projection == other.projection
        )

    def __hash__(self) -> int:
        return hash((self.nx, self.ny, self.projection))
