"""
RADOLAN composite reader.

This module provides the `Composite` class, which runs the complete decoding
pipeline on a single composite file (header, payload, layer arrangement and
projection calibration), and helpers to open files and decode batches.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import IO, Iterable, Sequence

import numpy as np
import pandas as pd
import xarray as xr

from radolan.catalog import PRODUCTS, Unit, lookup_unit
from radolan.encoding import classify, decode_plane
from radolan.errors import DecodeError
from radolan.grid import Grid
from radolan.header import Header, read_header

logger = logging.getLogger(__name__)


def arrange_layers(plane: np.ndarray, ny: int) -> np.ndarray:
    """
    Split a plane into layers of height `ny`.

    If the plane height is a multiple of `ny` the layers are linked downwards
    in on-disk order. Otherwise only the bottom-most `ny` rows are kept and
    the strip above (vertical profiles) is dropped.

    Parameters
    ----------
    plane : np.ndarray
        Decoded (plain_ny, plain_nx) plane.
    ny : int
        Height of one layer.

    Returns
    -------
    np.ndarray
        (nz, ny, plain_nx) view of the plane.
    """
    plain_ny, plain_nx = plane.shape

    if plain_ny % ny == 0:
        return plane.reshape(plain_ny // ny, ny, plain_nx)

    # strip elevation
    return plane[plain_ny - ny :][np.newaxis]


class Composite:
    """
    A decoded RADOLAN radar composite.

    The value at layer z, row y and column x is ``data_z[z, y, x]``, NaN marking
    missing data. Rows run north to south and columns west to east. Geographic
    coordinates can be projected into the grid of the composite:

        x, y = comp.project(52.51861, 13.40833)  # Berlin (lat, lon)
        value = comp.at(int(x), int(y))

    Parameters
    ----------
    header : Header
        The parsed header.
    plain_data : np.ndarray
        The decoded (plain_ny, plain_nx) plane.

    Attributes
    ----------
    product : str
        Two letter product label.
    capture_time, forecast_time : pd.Timestamp
        Time of data capture and time the data is valid for.
    interval : pd.Timedelta
        Duration until the next forecast or accumulation interval.
    plain_nx, plain_ny : int
        Plane dimensions as stored on disk.
    nx, ny, nz : int
        Layer width, layer height and number of layers.
    rx, ry : float
        Resolution in km/px, NaN if the grid is unknown.
    data_z : np.ndarray
        (nz, ny, nx) layered data.
    data : np.ndarray
        First layer of `data_z`.
    grid : Grid
        Detected grid holding the calibrated projection.
    """

    def __init__(self, header: Header, plain_data: np.ndarray):
        self.header = header

        self.product = header.product
        self.capture_time = header.capture_time
        self.forecast_time = header.forecast_time
        self.interval = header.interval
        self.format_version = header.format_version
        self.precision = header.precision
        self.level = header.level
        self.unit = header.unit

        self.plain_nx = header.plain_nx
        self.plain_ny = header.plain_ny
        self.nx = header.nx
        self.ny = header.ny

        # read-only once decoded, layers are views of the plane
        plain_data.setflags(write=False)
        self.plain_data = plain_data
        self.data_z = arrange_layers(plain_data, self.ny)
        self.nz = len(self.data_z)
        self.data = self.data_z[0]

        self.grid = Grid(self.nx, self.ny, format_version=self.format_version)
        self.rx = self.grid.rx
        self.ry = self.grid.ry

        logger.debug(
            "%s: %d layer(s) of %dx%d, grid %s",
            self.product,
            self.nz,
            self.nx,
            self.ny,
            self.grid.kind.value,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "Composite":
        """
        Decode a composite from its raw bytes.

        Parameters
        ----------
        data : bytes
            Header and binary payload.

        Returns
        -------
        Composite
            The decoded composite.

        Raises
        ------
        DecodeError
            If the header or the payload is corrupted.
        """
        header, payload = read_header(data)

        encoding = classify(
            header.data_length, header.plain_nx, header.plain_ny, level=header.level
        )
        logger.debug("%s: %s encoding", header.product, encoding.value)

        plane = decode_plane(
            encoding,
            payload,
            nx=header.plain_nx,
            ny=header.plain_ny,
            precision=header.precision,
            level=header.level,
        )
        return cls(header=header, plain_data=plane)

    @classmethod
    def from_file(cls, filename: Path | str) -> "Composite":
        """
        Read and decode an (uncompressed) composite file.

        Parameters
        ----------
        filename : Path or str
            Path to the composite file.

        Returns
        -------
        Composite
            The decoded composite.

        Raises
        ------
        ValueError
            If the file path is invalid or the file is corrupted.
        """
        path = Path(filename)

        if not path.exists():
            raise ValueError("Invalid file path")

        with path.open("rb") as f:
            data = f.read()

        return cls.from_bytes(data)

    @classmethod
    def dummy(
        cls, product: str, nx: int, ny: int, format_version: int = 0
    ) -> "Composite":
        """
        Create a blank composite for coordinate translation.

        Parameters
        ----------
        product : str
            Product label.
        nx : int
            Grid width.
        ny : int
            Grid height.
        format_version : int, optional
            Format version, selects the DE1200 projection formula.

        Returns
        -------
        Composite
            Composite with a single all-NaN layer.
        """
        header = Header(
            product=product,
            capture_time=pd.NaT,
            forecast_time=pd.NaT,
            interval=pd.Timedelta(0),
            data_length=0,
            plain_nx=nx,
            plain_ny=ny,
            nx=nx,
            ny=ny,
            rx=np.nan,
            ry=np.nan,
            precision=0,
            format_version=format_version,
            unit=lookup_unit(product),
            n_bytes=0,
        )
        return cls(header=header, plain_data=np.full((ny, nx), np.nan, np.float32))

    @property
    def has_projection(self) -> bool:
        return self.grid.has_projection

    def is_projection_available(self) -> bool:
        """Check whether geographic coordinates can be projected."""
        return self.grid.has_projection

    @property
    def degraded(self) -> bool:
        """True if the physical unit of the product is unknown."""
        return self.unit is Unit.UNKNOWN

    def at(self, x: int, y: int, z: int = 0) -> float:
        """
        Get the value at column x, row y of layer z.

        NaN is returned if no data is available or the position lies outside
        the composite.
        """
        if x < 0 or y < 0 or z < 0 or x >= self.nx or y >= self.ny or z >= self.nz:
            return np.nan
        return float(self.data_z[z, y, x])

    def project(self, lat, lon):
        """
        Project geographic coordinates into the grid of the composite.

        Parameters
        ----------
        lat : float or np.ndarray
            Latitude in degrees north.
        lon : float or np.ndarray
            Longitude in degrees east.

        Returns
        -------
        tuple
            Fractional (x, y) pixel coordinates, NaN if no projection is
            available.
        """
        return self.grid.project(lat, lon)

    @property
    def attrs(self) -> dict:
        """
        Attributes describing the composite.
        """
        attrs = {
            "product": self.product,
            "units": self.unit.symbol,
            "capture_time": str(self.capture_time),
            "interval_minutes": self.interval.total_seconds() / 60,
            "precision": self.precision,
            "format_version": self.format_version,
            "grid": self.grid.kind.value,
            "rx": self.rx,
            "ry": self.ry,
        }
        if self.product in PRODUCTS:
            attrs["long_name"] = PRODUCTS[self.product][0]
        return attrs

    def to_xarray(self) -> xr.DataArray:
        """
        Convert the layered data into a DataArray.

        Returns
        -------
        xr.DataArray
            Array with dims ("time", "layer", "y", "x"), indexed by forecast
            time, with lat/lon coordinates when a projection is available.
        """
        coords = {"layer": np.arange(self.nz), **self.grid.coords}

        da = xr.DataArray(
            data=self.data_z,
            dims=("layer",) + self.grid.dims,
            coords=coords,
            name=self.product,
            attrs=self.attrs,
        )

        for name, attrs in self.grid.get_coord_attrs().items():
            da[name].attrs.update(attrs)

        da = da.expand_dims(time=[self.forecast_time])
        da["time"].attrs.update({"long_name": "forecast time", "standard_name": "time"})
        return da

    def __repr__(self) -> str:
        return (
            f"Composite(product={self.product!r}, forecast_time={self.forecast_time}, "
            f"nx={self.nx}, ny={self.ny}, nz={self.nz}, grid={self.grid.kind.value})"
        )


def decode(source: bytes | IO[bytes]) -> Composite:
    """
    Decode a single composite.

    Parameters
    ----------
    source : bytes or file-like
        Raw composite bytes or a binary file object to read them from.

    Returns
    -------
    Composite
        The decoded composite.
    """
    if hasattr(source, "read"):
        source = source.read()
    return Composite.from_bytes(source)


def open_composite(filename: Path | str) -> Composite:
    """
    Open a RADOLAN composite file.

    Parameters
    ----------
    filename : Path or str
        Path to the (uncompressed) composite file.

    Returns
    -------
    Composite
        The decoded composite.
    """
    return Composite.from_file(filename=filename)


def decode_many(
    sources: Iterable[bytes | IO[bytes]],
    max_workers: int | None = None,
    errors: str = "raise",
) -> list[Composite]:
    """
    Decode a batch of composites concurrently.

    Parameters
    ----------
    sources : Iterable[bytes or file-like]
        Raw composites, e.g. the entries of an archive.
    max_workers : int, optional
        Number of worker threads, see `concurrent.futures.ThreadPoolExecutor`.
    errors : {"raise", "skip"}
        "raise" aborts the batch on the first corrupted composite, "skip"
        logs and drops corrupted composites.

    Returns
    -------
    list[Composite]
        Decoded composites sorted by forecast time.
    """
    if errors not in ("raise", "skip"):
        raise ValueError(f"errors must be 'raise' or 'skip', got {errors!r}")

    def _decode(source) -> Composite | None:
        try:
            return decode(source)
        except DecodeError as err:
            if errors == "raise":
                raise
            logger.warning("Skipping corrupted composite: %s", err)
            return None

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        results = list(executor.map(_decode, sources))

    composites = [c for c in results if c is not None]
    composites.sort(key=lambda c: c.forecast_time)
    return composites


def combine(composites: Sequence[Composite]) -> xr.DataArray:
    """
    Concatenate composites of the same product and grid along time.

    Parameters
    ----------
    composites : Sequence[Composite]
        Composites to combine.

    Returns
    -------
    xr.DataArray
        Array with dims ("time", "layer", "y", "x") sorted by forecast time.
    """
    if len(composites) == 0:
        raise ValueError("No composites provided")

    shapes = {c.data_z.shape for c in composites}
    if len(shapes) > 1:
        raise ValueError(f"Cannot combine composites of different shapes: {shapes}")

    arrays = [c.to_xarray() for c in composites]
    da = xr.concat(arrays, dim="time", combine_attrs="drop_conflicts")
    return da.sortby("time")
