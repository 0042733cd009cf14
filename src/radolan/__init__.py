"""
radolan: Python package for reading DWD RADOLAN / RADVOR radar composites.

This package decodes the composite format (ASCII header followed by a binary
payload) into numpy arrays and xarray objects, and projects geographic
coordinates onto the composite grids.
"""

__version__ = "2026.10.0"
__author__ = "James Mineau"
__email__ = "jameskmineau@gmail.com"

from .catalog import Unit
from .composite import Composite, combine, decode, decode_many, open_composite
from .errors import DecodeError, UnknownUnitWarning

__all__ = [
    "Composite",
    "DecodeError",
    "Unit",
    "UnknownUnitWarning",
    "combine",
    "decode",
    "decode_many",
    "open_composite",
]
