"""
Conversions between raw radar video processor values (rvp-6), reflectivity
in dBZ and rainfall rates.

Reflectivity composites (e.g. RX, EX) store rvp-6 values, the radar
reflectivity factor Z is related to them by

    dBZ = rvp6 / 2 - 32.5

and to the rainfall rate R (mm/h) by a Z-R relationship Z = a * R**b.
All functions accept scalars and numpy arrays.
"""

import numpy as np

# Z-R relationship used by DWD
ZR_A = 256.0
ZR_B = 1.42


def rvp6_to_dbz(rvp6):
    """Convert rvp-6 values to reflectivity in dBZ."""
    return np.asarray(rvp6) / 2.0 - 32.5


def dbz_to_rvp6(dbz):
    """Convert reflectivity in dBZ to rvp-6 values."""
    return (np.asarray(dbz) + 32.5) * 2.0


def precipitation_rate(dbz, a: float = ZR_A, b: float = ZR_B):
    """
    Estimate the rainfall rate from reflectivity.

    Parameters
    ----------
    dbz : float or np.ndarray
        Reflectivity in dBZ.
    a : float, optional
        Z-R coefficient.
    b : float, optional
        Z-R exponent.

    Returns
    -------
    float or np.ndarray
        Rainfall rate in mm/h.
    """
    z = 10.0 ** (np.asarray(dbz) / 10.0)
    return (z / a) ** (1.0 / b)


def reflectivity(rate, a: float = ZR_A, b: float = ZR_B):
    """
    Estimate reflectivity in dBZ from a rainfall rate in mm/h.

    Inverse of `precipitation_rate`.
    """
    return 10.0 * np.log10(a * np.asarray(rate) ** b)
