from __future__ import annotations

import logging

import erfa
import numpy as np
from astropy import units as u
from astropy.time import Time

from ..constants import OMEGA_EARTH

logger = logging.getLogger("bfrecipes")


def lookup_dut1(jd: float) -> float:
    """
    UT1-UTC (in seconds) at julian date `jd`, from the IERS tables that astropy maintains.
    """
    dut1 = Time(jd, format="jd", scale="utc").get_delta_ut1_utc()
    return float(u.Quantity(dut1, u.s).to_value(u.s))


def radec_to_hadec(ra, dec, t, latitude, longitude, altitude, dut1, xp=0.0, yp=0.0):
    """
    Observed hour angle and declination (in radians) of ICRS positions `ra` and `dec` (in radians)
    at unix time `t`, as seen from the given site. Latitude and longitude are in degrees, altitude is in meters.

    There is no refraction. All positions are converted in one vectorized call.
    """
    utc = Time(t, format="unix", scale="utc")
    ra, dec = np.broadcast_arrays(np.atleast_1d(ra), np.atleast_1d(dec))

    *_, hob, dob, _, _ = erfa.atco13(
        ra,
        dec,
        0.0,  # proper motion in ra
        0.0,  # proper motion in dec
        0.0,  # parallax
        0.0,  # radial velocity
        utc.jd1,
        utc.jd2,
        dut1,
        np.radians(longitude),
        np.radians(latitude),
        altitude,
        xp,
        yp,
        0.0,  # pressure (no refraction)
        0.0,  # temperature
        0.0,  # relative humidity
        0.0,  # wavelength
    )

    return hob, dob


def ha_to_t(ha):
    """
    Convert an hour angle (in radians) into an "observed transit time" in seconds, which is zero at transit.
    """
    return np.asarray(ha) / OMEGA_EARTH


def td_to_wdw(t, d):
    """
    Projection matrices for observed transit times `t` (in seconds) and declinations `d` (in radians).

    Returns an (..., 2, 3) array whose rows turn topocentric XYZ positions into w (the geometric delay)
    and dw/dt (its rate per second).
    """
    h = OMEGA_EARTH * np.asarray(t, dtype=float)
    d = np.asarray(d, dtype=float)

    ch, sh = np.cos(h), np.sin(h)
    cd, sd = np.cos(d), np.sin(d)

    wdw = np.zeros((*np.shape(h), 2, 3))
    wdw[..., 0, 0] = cd * ch
    wdw[..., 0, 1] = -cd * sh
    wdw[..., 0, 2] = sd
    wdw[..., 1, 0] = -OMEGA_EARTH * cd * sh
    wdw[..., 1, 1] = -OMEGA_EARTH * cd * ch

    return wdw
