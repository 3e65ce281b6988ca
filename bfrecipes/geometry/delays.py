from __future__ import annotations

import logging
import time as ttime
from dataclasses import dataclass

import numpy as np
from tqdm import tqdm

from ..beams import BeamSet
from ..constants import CMPNS, DEFAULT_BAR_FORMAT, SECONDS_PER_DAY
from ..errors import DimensionMismatch
from ..io import log_duration
from ..telinfo import TelInfo, to_topocentric_xyz
from ..utils import unix_to_jd
from .transforms import ha_to_t, lookup_dut1, radec_to_hadec, td_to_wdw

logger = logging.getLogger("bfrecipes")


@dataclass(frozen=True)
class DelayInfo:
    """
    Delays (in nanoseconds) and delay rates (in nanoseconds per second), shaped (nants, nbeams, ntimes).
    """

    delays: np.ndarray
    rates: np.ndarray
    time_array: np.ndarray  # unix seconds
    jds: np.ndarray
    dut1: float  # in seconds

    @property
    def nants(self):
        return self.delays.shape[0]

    @property
    def nbeams(self):
        return self.delays.shape[1]

    @property
    def ntimes(self):
        return self.delays.shape[2]

    def __repr__(self):
        return f"DelayInfo(nants={self.nants}, nbeams={self.nbeams}, ntimes={self.ntimes}, dut1={self.dut1})"


def count_times(dwell: float, time_step: float = 1.0) -> int:
    """
    The number of time steps needed to cover `dwell` seconds. Partial steps are rounded up.
    """
    return int(np.ceil(dwell / time_step))


def time_axes(start_time: float, dwell: float, time_step: float = 1.0):
    """
    Unix times and julian dates of each step, starting at `start_time`.
    """
    ntimes = count_times(dwell, time_step)
    steps = np.arange(ntimes, dtype=float)
    times = start_time + steps * time_step
    jds = unix_to_jd(start_time) + steps * (time_step / SECONDS_PER_DAY)
    return times, jds


def reference_dut1_jd(jdstart: float) -> float:
    """
    The midnight (in julian date) at which to look up UT1-UTC for a window starting at `jdstart`.
    """
    return np.floor(jdstart - 0.5) + 0.5


def tabulate_delays(
    ras,
    decs,
    telinfo: TelInfo,
    start_time: float,
    ntimes: int,
    time_step: float = 1.0,
    dut1: float = 0.0,
    progress_bars: bool = False,
):
    """
    Absolute (not referenced to any beam) delays and rates of each antenna for each position in
    `ras` and `decs`, shaped (nants, npositions, ntimes).

    The hour angles are computed once at `start_time`, and then advanced linearly by `time_step`.
    """
    ras, decs = np.atleast_1d(ras), np.atleast_1d(decs)
    if ras.shape != decs.shape:
        raise DimensionMismatch(f"Got {len(ras)} right ascensions and {len(decs)} declinations.")

    hob, dob = radec_to_hadec(
        ras,
        decs,
        start_time,
        latitude=telinfo.latitude,
        longitude=telinfo.longitude,
        altitude=telinfo.altitude,
        dut1=dut1,
    )

    # observed transit times; these get stepped, the declinations do not
    tobs = ha_to_t(hob)
    dobs = np.asarray(dob)

    # (3, nants), in nanoseconds
    antpos = to_topocentric_xyz(telinfo).T / CMPNS

    nants, npos = antpos.shape[1], len(tobs)
    delays = np.zeros((nants, npos, ntimes))
    rates = np.zeros((nants, npos, ntimes))

    for ti in tqdm(
        range(ntimes),
        desc="Computing delays",
        disable=not progress_bars,
        bar_format=DEFAULT_BAR_FORMAT,
    ):
        # (npos, 2, 3) @ (3, nants) -> (npos, 2, nants)
        wdw = td_to_wdw(tobs, dobs) @ antpos
        delays[:, :, ti] = wdw[:, 0].T
        rates[:, :, ti] = wdw[:, 1].T

        tobs = tobs + time_step

    return delays, rates


def compute_delay_info(
    boresight: tuple[float, float],
    beams: BeamSet,
    telinfo: TelInfo,
    start_time: float,
    dwell: float = 300.0,
    time_step: float = 1.0,
    dut1: float = None,
    progress_bars: bool = False,
) -> DelayInfo:
    """
    Delays and delay rates of every antenna for every beam, relative to the boresight.

    Parameters
    ----------
    boresight : (float, float)
        The (ra, dec) of the phase center, in radians.
    beams : BeamSet
        The beams to compute delays for.
    start_time : float
        Unix time of the start of the window.
    dwell : float
        Length of the window, in seconds.
    time_step : float
        Spacing of the tabulated delays, in seconds.
    dut1 : float, optional
        UT1-UTC in seconds. If not supplied, it is looked up for the midnight nearest the start of the window.
    """
    ref_time = ttime.monotonic()

    if len(beams.names) != len(beams.ras) or len(beams.ras) != len(beams.decs):
        raise DimensionMismatch(
            f"Got {len(beams.names)} beam names but {len(beams.ras)} / {len(beams.decs)} beam positions."
        )

    times, jds = time_axes(start_time, dwell, time_step)

    if dut1 is None:
        dut1 = lookup_dut1(reference_dut1_jd(jds[0]))
        logger.debug(f"Using UT1-UTC = {dut1:.06f} s from the IERS tables.")

    # the boresight is beam zero, so that it can be subtracted from the others
    ras = np.r_[boresight[0], beams.ras]
    decs = np.r_[boresight[1], beams.decs]

    delays, rates = tabulate_delays(
        ras,
        decs,
        telinfo,
        start_time=start_time,
        ntimes=len(times),
        time_step=time_step,
        dut1=dut1,
        progress_bars=progress_bars,
    )

    delay_info = DelayInfo(
        delays=delays[:, 1:] - delays[:, :1],
        rates=rates[:, 1:] - rates[:, :1],
        time_array=times,
        jds=jds,
        dut1=float(dut1),
    )

    log_duration(ref_time, f"Computed {delay_info}")

    return delay_info
