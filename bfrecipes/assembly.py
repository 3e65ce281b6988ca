from __future__ import annotations

import logging
import os
import re

import numpy as np

from .beams import BeamSet, fetch_targets, ring_beam_pattern
from .calibration import get_latest_solution
from .config import RecipeConfig
from .errors import ParseError
from .geometry import compute_delay_info
from .guppi import ObsHeader, header_for_subarray, read_rawfile_header
from .recipe import BeamformerRecipe, ObsInfo, make_diminfo, write_recipe
from .telinfo import TelInfo, load_telinfo

logger = logging.getLogger("bfrecipes")

RAWFILE_SUFFIX_RE = re.compile(r"(\.\d{4})?\.raw$")


def build_recipe(
    obs: ObsHeader,
    beams: BeamSet,
    store,
    config: RecipeConfig,
    telinfo: TelInfo = None,
) -> BeamformerRecipe:
    """
    Make the recipe for the scan described by `obs`, with delays for each of `beams`.

    Calibration comes from `store`. Telescope geometry comes from `telinfo`, or is loaded from
    ``config.telinfo_file``; either way it is reordered to match the antennas of the calibration solution.
    """
    start_time = obs.start_time

    calinfo = get_latest_solution(
        store,
        obs.subarray,
        start_time,
        fallback_key=config.fallback_cal_key,
        nants_threshold=config.nants_threshold,
        nants_divisor=config.nants_divisor,
    )

    if telinfo is None:
        telinfo = load_telinfo(config.telinfo_file)
    telinfo = telinfo.reorder_by(calinfo.antenna_names)

    freq_array = obs.fch1_ghz + obs.foff_ghz * np.arange(calinfo.nchan)

    delayinfo = compute_delay_info(
        boresight=(obs.ra_rad, obs.dec_rad),
        beams=beams,
        telinfo=telinfo,
        start_time=start_time,
        dwell=obs.dwell if obs.dwell is not None else config.dwell,
        time_step=config.time_step,
        dut1=obs.ut1_utc,
        progress_bars=config.progress_bars,
    )

    return BeamformerRecipe(
        diminfo=make_diminfo(calinfo, delayinfo),
        telinfo=telinfo,
        obsinfo=ObsInfo(
            obsid=obs.obs_id(telinfo.telescope_name.lower()),
            freq_array=freq_array,
            phase_center_ra=obs.ra_rad,
            phase_center_dec=obs.dec_rad,
            instrument_name=obs.instrument,
        ),
        calinfo=calinfo,
        beaminfo=beams,
        delayinfo=delayinfo,
    )


def ring_beams_for(obs: ObsHeader, config: RecipeConfig) -> BeamSet:
    return ring_beam_pattern(
        obs.ra_rad,
        obs.dec_rad,
        nrings=config.nrings,
        ring_spacing=np.radians(config.ring_arcsec / 3600),
        source_name=obs.source_name,
    )


def recipe_from_rawfile(rawname: str, store, config: RecipeConfig, telinfo: TelInfo = None) -> BeamformerRecipe:
    """
    Make a recipe for a GUPPI RAW file, with a beam at boresight and rings of beams around it.
    """
    logger.info(f"Reading header from {rawname}")
    obs = ObsHeader.from_header(read_rawfile_header(rawname))
    return build_recipe(obs, ring_beams_for(obs, config), store, config, telinfo=telinfo)


def output_dir_for_rawfile(rawname: str, outdir: str = None) -> str:
    """
    Where to put the recipe for `rawname`. Files laid out like .../YYYYMMDD/NNNN/Unknown/GUPPI/foo.raw keep
    the YYYYMMDD/NNNN part under `outdir`, or go in .../YYYYMMDD/NNNN if there is no `outdir`.
    """
    rawname = os.path.normpath(rawname)
    rawdirs = rawname.split(os.sep)
    daq_layout = len(rawdirs) > 4 and rawdirs[-3] == "Unknown" and rawdirs[-2] == "GUPPI"

    if outdir is None:
        rawdir = os.path.dirname(rawname)
        if daq_layout:
            rawdir = os.path.dirname(os.path.dirname(rawdir))
        return rawdir or "."
    if daq_layout:
        return os.path.join(outdir, rawdirs[-5], rawdirs[-4])
    return outdir


def output_path_for_rawfile(rawname: str, outdir: str = None) -> str:
    basename = os.path.basename(rawname)
    bfr5_name = RAWFILE_SUFFIX_RE.sub(".bfr5", basename)
    if bfr5_name == basename:
        bfr5_name = f"{basename}.bfr5"
    return os.path.join(output_dir_for_rawfile(rawname, outdir), bfr5_name)


def rawfile_to_bfr5(rawname: str, outdir: str, store, config: RecipeConfig, telinfo: TelInfo = None):
    """
    Make and write the recipe for one RAW file. Returns the output path, or None if it already existed.
    """
    bfr5_path = output_path_for_rawfile(rawname, outdir)
    logger.info(f"{rawname} => {bfr5_path}")

    if os.path.exists(bfr5_path):
        logger.warning(f"Refusing to overwrite existing path {bfr5_path}")
        return None

    recipe = recipe_from_rawfile(rawname, store, config, telinfo=telinfo)
    return bfr5_path if write_recipe(recipe, bfr5_path) else None


def parse_targets_message(message: str):
    """
    Split a "targets:<telescope>:<subarray>:<timestamp>" message into (telescope, subarray, timestamp).
    """
    parts = message.split(":")
    if len(parts) != 4 or parts[0] != "targets" or not all(parts[1:]):
        raise ParseError(f"Malformed targets message '{message}'.")
    return tuple(parts[1:])


def targets_to_recipe(store, message: str, outdir: str, config: RecipeConfig, telinfo: TelInfo = None):
    """
    Make and write the recipe for a target list announced by `message`, which is also the key of the list.
    Returns the output path, or None if nothing was written.
    """
    telescope, subarray, timestamp = parse_targets_message(message)

    header = header_for_subarray(store, subarray, domain=config.status_domain)
    if not header:
        logger.warning(f"No GUPPI RAW metadata found for subarray {subarray}")
        return None

    bfr5_path = os.path.join(outdir, f"{telescope}-{subarray}-{timestamp}.bfr5")
    if os.path.exists(bfr5_path):
        logger.warning(f"Refusing to overwrite existing path {bfr5_path}")
        return None

    beams = fetch_targets(store, message, limit=config.target_limit)
    recipe = build_recipe(ObsHeader.from_header(header), beams, store, config, telinfo=telinfo)

    return bfr5_path if write_recipe(recipe, bfr5_path) else None
