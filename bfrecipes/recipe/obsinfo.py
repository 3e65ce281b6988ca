from __future__ import annotations

import glob
import logging
import os

import h5py

logger = logging.getLogger("bfrecipes")

OBSINFO_TEMPLATE = """\
# Name of instrument
instrument: {instrument}

# Input map.  This lists which antenna-polarizations were connected to which
# correlator inputs.  For dual-polarization inputs, the two polarization for a
# given input are flattened into two sequential elements, with the "first"
# polarization of the input given before the "second" polarization.  The
# antenna-polarization for an input is given as a two element array.  The first
# element specifies the antenna.  This can be given as a string for antenna
# name or an integer for antenna number.  The second element specifies the
# polarization.  Valid values are L,R,X,Y (case-insensitive).  Polarizations
# must be specified for each input, even for single polarization instruments.
input_map: [
{inputs}]
"""


def antenna_names_from_bfr5(path: str):
    with h5py.File(path, "r") as f:
        return [str(name) for name in f["telinfo/antenna_names"].asstr()[()]]


def format_obsinfo(antenna_names, instrument: str = "BLUSE") -> str:
    inputs = "".join(f"  [{name}, x], [{name}, y],\n" for name in antenna_names)
    return OBSINFO_TEMPLATE.format(instrument=instrument, inputs=inputs)


def resolve_bfr5_path(path: str):
    """
    `path` itself if it is a file, or the first recipe in it if it is a directory. None if there is nothing to use.
    """
    if os.path.isdir(path):
        bfr5_paths = sorted(glob.glob(os.path.join(path, "*.bfr5")))
        if not bfr5_paths:
            logger.warning(f"{path} has no bfr5 files")
            return None
        return bfr5_paths[0]

    if not os.path.exists(path):
        logger.warning(f"{path} does not exist")
        return None

    return path


def write_obsinfo(bfr5_path: str, instrument: str = "BLUSE") -> str:
    """
    Write an obsinfo.yml next to `bfr5_path` listing its antennas, and return its path.
    All recipes in a directory are assumed to share the same obsinfo.
    """
    obsinfo_path = os.path.join(os.path.dirname(bfr5_path), "obsinfo.yml")
    logger.info(f"{bfr5_path} => {obsinfo_path}")

    with open(obsinfo_path, "w") as f:
        f.write(format_obsinfo(antenna_names_from_bfr5(bfr5_path), instrument=instrument))

    return obsinfo_path
