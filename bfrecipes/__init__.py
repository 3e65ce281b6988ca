from __future__ import annotations

import logging

from . import store  # noqa
from ._version import __version__, __version_tuple__  # noqa
from .assembly import build_recipe, recipe_from_rawfile, targets_to_recipe  # noqa
from .beams import BeamSet, ring_beam_pattern  # noqa
from .calibration import CalSolution, get_latest_solution  # noqa
from .config import RecipeConfig  # noqa
from .geometry import DelayInfo, compute_delay_info  # noqa
from .guppi import ObsHeader  # noqa
from .recipe import BeamformerRecipe, write_recipe  # noqa
from .telinfo import TelInfo, all_telescopes, get_telinfo, load_telinfo  # noqa

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger("bfrecipes")


def debug():
    logger.setLevel(logging.DEBUG)
