from __future__ import annotations

import os
from pathlib import Path

import pandas as pd

from ..utils import read_yaml
from .telinfo import ENU_FRAMES, TelInfo, enu_to_xyz, load_telinfo, parse_degrees, to_topocentric_xyz  # noqa

here, this_filename = os.path.split(__file__)

TELESCOPE_CONFIGS = {}
for telescopes_path in Path(f"{here}/telescopes").glob("*.yml"):
    TELESCOPE_CONFIGS.update(read_yaml(telescopes_path))

TELESCOPE_DISPLAY_COLUMNS = ["description", "latitude", "longitude", "altitude", "nants"]

telescope_data = pd.DataFrame(
    {
        name: {**{k: v for k, v in config.items() if k != "antennas"}, "nants": len(config["antennas"])}
        for name, config in TELESCOPE_CONFIGS.items()
    }
).T
all_telescopes = list(telescope_data.index.values)


class InvalidTelescopeError(Exception):
    def __init__(self, invalid_telescope):
        super().__init__(
            f"The telescope '{invalid_telescope}' is not supported. "
            f"Supported telescopes are:\n\n{telescope_data.loc[:, TELESCOPE_DISPLAY_COLUMNS].to_string()}",
        )


def get_telinfo_config(telescope_name="meerkat", **kwargs):
    if telescope_name not in TELESCOPE_CONFIGS.keys():
        raise InvalidTelescopeError(telescope_name)
    TELINFO_CONFIG = TELESCOPE_CONFIGS[telescope_name].copy()
    for k, v in kwargs.items():
        TELINFO_CONFIG[k] = v
    return TELINFO_CONFIG


def get_telinfo(telescope_name="meerkat", **kwargs):
    return TelInfo.from_config(get_telinfo_config(telescope_name=telescope_name, **kwargs))
