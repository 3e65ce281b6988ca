from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, fields

from .utils import read_yaml

here, this_filename = os.path.split(__file__)
logger = logging.getLogger("bfrecipes")

DEFAULT_CONFIG = read_yaml(f"{here}/configs/default.yml")


def _parse_ring_arcsec(value, default):
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Could not parse BFRING={value!r}, using {default} arcseconds.")
        return default


@dataclass(frozen=True)
class RecipeConfig:
    """
    Settings for making recipes. Build one with ``RecipeConfig.from_env()`` at startup and pass it down.
    """

    redis_host: str = DEFAULT_CONFIG["redis_host"]
    redis_port: int = DEFAULT_CONFIG["redis_port"]
    telinfo_file: str = DEFAULT_CONFIG["telinfo_file"]
    nrings: int = DEFAULT_CONFIG["nrings"]
    ring_arcsec: float = DEFAULT_CONFIG["ring_arcsec"]
    dwell: float = DEFAULT_CONFIG["dwell"]
    time_step: float = DEFAULT_CONFIG["time_step"]
    target_limit: int = DEFAULT_CONFIG["target_limit"]
    fallback_cal_key: str = DEFAULT_CONFIG["fallback_cal_key"]
    nants_threshold: int = DEFAULT_CONFIG["nants_threshold"]
    nants_divisor: int = DEFAULT_CONFIG["nants_divisor"]
    targets_channel: str = DEFAULT_CONFIG["targets_channel"]
    status_domain: str = DEFAULT_CONFIG["status_domain"]
    poll_timeout: float = DEFAULT_CONFIG["poll_timeout"]
    progress_bars: bool = DEFAULT_CONFIG["progress_bars"]

    def __post_init__(self):
        object.__setattr__(self, "telinfo_file", os.path.expanduser(self.telinfo_file))

        if self.time_step <= 0:
            raise ValueError(f"'time_step' must be positive (got {self.time_step}).")
        if self.dwell <= 0:
            raise ValueError(f"'dwell' must be positive (got {self.dwell}).")
        if self.nrings < 0:
            raise ValueError(f"'nrings' must be non-negative (got {self.nrings}).")

    @classmethod
    def from_env(cls, environ: dict = None, **overrides):
        """
        Merge the package defaults, the environment (REDISHOST, BFRING) and any explicit overrides, in that order.
        """
        environ = os.environ if environ is None else environ

        kwargs = {}
        if "REDISHOST" in environ:
            kwargs["redis_host"] = environ["REDISHOST"]
        if "BFRING" in environ:
            kwargs["ring_arcsec"] = _parse_ring_arcsec(environ["BFRING"], default=DEFAULT_CONFIG["ring_arcsec"])

        unknown = set(overrides) - {f.name for f in fields(cls)}
        if unknown:
            raise ValueError(f"Unknown config parameters {sorted(unknown)}.")

        kwargs.update({k: v for k, v in overrides.items() if v is not None})

        return cls(**kwargs)

    def to_dict(self):
        return asdict(self)
