from __future__ import annotations

import logging

import numpy as np
import yaml

from ..errors import DecodeError, TargetsNotFound
from ..utils import parse_yaml
from .beams import BeamSet

logger = logging.getLogger("bfrecipes")


def parse_targets(text: str, limit: int = None) -> BeamSet:
    """
    Parse a JSON (or YAML) list of {"source_id", "ra", "dec"} records, with ra/dec in degrees.
    """
    try:
        targets = parse_yaml(text)
    except yaml.YAMLError as error:
        raise DecodeError(f"Could not decode target list: {error!r}") from error

    if not isinstance(targets, list):
        raise DecodeError(f"Target list should be a list, not {type(targets).__name__}.")

    if limit is not None and len(targets) > limit:
        logger.debug(f"Truncating target list from {len(targets)} to {limit} entries.")
        targets = targets[:limit]

    try:
        names = [str(target["source_id"]) for target in targets]
        ras = np.radians([float(target["ra"]) for target in targets])
        decs = np.radians([float(target["dec"]) for target in targets])
    except (KeyError, TypeError, ValueError) as error:
        raise DecodeError(f"Bad target entry: {error!r}") from error

    return BeamSet(names=names, ras=ras, decs=decs)


def fetch_targets(store, key: str, limit: int = None) -> BeamSet:
    """
    Fetch the target list stored at `key`. At most `limit` targets are returned.
    """
    text = store.get(key)
    if text is None:
        raise TargetsNotFound(key)
    if isinstance(text, bytes):
        try:
            text = text.decode()
        except UnicodeDecodeError as error:
            raise DecodeError(f"Target list at '{key}' is not valid UTF-8: {error!r}") from error
    return parse_targets(text, limit=limit)
