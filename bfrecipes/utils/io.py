from __future__ import annotations

import logging
import pathlib

import yaml

logger = logging.getLogger("bfrecipes")

__all__ = ["read_yaml", "parse_yaml"]


def parse_yaml(text: str):
    """
    Parse a YAML (or JSON) string.
    """
    return yaml.safe_load(text)


def read_yaml(path: str):
    """
    Return a YAML file as a dict
    """
    res = yaml.safe_load(pathlib.Path(path).expanduser().read_text())
    return res if res is not None else {}
