from __future__ import annotations

import argparse
import logging
import os

from .assembly import rawfile_to_bfr5
from .config import RecipeConfig
from .listener import run_targets_listener
from .recipe import resolve_bfr5_path, write_obsinfo
from .store import connect

logger = logging.getLogger("bfrecipes")


def _setup_logging(environ=None):
    environ = os.environ if environ is None else environ
    if environ.get("BFR_DEBUG") == "1":
        logger.setLevel(logging.DEBUG)


def raw2bfr(argv=None) -> int:
    """
    Make a recipe for each GUPPI RAW file. If the first path is a directory, recipes are written under it;
    otherwise each goes next to its RAW file.
    """
    parser = argparse.ArgumentParser(
        prog="raw2bfr",
        usage="%(prog)s [-h] [--telinfo-file PATH] [OUTDIR] RAWFILE [RAWFILE ...]",
        description="Make beamformer recipe (.bfr5) files for GUPPI RAW files.",
        epilog="The spacing of the beam rings can be set in arcseconds with the BFRING environment variable.",
    )
    parser.add_argument("paths", nargs="*", metavar="PATH", help="[OUTDIR] RAWFILE [RAWFILE ...]")
    parser.add_argument("--telinfo-file", default=None, help="telescope geometry YAML (default: ~/telinfo.yml)")
    args = parser.parse_args(argv)

    _setup_logging()

    paths = list(args.paths)
    outdir = paths.pop(0) if paths and os.path.isdir(paths[0]) else None
    if not paths:
        parser.error("no RAW files given")

    config = RecipeConfig.from_env(telinfo_file=args.telinfo_file)
    store = connect(config)

    nfailed = 0
    try:
        for rawname in paths:
            try:
                rawfile_to_bfr5(rawname, outdir, store, config)
            except Exception:
                logger.exception(f"Could not make a recipe for {rawname}")
                nfailed += 1
    finally:
        store.close()

    if nfailed:
        logger.error(f"Failed to make recipes for {nfailed} of {len(paths)} RAW files.")
        return 1
    return 0


def targets2bfr(argv=None) -> int:
    """
    Listen for target lists and make a recipe for each one, until interrupted.
    """
    parser = argparse.ArgumentParser(
        prog="targets2bfr",
        description="Make beamformer recipe (.bfr5) files for target lists announced over redis.",
    )
    parser.add_argument("outdir", metavar="OUTDIR", help="directory to write recipes to")
    parser.add_argument(
        "telinfo_file", metavar="TELINFO_FILE", nargs="?", default=None, help="default: ~/telinfo.yml"
    )
    args = parser.parse_args(argv)

    _setup_logging()

    config = RecipeConfig.from_env(telinfo_file=args.telinfo_file)
    run_targets_listener(config, args.outdir)
    return 0


def bfr2obsinfo(argv=None) -> int:
    """
    Write an obsinfo.yml next to each recipe (or the first recipe in each directory).
    """
    parser = argparse.ArgumentParser(
        prog="bfr2obsinfo",
        description="Write obsinfo.yml files describing the antennas of beamformer recipes.",
    )
    parser.add_argument("paths", nargs="+", metavar="PATH", help="recipe files or directories of them")
    parser.add_argument("--instrument", default="BLUSE", help="instrument name (default: %(default)s)")
    args = parser.parse_args(argv)

    _setup_logging()

    for path in args.paths:
        bfr5_path = resolve_bfr5_path(path)
        if bfr5_path is not None:
            write_obsinfo(bfr5_path, instrument=args.instrument)

    return 0
