from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import yaml

from ..constants import NPOL
from ..errors import AmbiguousSolutionFound, NoSolutionFound, ParseError, SizeMismatch
from ..utils import parse_yaml

logger = logging.getLogger("bfrecipes")

# the producer writes complex128 and float64 arrays in column-major (antenna-fastest) order
FLOAT_DTYPE = np.dtype("<f8")
COMPLEX_DTYPE = np.dtype("<c16")


def cal_index_key(subarray: str) -> str:
    return f"{subarray}:cal_solutions:index"


@dataclass(frozen=True)
class CalSolution:
    """
    A calibration solution for one subarray. Delays (`cal_K`) are in nanoseconds.
    """

    key: str
    nants: int
    nchan: int
    antenna_names: list
    cal_K: np.ndarray  # (nants, npol)
    cal_B: np.ndarray  # (nants, npol, nchan)
    cal_G: np.ndarray  # (nants, npol)
    cal_all: np.ndarray  # (nants, npol, nchan)
    refant: str = ""

    def __repr__(self):
        return f"CalSolution(key='{self.key}', nants={self.nants}, nchan={self.nchan}, refant='{self.refant}')"


def _as_str(value) -> str:
    return value.decode() if isinstance(value, bytes) else str(value)


def _as_bytes(value) -> bytes:
    return value.encode() if isinstance(value, str) else bytes(value)


def decode_tensor(name: str, blob, shape: tuple, dtype) -> np.ndarray:
    """
    Interpret `blob` as a column-major array with the given shape and dtype. The size is checked first.
    """
    blob = _as_bytes(blob)
    dtype = np.dtype(dtype)
    expected = int(np.prod(shape)) * dtype.itemsize
    if len(blob) != expected:
        raise SizeMismatch(name, len(blob), expected)
    return np.frombuffer(blob, dtype=dtype).reshape(shape, order="F").copy()


def scrub_nans(x: np.ndarray) -> np.ndarray:
    """
    Replace NaN values (in either part of a complex number) with zero.
    """
    x = np.array(x, copy=True)
    x[np.isnan(x)] = 0
    return x


def find_solution_key(store, subarray: str, unixtime: float, fallback_key: str = None) -> str:
    """
    The key of the most recent calibration solution for `subarray` on or before `unixtime`.
    """
    keys = store.zrevrangebyscore(cal_index_key(subarray), unixtime, 0, start=0, num=1)

    if len(keys) == 0:
        if fallback_key is None:
            raise NoSolutionFound(subarray, unixtime)
        logger.warning(f"No cal solutions found on or before {unixtime}, using fallback key '{fallback_key}'.")
        keys = [fallback_key]

    if len(keys) > 1:
        raise AmbiguousSolutionFound([_as_str(k) for k in keys])

    return _as_str(keys[0])


def get_latest_solution(
    store,
    subarray: str,
    unixtime: float,
    fallback_key: str = None,
    nants_threshold: int = 64,
    nants_divisor: int = 2,
) -> CalSolution:
    """
    Fetch the most recent calibration solution for `subarray` as of `unixtime` from `store`.

    Parameters
    ----------
    store :
        A redis client (or anything with ``zrevrangebyscore`` and ``hgetall``).
    fallback_key : str, optional
        Solution key to use if none is found. By default a missing solution is an error.
    nants_threshold, nants_divisor : int
        Some producers write an inflated antenna count. Counts above `nants_threshold` are divided by
        `nants_divisor`.
    """
    key = find_solution_key(store, subarray, unixtime, fallback_key=fallback_key)
    logger.info(f"Using cal solution {key}")

    fields = {_as_str(k): v for k, v in store.hgetall(key).items()}

    required = ["nants", "nchan", "antenna_list", "cal_K", "cal_B", "cal_G", "cal_all"]
    missing = [k for k in required if k not in fields]
    if missing:
        raise ParseError(f"Cal solution '{key}' is missing fields {missing}.")

    try:
        nants = int(_as_str(fields["nants"]))
        nchan = int(_as_str(fields["nchan"]))
        antenna_names = parse_yaml(_as_str(fields["antenna_list"]))
    except (ValueError, yaml.YAMLError) as error:
        raise ParseError(f"Could not parse cal solution '{key}': {error!r}") from error

    if not isinstance(antenna_names, list):
        raise ParseError(f"Antenna list of cal solution '{key}' is not a list.")
    antenna_names = [str(name) for name in antenna_names]

    if nants > nants_threshold:
        corrected_nants = nants // nants_divisor
        logger.warning(
            f"Cal solution '{key}' has nants={nants} > {nants_threshold}, correcting to {corrected_nants}."
        )
        nants = corrected_nants

    if len(antenna_names) != nants:
        raise ParseError(f"Cal solution '{key}' has nants={nants} but lists {len(antenna_names)} antennas.")

    # cal_K is sometimes written as complex
    k_blob = _as_bytes(fields["cal_K"])
    k_dtype = COMPLEX_DTYPE if len(k_blob) == nants * NPOL * COMPLEX_DTYPE.itemsize else FLOAT_DTYPE
    cal_K = decode_tensor("cal_K", k_blob, (nants, NPOL), k_dtype)
    cal_B = decode_tensor("cal_B", fields["cal_B"], (nants, NPOL, nchan), COMPLEX_DTYPE)
    cal_G = decode_tensor("cal_G", fields["cal_G"], (nants, NPOL), COMPLEX_DTYPE)
    cal_all = decode_tensor("cal_all", fields["cal_all"], (nants, NPOL, nchan), COMPLEX_DTYPE)

    return CalSolution(
        key=key,
        nants=nants,
        nchan=nchan,
        antenna_names=antenna_names,
        cal_K=1e9 * np.real(scrub_nans(cal_K)),  # seconds to nanoseconds
        cal_B=scrub_nans(cal_B),
        cal_G=scrub_nans(cal_G),
        cal_all=scrub_nans(cal_all),
        refant=_as_str(fields.get("refant", b"")),
    )
