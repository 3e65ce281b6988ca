import arrow
import numpy as np

from ..constants import OBSID_TIME_FORMAT, SECONDS_PER_DAY, UNIX_EPOCH_JD

__all__ = ["unix_to_jd", "obsid_timestamp"]


def unix_to_jd(t):
    return UNIX_EPOCH_JD + np.asarray(t, dtype=float) / SECONDS_PER_DAY


def obsid_timestamp(t) -> str:
    """
    Format a unix time like '20231114T221320Z'. Fractional seconds are truncated.
    """
    return arrow.get(int(np.floor(t))).to("utc").format(OBSID_TIME_FORMAT) + "Z"
