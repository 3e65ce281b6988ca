import logging
import time as ttime

__all__ = ["humanize_time", "log_duration"]


def humanize_time(seconds):
    if seconds < 1e-3:
        return f"{1e6 * seconds:.01f} µs"
    if seconds < 1e0:
        return f"{1e3 * seconds:.01f} ms"
    if seconds < 60:
        return f"{seconds:.02f} s"
    return f"{int(seconds // 60)} min {seconds % 60:.0f} s"


def log_duration(ref_time, message, level="debug"):
    logger = logging.getLogger("bfrecipes")
    string = f"{message} in {humanize_time(ttime.monotonic() - ref_time)}."
    getattr(logger, level)(string)
