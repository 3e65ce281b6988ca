from __future__ import annotations


class RecipeError(Exception):
    pass


class ParseError(RecipeError):
    pass


class DecodeError(ParseError):
    pass


class NotFound(RecipeError):
    pass


class NoSolutionFound(NotFound):
    def __init__(self, subarray, unixtime):
        super().__init__(f"No calibration solutions found for subarray '{subarray}' on or before {unixtime}.")


class AmbiguousSolutionFound(RecipeError):
    def __init__(self, keys):
        super().__init__(f"Expected at most one calibration solution, but found {len(keys)}: {list(keys)}.")


class TargetsNotFound(NotFound):
    def __init__(self, key):
        super().__init__(f"No target list found at key '{key}'.")


class AntennaNotFound(NotFound):
    def __init__(self, missing, available):
        super().__init__(
            f"Antennas {list(missing)} are not in the telescope geometry. Available antennas are {list(available)}."
        )


class SizeMismatch(RecipeError):
    def __init__(self, name, nbytes, expected):
        super().__init__(f"Field '{name}' has {nbytes} bytes, but {expected} bytes were expected.")


class UnsupportedFrameError(RecipeError):
    def __init__(self, frame):
        super().__init__(
            f"Unsupported antenna position frame '{frame}'. Only topocentric ENU ('enu') positions are supported."
        )


class DimensionMismatch(RecipeError):
    pass
