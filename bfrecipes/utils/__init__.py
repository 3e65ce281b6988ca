from __future__ import annotations

# nothing in here should import from other bfrecipes modules
from .io import *  # noqa
from .time import *  # noqa
