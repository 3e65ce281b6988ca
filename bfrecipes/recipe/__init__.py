from .obsinfo import antenna_names_from_bfr5, format_obsinfo, resolve_bfr5_path, write_obsinfo  # noqa
from .recipe import BeamformerRecipe, DimInfo, ObsInfo, make_diminfo, write_recipe  # noqa
