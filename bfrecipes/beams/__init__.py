from .beams import BORESIGHT_NAME, BeamSet, hexagonal_ring_offsets, ring_beam_names, ring_beam_pattern  # noqa
from .targets import fetch_targets, parse_targets  # noqa
