from .header import ObsHeader, format_header, parse_card, parse_value, read_header, samples_per_block  # noqa
from .status import header_for_subarray, header_from_hash  # noqa


def read_rawfile_header(path: str) -> dict:
    with open(path, "rb") as f:
        return read_header(f)
