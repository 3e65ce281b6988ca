from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from ..errors import ParseError
from ..utils import obsid_timestamp

logger = logging.getLogger("bfrecipes")

CARD_SIZE = 80
KEY_SIZE = 8
MAX_HEADER_CARDS = 2**14

DEFAULT_SUBARRAY = "array_1"
DEFAULT_TELESCOPE = "MeerKAT"
DEFAULT_INSTRUMENT = "bluse"
DEFAULT_SOURCE_NAME = "UNKNOWN"


def parse_value(value: str):
    value = value.strip()
    if value.startswith("'"):
        return value[1:].rstrip().rstrip("'").rstrip()
    for parse in (int, float):
        try:
            return parse(value)
        except ValueError:
            pass
    return value


def parse_card(card: str):
    """
    Split an 80 character "KEY     = value" card into (key, value).
    """
    key, sep, value = card.partition("=")
    if not sep:
        raise ParseError(f"Header card has no '=': {card!r}")
    return key.strip().upper(), parse_value(value)


def read_header(f) -> dict:
    """
    Read a GUPPI RAW header (80 byte cards, terminated by an END card) from an open binary file.
    """
    header = {}
    for _ in range(MAX_HEADER_CARDS):
        raw_card = f.read(CARD_SIZE)
        if len(raw_card) < CARD_SIZE:
            raise ParseError("Reached the end of the file before the END card of the header.")
        card = raw_card.decode("ascii", errors="replace")
        if card[:KEY_SIZE].strip() == "END":
            return header
        key, value = parse_card(card)
        header[key] = value
    raise ParseError(f"No END card in the first {MAX_HEADER_CARDS} header cards.")


def format_card(key: str, value) -> bytes:
    if isinstance(value, str):
        value = f"'{value:<8}'"
    return f"{key.upper():<{KEY_SIZE}}= {value}".ljust(CARD_SIZE)[:CARD_SIZE].encode("ascii")


def format_header(header: dict) -> bytes:
    """
    The inverse of ``read_header``.
    """
    return b"".join(format_card(k, v) for k, v in header.items()) + b"END".ljust(CARD_SIZE)


def _get(header: dict, key: str, default=None):
    for k in (key.upper(), key.lower()):
        if k in header:
            return header[k]
    return default


def _required(header: dict, key: str):
    value = _get(header, key)
    if value is None:
        raise ParseError(f"Header has no '{key.upper()}' field.")
    return value


def _optional_int(header: dict, key: str, default=None):
    value = _get(header, key)
    return default if value is None else int(value)


def _optional_float(header: dict, key: str):
    value = _get(header, key)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as error:
        raise ParseError(f"Header field '{key.upper()}' is not a number: {value!r}") from error


@dataclass(frozen=True)
class ObsHeader:
    """
    The fields of a GUPPI RAW header that a recipe needs.
    """

    synctime: float
    pktstart: int
    tbin: float  # in seconds
    piperblk: int
    ntime: int = None  # time samples per block
    subarray: str = DEFAULT_SUBARRAY
    telescope: str = DEFAULT_TELESCOPE
    instrument: str = DEFAULT_INSTRUMENT
    source_name: str = DEFAULT_SOURCE_NAME
    obsfreq: float = None  # in MHz
    obsbw: float = None  # in MHz
    obsnchan: int = None
    chan_bw: float = None  # in MHz
    schan: int = 0
    ra_deg: float = None
    dec_deg: float = None
    dwell: float = None  # in seconds
    ut1_utc: float = None  # in seconds

    @classmethod
    def from_header(cls, header: dict):
        try:
            synctime = float(_required(header, "synctime"))
            pktstart = int(_required(header, "pktstart"))
            tbin = float(_required(header, "tbin"))
            piperblk = int(_required(header, "piperblk"))
        except (TypeError, ValueError) as error:
            raise ParseError(f"Bad timing fields in header: {error!r}") from error

        try:
            ntime = samples_per_block(header)
            obsnchan = _optional_int(header, "obsnchan")
            schan = _optional_int(header, "schan", 0)
        except (TypeError, ValueError) as error:
            raise ParseError(f"Bad channel fields in header: {error!r}") from error

        if ntime is None and pktstart != 0:
            raise ParseError("Header needs BLOCSIZE, NBITS, NPOL and OBSNCHAN to compute the start time.")

        return cls(
            synctime=synctime,
            pktstart=pktstart,
            tbin=tbin,
            piperblk=piperblk,
            ntime=ntime,
            subarray=str(_get(header, "subarray", DEFAULT_SUBARRAY)),
            telescope=str(_get(header, "telescop", DEFAULT_TELESCOPE)),
            instrument=str(_get(header, "instrmnt", DEFAULT_INSTRUMENT)),
            source_name=str(_get(header, "src_name", DEFAULT_SOURCE_NAME)),
            obsfreq=_optional_float(header, "obsfreq"),
            obsbw=_optional_float(header, "obsbw"),
            obsnchan=obsnchan,
            chan_bw=_optional_float(header, "chan_bw"),
            schan=schan,
            ra_deg=_optional_float(header, "ra"),
            dec_deg=_optional_float(header, "dec"),
            dwell=_optional_float(header, "dwell"),
            ut1_utc=_optional_float(header, "ut1_utc"),
        )

    def _need(self, *attrs):
        missing = [attr.upper() for attr in attrs if getattr(self, attr) is None]
        if missing:
            raise ParseError(f"Header has no {missing} field(s).")

    @property
    def start_time(self) -> float:
        """
        Seconds since the unix epoch of the first sample (at PKTSTART).
        """
        if self.pktstart == 0:
            return self.synctime
        secs_per_block = self.tbin * self.ntime
        secs_per_pktidx = secs_per_block / self.piperblk
        return self.synctime + self.pktstart * secs_per_pktidx

    def obs_id(self, telescope: str = None) -> str:
        telescope = telescope or self.telescope.lower()
        return ":".join([telescope, self.subarray, obsid_timestamp(self.start_time)])

    def chanfreq(self, chan: int) -> float:
        """
        Center frequency (in MHz) of 1-based channel `chan` of this header's sub-band.
        """
        self._need("obsfreq", "obsbw", "obsnchan")
        foff = self.obsbw / self.obsnchan
        return self.obsfreq - self.obsbw / 2 + (chan - 0.5) * foff

    @property
    def fch1_ghz(self) -> float:
        """
        Frequency of the first channel of the whole band (not just this sub-band), in GHz.
        """
        self._need("chan_bw")
        return (self.chanfreq(1) - self.schan * self.chan_bw) / 1e3

    @property
    def foff_ghz(self) -> float:
        self._need("chan_bw")
        return self.chan_bw / 1e3

    @property
    def ra_rad(self) -> float:
        self._need("ra_deg")
        return float(np.radians(self.ra_deg))

    @property
    def dec_rad(self) -> float:
        self._need("dec_deg")
        return float(np.radians(self.dec_deg))


def samples_per_block(header: dict):
    """
    Time samples per block, or None if the header does not say how big a block is.
    """
    blocsize = _get(header, "blocsize")
    obsnchan = _get(header, "obsnchan")
    if blocsize is None or obsnchan is None:
        return None
    nbits = int(_get(header, "nbits", 8))
    npol = int(_get(header, "npol", 2))
    # NPOL=4 means two complex polarizations
    npol = 2 if npol == 4 else npol
    return int(blocsize) * 8 // (2 * npol * nbits * int(obsnchan))
