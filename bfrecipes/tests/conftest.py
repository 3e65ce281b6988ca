from __future__ import annotations

from collections import deque

import numpy as np
import pytest

import bfrecipes
from bfrecipes.calibration import cal_index_key
from bfrecipes.guppi import format_header

SYNCTIME = 1700000000

CAL_ANTENNAS = ["m003", "m001", "m000", "m002"]
CAL_NCHAN = 16


def _as_bytes(value):
    if isinstance(value, bytes):
        return value
    return str(value).encode()


class FakePubSub:
    def __init__(self, messages=(), on_empty=None):
        self.messages = deque(messages)
        self.on_empty = on_empty
        self.channels = []
        self.patterns = []
        self.closed = False

    def subscribe(self, *channels):
        self.channels.extend(channels)

    def psubscribe(self, *patterns):
        self.patterns.extend(patterns)

    def get_message(self, timeout=0.0):
        if self.messages:
            return self.messages.popleft()
        if self.on_empty is not None:
            self.on_empty()
        return None

    def close(self):
        self.closed = True


class FakeStore:
    """
    Just enough of a redis client for tests. Everything comes back as bytes, like a real client.
    """

    def __init__(self):
        self.zsets = {}
        self.hashes = {}
        self.strings = {}
        self.lists = {}
        self.pubsub_messages = []
        self.on_empty = None
        self.pubsubs = []
        self.closed = False

    def zadd(self, key, mapping):
        self.zsets.setdefault(key, {}).update(mapping)

    def zrevrangebyscore(self, key, max, min, start=None, num=None):
        members = sorted(
            ((score, member) for member, score in self.zsets.get(key, {}).items() if min <= score <= max),
            reverse=True,
        )
        members = [_as_bytes(member) for _, member in members]
        if start is not None and num is not None:
            members = members[start : start + num]
        return members

    def hset(self, key, mapping):
        self.hashes.setdefault(key, {}).update(mapping)

    def hgetall(self, key):
        return {_as_bytes(k): _as_bytes(v) for k, v in self.hashes.get(key, {}).items()}

    def set(self, key, value):
        self.strings[key] = value

    def get(self, key):
        value = self.strings.get(key)
        return None if value is None else _as_bytes(value)

    def rpush(self, key, *values):
        self.lists.setdefault(key, []).extend(values)

    def lrange(self, key, start, end):
        values = self.lists.get(key, [])
        values = values[start:] if end == -1 else values[start : end + 1]
        return [_as_bytes(v) for v in values]

    def pubsub(self, ignore_subscribe_messages=False):
        pubsub = FakePubSub(self.pubsub_messages, on_empty=self.on_empty)
        self.pubsubs.append(pubsub)
        return pubsub

    def close(self):
        self.closed = True


def cal_fields(antenna_names, nchan, cal_K=None, complex_K=False, nants=None):
    """
    The fields of a calibration solution hash, encoded the way the producer writes them.
    """
    nants_ = len(antenna_names)
    rng = np.random.default_rng(seed=42)

    if cal_K is None:
        cal_K = 1e-9 * np.arange(nants_ * 2, dtype=float).reshape(nants_, 2)
    if complex_K:
        cal_K = cal_K.astype(complex)
    cal_B = rng.normal(size=(nants_, 2, nchan)) + 1j * rng.normal(size=(nants_, 2, nchan))
    cal_G = rng.normal(size=(nants_, 2)) + 1j * rng.normal(size=(nants_, 2))
    cal_all = cal_B * cal_G[..., None]

    return {
        "nants": str(nants_ if nants is None else nants),
        "nchan": str(nchan),
        "antenna_list": "[" + ", ".join(f'"{name}"' for name in antenna_names) + "]",
        "refant": antenna_names[0],
        "cal_K": np.asarray(cal_K).tobytes(order="F"),
        "cal_B": cal_B.tobytes(order="F"),
        "cal_G": cal_G.tobytes(order="F"),
        "cal_all": cal_all.tobytes(order="F"),
    }


def add_cal_solution(store, subarray, unixtime, fields, key=None):
    key = key or f"{subarray}:cal_solutions:{int(unixtime)}"
    store.zadd(cal_index_key(subarray), {key: unixtime})
    store.hset(key, fields)
    return key


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def cal_store(store):
    add_cal_solution(store, "array_1", SYNCTIME - 3600, cal_fields(CAL_ANTENNAS, CAL_NCHAN))
    return store


@pytest.fixture
def telinfo():
    return bfrecipes.get_telinfo("meerkat")


@pytest.fixture
def telinfo_file(tmp_path):
    path = tmp_path / "telinfo.yml"
    path.write_text(
        """\
telescope_name: MeerKAT
antenna_position_frame: enu
latitude: "-30:42:39.8"
longitude: "21:26:38.0"
altitude: 1035.0
antenna_diameter: 13.5
antennas:
  - {name: m000, number: 0, position: [-8.258, -207.289, 1.2075]}
  - {name: m001, number: 1, position: [1.126, -171.762, 1.0755]}
  - {name: m002, number: 2, position: [-32.1085, -224.2365, 1.4775]}
  - {name: m003, number: 3, position: [-66.518, -202.276, 2.1555]}
"""
    )
    return str(path)


@pytest.fixture
def header():
    return {
        "BLOCSIZE": 16777216,
        "NBITS": 8,
        "NPOL": 4,
        "OBSNCHAN": 64,
        "SYNCTIME": SYNCTIME,
        "PKTSTART": 0,
        "TBIN": 1.1962616822429907e-06,
        "PIPERBLK": 16384,
        "SUBARRAY": "array_1",
        "TELESCOP": "MeerKAT",
        "SRC_NAME": "J0437-4715",
        "OBSFREQ": 1284.0,
        "OBSBW": 53.5,
        "CHAN_BW": 0.8359375,
        "SCHAN": 0,
        "RA": 69.3158,
        "DEC": -47.2525,
        "DWELL": 5.0,
        "UT1_UTC": 0.0,
    }


@pytest.fixture
def config(telinfo_file):
    return bfrecipes.RecipeConfig(telinfo_file=telinfo_file, nrings=1)


@pytest.fixture
def rawfile(tmp_path, header):
    path = tmp_path / "20231114" / "0001" / "Unknown" / "GUPPI" / "guppi_60262_80000_001.0000.raw"
    path.parent.mkdir(parents=True)
    path.write_bytes(format_header(header) + bytes(1024))
    return str(path)
