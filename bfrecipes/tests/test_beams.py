from __future__ import annotations

import json

import matplotlib.pyplot as plt
import numpy as np
import pytest

from bfrecipes.beams import BeamSet, fetch_targets, hexagonal_ring_offsets, parse_targets, ring_beam_pattern
from bfrecipes.coords import offsets_to_phi_theta, phi_theta_to_offsets
from bfrecipes.errors import DecodeError, DimensionMismatch, TargetsNotFound

plt.close("all")

TARGETS = [
    {"source_id": "J0437-4715", "ra": 69.3158, "dec": -47.2525},
    {"source_id": "J0835-4510", "ra": 128.8358, "dec": -45.1764},
    {"source_id": "J1644-4559", "ra": 251.2088, "dec": -45.9844},
]


def angular_separation(phi1, theta1, phi2, theta2):
    a = np.sin((theta2 - theta1) / 2) ** 2 + np.cos(theta1) * np.cos(theta2) * np.sin((phi2 - phi1) / 2) ** 2
    return 2 * np.arcsin(np.sqrt(np.clip(a, 0, 1)))


def test_offsets_transform():
    n = 256

    for cphi in np.random.uniform(low=0, high=2 * np.pi, size=5):
        for ctheta in np.random.uniform(low=-np.pi / 2, high=np.pi / 2, size=5):
            offsets = np.radians(
                np.random.uniform(low=-0.5, high=+0.5, size=(n, 2)),
            )

            _phitheta = offsets_to_phi_theta(offsets, cphi, ctheta)
            _offsets = phi_theta_to_offsets(_phitheta, cphi, ctheta)

            assert np.mean(np.square(offsets - _offsets)) < 1e-5


@pytest.mark.parametrize("nrings", [0, 1, 2, 4])
def test_hexagonal_ring_offsets(nrings):
    offsets = hexagonal_ring_offsets(nrings)
    assert offsets.shape == (1 + 3 * nrings * (nrings + 1), 2)

    r = np.hypot(*offsets.T)
    start = 1
    for ring in range(1, nrings + 1):
        ring_r = r[start : start + 6 * ring]
        # hexagon points lie between the inscribed and circumscribed circles
        assert np.all(ring_r <= ring + 1e-12)
        assert np.all(ring_r >= ring * np.sqrt(3) / 2 - 1e-12)
        start += 6 * ring


def test_ring_beam_pattern():
    ra, dec = np.radians(69.3158), np.radians(-47.2525)
    spacing = np.radians(10 / 3600)
    beams = ring_beam_pattern(ra, dec, nrings=4, ring_spacing=spacing, source_name="J0437")

    assert len(beams) == 61
    assert beams.names[:3] == ["J0437", "J0437_R1B1", "J0437_R1B2"]
    assert beams.names[-1] == "J0437_R4B24"
    assert len(set(beams.names)) == 61

    # the boresight is exact
    assert beams.ras[0] == ra
    assert beams.decs[0] == dec

    sep = angular_separation(ra, dec, beams.ras, beams.decs)
    offsets = spacing * hexagonal_ring_offsets(4)
    assert np.allclose(sep, np.hypot(*offsets.T), rtol=1e-6, atol=1e-12)


def test_ring_beam_pattern_default_name():
    beams = ring_beam_pattern(1.0, -0.5, nrings=1)
    assert beams.names[0] == "BORESIGHT"
    assert len(beams) == 7


def test_beam_set():
    beams = BeamSet(names=["a", "b", "c"], ras=[0.1, 0.2, 0.3], decs=[-0.1, -0.2, -0.3])

    assert beams[1] == ("b", 0.2, -0.2)
    assert beams[1:].names == ["b", "c"]
    assert beams.positions.shape == (2, 3)

    with pytest.raises(DimensionMismatch):
        BeamSet(names=["a", "b"], ras=[0.1], decs=[0.2])


def test_beam_plot():
    beams = ring_beam_pattern(1.0, -0.5, nrings=2, source_name="src")
    beams.plot(annotate=True)


def test_parse_targets():
    beams = parse_targets(json.dumps(TARGETS))
    assert beams.names == [t["source_id"] for t in TARGETS]
    assert np.allclose(beams.ras, np.radians([t["ra"] for t in TARGETS]))
    assert np.allclose(beams.decs, np.radians([t["dec"] for t in TARGETS]))


def test_parse_targets_limit():
    assert parse_targets(json.dumps(TARGETS), limit=2).names == ["J0437-4715", "J0835-4510"]


@pytest.mark.parametrize(
    "text",
    [
        '{"source_id": "J0437-4715"}',
        '[{"source_id": "J0437-4715", "ra": 69.3}]',
        '[{"source_id": "J0437-4715", "ra": "east", "dec": 1.0}]',
        "[1, 2",
    ],
)
def test_bad_targets(text):
    with pytest.raises(DecodeError):
        parse_targets(text)


def test_fetch_targets(store):
    key = "targets:MeerKAT:array_1:20231114T221320Z"
    store.set(key, json.dumps(TARGETS))
    assert len(fetch_targets(store, key, limit=64)) == 3

    with pytest.raises(TargetsNotFound):
        fetch_targets(store, "targets:MeerKAT:array_2:20231114T221320Z")


def test_fetch_targets_not_utf8(store):
    key = "targets:MeerKAT:array_1:20231114T221320Z"
    store.set(key, b'[{"source_id": "\xff\xfe", "ra": 1.0, "dec": 2.0}]')

    with pytest.raises(DecodeError, match=key):
        fetch_targets(store, key)
