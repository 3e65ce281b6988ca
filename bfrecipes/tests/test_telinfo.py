from __future__ import annotations

import dataclasses

import numpy as np
import pytest

import bfrecipes
from bfrecipes.errors import AntennaNotFound, ParseError, UnsupportedFrameError
from bfrecipes.telinfo import InvalidTelescopeError, load_telinfo, parse_degrees, to_topocentric_xyz


@pytest.mark.parametrize("telescope_name", bfrecipes.all_telescopes)
def test_get_telinfo(telescope_name):
    telinfo = bfrecipes.get_telinfo(telescope_name)
    print(telinfo)
    print(telinfo.to_dataframe())


def test_telinfo_repr(telinfo):
    text = repr(telinfo)
    assert "location=(30.711°S, 21.444°E)" in text
    assert f"nants={telinfo.nants}" in text


def test_invalid_telescope():
    with pytest.raises(InvalidTelescopeError):
        bfrecipes.get_telinfo("arecibo")


def test_sexagesimal_location(telinfo):
    assert telinfo.latitude == pytest.approx(-(30 + 42 / 60 + 39.8 / 3600))
    assert telinfo.longitude == pytest.approx(21 + 26 / 60 + 38.0 / 3600)
    assert parse_degrees(12.5) == 12.5
    assert np.isnan(parse_degrees(None))


def test_load_telinfo(telinfo_file):
    telinfo = load_telinfo(telinfo_file)
    assert telinfo.nants == 4
    assert telinfo.antenna_names == ["m000", "m001", "m002", "m003"]
    assert np.allclose(telinfo.antenna_diameters, 13.5)
    assert telinfo.earth_location.lat.deg == pytest.approx(telinfo.latitude)


def test_reorder_by(telinfo):
    names = ["m003", "m000", "m005"]
    reordered = telinfo.reorder_by(names)

    assert reordered.antenna_names == names
    assert list(reordered.antenna_numbers) == [3, 0, 5]
    for i, name in enumerate(names):
        assert np.array_equal(reordered.antenna_positions[i], telinfo.antenna_positions[telinfo.antenna_names.index(name)])

    # the input is untouched
    assert telinfo.antenna_names[:2] == ["m000", "m001"]


def test_reorder_by_unknown_antenna(telinfo):
    with pytest.raises(AntennaNotFound, match="m063"):
        telinfo.reorder_by(["m000", "m063"])


def test_missing_antennas():
    with pytest.raises(ParseError):
        bfrecipes.TelInfo.from_config({"telescope_name": "MeerKAT", "latitude": -30.7})


@pytest.mark.parametrize(
    "antenna",
    [
        {"name": "m000", "number": 0, "position": [1.0, 2.0]},
        {"name": "m000", "number": 0},
        {"name": "m000", "number": "zero", "position": [1.0, 2.0, 3.0]},
        "m000",
    ],
)
def test_bad_antenna_entry(antenna):
    with pytest.raises(ParseError):
        bfrecipes.TelInfo.from_config({"antennas": [antenna]})


@pytest.mark.parametrize("frame", [None, "", "enu", "ENU", "topocentric-enu"])
def test_enu_frames(telinfo, frame):
    xyz = to_topocentric_xyz(dataclasses.replace(telinfo, antenna_position_frame=frame))
    assert xyz.shape == (telinfo.nants, 3)
    # rotation about the east axis
    assert np.allclose(xyz[:, 1], telinfo.antenna_positions[:, 0])
    assert np.allclose(np.linalg.norm(xyz, axis=1), np.linalg.norm(telinfo.antenna_positions, axis=1))


@pytest.mark.parametrize("frame", ["xyz", "ecef"])
def test_unsupported_frames(telinfo, frame):
    with pytest.raises(UnsupportedFrameError):
        to_topocentric_xyz(dataclasses.replace(telinfo, antenna_position_frame=frame))
