from __future__ import annotations

import os

import h5py
import numpy as np
import pytest

import bfrecipes
from bfrecipes.guppi import ObsHeader
from bfrecipes.recipe import BeamformerRecipe, format_obsinfo, resolve_bfr5_path, write_obsinfo, write_recipe

from .conftest import CAL_ANTENNAS, CAL_NCHAN


@pytest.fixture
def recipe(cal_store, header, config):
    obs = ObsHeader.from_header(header)
    beams = bfrecipes.ring_beam_pattern(obs.ra_rad, obs.dec_rad, nrings=1, source_name=obs.source_name)
    return bfrecipes.build_recipe(obs, beams, cal_store, config)


def test_recipe_contents(recipe):
    print(recipe)

    assert recipe.telinfo.antenna_names == CAL_ANTENNAS
    assert recipe.diminfo.nants == 4
    assert recipe.diminfo.npol == 2
    assert recipe.diminfo.nchan == CAL_NCHAN
    assert recipe.diminfo.nbeams == 7
    assert recipe.diminfo.ntimes == 5
    assert recipe.obsinfo.obsid == "meerkat:array_1:20231114T221320Z"
    assert recipe.obsinfo.freq_array.shape == (CAL_NCHAN,)
    assert np.allclose(np.diff(recipe.obsinfo.freq_array), 0.8359375e-3)
    assert recipe.delayinfo.delays.shape == (4, 7, 5)


def test_hdf5_round_trip(recipe, tmp_path):
    path = str(tmp_path / "recipe.bfr5")
    assert write_recipe(recipe, path)

    loaded = BeamformerRecipe.from_hdf5(path)

    assert loaded.diminfo == recipe.diminfo
    assert loaded.telinfo.antenna_names == recipe.telinfo.antenna_names
    assert np.array_equal(loaded.telinfo.antenna_positions, recipe.telinfo.antenna_positions)
    assert loaded.obsinfo.obsid == recipe.obsinfo.obsid
    assert loaded.beaminfo.names == recipe.beaminfo.names
    assert loaded.calinfo.key == recipe.calinfo.key
    assert loaded.calinfo.refant == recipe.calinfo.refant

    for attr in ["cal_K", "cal_B", "cal_G", "cal_all"]:
        assert np.array_equal(getattr(loaded.calinfo, attr), getattr(recipe.calinfo, attr))
    for attr in ["delays", "rates", "time_array", "jds"]:
        assert np.array_equal(getattr(loaded.delayinfo, attr), getattr(recipe.delayinfo, attr))


def test_hdf5_axes_are_reversed(recipe, tmp_path):
    path = str(tmp_path / "recipe.bfr5")
    write_recipe(recipe, path)

    with h5py.File(path, "r") as f:
        assert f["delayinfo/delays"].shape == (5, 7, 4)
        assert f["delayinfo/rates"].shape == (5, 7, 4)
        assert f["calinfo/cal_all"].shape == (CAL_NCHAN, 2, 4)
        assert f["calinfo/cal_K"].shape == (2, 4)
        assert f["telinfo/antenna_positions"].shape == (4, 3)
        assert f["diminfo/nbeams"][()] == 7
        assert list(f["beaminfo/src_names"].asstr()[()])[0] == "J0437-4715"


def test_write_recipe_refuses_to_overwrite(recipe, tmp_path):
    path = str(tmp_path / "nested" / "recipe.bfr5")
    assert write_recipe(recipe, path)
    mtime = os.path.getmtime(path)

    assert not write_recipe(recipe, path)
    assert os.path.getmtime(path) == mtime


def test_failed_write_leaves_no_file(recipe, tmp_path, monkeypatch):
    path = str(tmp_path / "recipe.bfr5")
    create_group = h5py.Group.create_group

    def failing_create_group(self, name, *args, **kwargs):
        if name == "delayinfo":
            raise OSError("disk full")
        return create_group(self, name, *args, **kwargs)

    monkeypatch.setattr(h5py.Group, "create_group", failing_create_group)
    with pytest.raises(OSError, match="disk full"):
        write_recipe(recipe, path)
    assert not os.path.exists(path)

    # a retry is not blocked by leftovers
    monkeypatch.undo()
    assert write_recipe(recipe, path)
    assert BeamformerRecipe.from_hdf5(path).delayinfo.delays.shape == recipe.delayinfo.delays.shape


def test_obsinfo(recipe, tmp_path):
    path = str(tmp_path / "recipe.bfr5")
    write_recipe(recipe, path)

    assert resolve_bfr5_path(str(tmp_path)) == path
    assert resolve_bfr5_path(str(tmp_path / "missing")) is None

    obsinfo_path = write_obsinfo(path)
    with open(obsinfo_path) as f:
        text = f.read()

    assert text == format_obsinfo(CAL_ANTENNAS)
    assert "instrument: BLUSE" in text
    assert "  [m003, x], [m003, y],\n" in text


def test_resolve_empty_dir(tmp_path):
    assert resolve_bfr5_path(str(tmp_path)) is None
