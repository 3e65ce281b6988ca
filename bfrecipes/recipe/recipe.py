from __future__ import annotations

import logging
import os
import time as ttime
from dataclasses import dataclass

import h5py
import numpy as np

from .._version import __version__
from ..beams import BeamSet
from ..calibration import CalSolution
from ..constants import NPOL
from ..geometry import DelayInfo
from ..io import leftpad, log_duration
from ..telinfo import TelInfo

logger = logging.getLogger("bfrecipes")

STRING_DTYPE = h5py.string_dtype()


@dataclass(frozen=True)
class DimInfo:
    nants: int
    npol: int
    nchan: int
    nbeams: int
    ntimes: int


@dataclass(frozen=True)
class ObsInfo:
    obsid: str
    freq_array: np.ndarray  # in GHz
    phase_center_ra: float  # in radians
    phase_center_dec: float  # in radians
    instrument_name: str


def _write_strings(group, name, strings):
    group.create_dataset(name, data=np.array(list(strings), dtype=object), dtype=STRING_DTYPE)


def _read_string(dataset):
    return dataset.asstr()[()]


def _read_strings(dataset):
    return [str(s) for s in dataset.asstr()[()]]


@dataclass(frozen=True)
class BeamformerRecipe:
    """
    Everything a beamformer needs to know about a scan.

    Arrays are indexed as (antenna, [polarization / beam], [channel / time]) in memory. In the file they are
    stored with their axes reversed, i.e. delays are (ntimes, nbeams, nants) on disk.
    """

    diminfo: DimInfo
    telinfo: TelInfo
    obsinfo: ObsInfo
    calinfo: CalSolution
    beaminfo: BeamSet
    delayinfo: DelayInfo

    def __repr__(self):
        parts = [
            f"diminfo: {self.diminfo}",
            f"telinfo: {self.telinfo}",
            f"obsinfo: ObsInfo(obsid='{self.obsinfo.obsid}', instrument_name='{self.obsinfo.instrument_name}')",
            f"calinfo: {self.calinfo}",
            f"beaminfo: {self.beaminfo}",
            f"delayinfo: {self.delayinfo}",
        ]
        return "BeamformerRecipe:\n" + leftpad("\n".join(parts))

    def to_hdf5(self, path: str):
        """
        Write the recipe to a new HDF5 file. This fails if the file already exists.
        """
        ref_time = ttime.monotonic()

        f = h5py.File(path, "w-")
        try:
            with f:
                f.attrs["creator"] = f"bfrecipes {__version__}"

                g = f.create_group("diminfo")
                for k in ["nants", "npol", "nchan", "nbeams", "ntimes"]:
                    g[k] = getattr(self.diminfo, k)

                g = f.create_group("telinfo")
                g["antenna_positions"] = self.telinfo.antenna_positions
                g["antenna_position_frame"] = self.telinfo.antenna_position_frame
                _write_strings(g, "antenna_names", self.telinfo.antenna_names)
                g["antenna_numbers"] = self.telinfo.antenna_numbers
                g["antenna_diameters"] = self.telinfo.antenna_diameters
                g["latitude"] = self.telinfo.latitude
                g["longitude"] = self.telinfo.longitude
                g["altitude"] = self.telinfo.altitude
                g["telescope_name"] = self.telinfo.telescope_name

                g = f.create_group("obsinfo")
                g["obsid"] = self.obsinfo.obsid
                g["freq_array"] = self.obsinfo.freq_array
                g["phase_center_ra"] = self.obsinfo.phase_center_ra
                g["phase_center_dec"] = self.obsinfo.phase_center_dec
                g["instrument_name"] = self.obsinfo.instrument_name

                g = f.create_group("calinfo")
                g.attrs["solution_key"] = self.calinfo.key
                g["refant"] = self.calinfo.refant
                g["cal_K"] = self.calinfo.cal_K.T
                g["cal_B"] = self.calinfo.cal_B.T
                g["cal_G"] = self.calinfo.cal_G.T
                g["cal_all"] = self.calinfo.cal_all.T

                g = f.create_group("beaminfo")
                g["ras"] = self.beaminfo.ras
                g["decs"] = self.beaminfo.decs
                _write_strings(g, "src_names", self.beaminfo.names)

                g = f.create_group("delayinfo")
                g["delays"] = self.delayinfo.delays.T
                g["rates"] = self.delayinfo.rates.T
                g["time_array"] = self.delayinfo.time_array
                g["jds"] = self.delayinfo.jds
                g["dut1"] = self.delayinfo.dut1
        except Exception:
            os.remove(path)
            logger.warning(f"Removed partially written recipe {path}")
            raise

        log_duration(ref_time, f"Wrote recipe to {path}")

    @classmethod
    def from_hdf5(cls, path: str):
        with h5py.File(path, "r") as f:
            diminfo = DimInfo(**{k: int(f["diminfo"][k][()]) for k in ["nants", "npol", "nchan", "nbeams", "ntimes"]})

            g = f["telinfo"]
            telinfo = TelInfo(
                antenna_names=_read_strings(g["antenna_names"]),
                antenna_numbers=g["antenna_numbers"][()],
                antenna_positions=g["antenna_positions"][()],
                antenna_diameters=g["antenna_diameters"][()],
                antenna_position_frame=_read_string(g["antenna_position_frame"]),
                latitude=float(g["latitude"][()]),
                longitude=float(g["longitude"][()]),
                altitude=float(g["altitude"][()]),
                telescope_name=_read_string(g["telescope_name"]),
            )

            g = f["obsinfo"]
            obsinfo = ObsInfo(
                obsid=_read_string(g["obsid"]),
                freq_array=g["freq_array"][()],
                phase_center_ra=float(g["phase_center_ra"][()]),
                phase_center_dec=float(g["phase_center_dec"][()]),
                instrument_name=_read_string(g["instrument_name"]),
            )

            g = f["calinfo"]
            calinfo = CalSolution(
                key=str(g.attrs.get("solution_key", "")),
                nants=diminfo.nants,
                nchan=diminfo.nchan,
                antenna_names=list(telinfo.antenna_names),
                cal_K=g["cal_K"][()].T,
                cal_B=g["cal_B"][()].T,
                cal_G=g["cal_G"][()].T,
                cal_all=g["cal_all"][()].T,
                refant=_read_string(g["refant"]),
            )

            g = f["beaminfo"]
            beaminfo = BeamSet(names=_read_strings(g["src_names"]), ras=g["ras"][()], decs=g["decs"][()])

            g = f["delayinfo"]
            delayinfo = DelayInfo(
                delays=g["delays"][()].T,
                rates=g["rates"][()].T,
                time_array=g["time_array"][()],
                jds=g["jds"][()],
                dut1=float(g["dut1"][()]),
            )

        return cls(
            diminfo=diminfo,
            telinfo=telinfo,
            obsinfo=obsinfo,
            calinfo=calinfo,
            beaminfo=beaminfo,
            delayinfo=delayinfo,
        )


def write_recipe(recipe: BeamformerRecipe, path: str) -> bool:
    """
    Write `recipe` to `path`, creating directories as needed. An existing path is never overwritten;
    we log a warning and return False instead.
    """
    if os.path.exists(path):
        logger.warning(f"Refusing to overwrite existing path {path}")
        return False

    dirname = os.path.dirname(path)
    if dirname:
        os.makedirs(dirname, exist_ok=True)

    recipe.to_hdf5(path)
    logger.info(f"Wrote {path}")
    return True


def make_diminfo(calinfo: CalSolution, delayinfo: DelayInfo) -> DimInfo:
    return DimInfo(
        nants=calinfo.nants,
        npol=NPOL,
        nchan=calinfo.nchan,
        nbeams=delayinfo.nbeams,
        ntimes=delayinfo.ntimes,
    )
