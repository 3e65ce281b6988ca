from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from astropy import units as u
from astropy.coordinates import Angle, EarthLocation

from ..errors import AntennaNotFound, ParseError, UnsupportedFrameError
from ..io import repr_lat_lon
from ..utils import read_yaml

logger = logging.getLogger("bfrecipes")

ENU_FRAMES = ["", "enu", "topocentric-enu"]


def parse_degrees(value) -> float:
    """
    Decimal degrees from a number or a sexagesimal string like "-30:42:39.8".
    """
    if value is None:
        return np.nan
    if isinstance(value, str):
        return float(Angle(value, unit=u.deg).deg)
    return float(value)


@dataclass(frozen=True)
class TelInfo:
    """
    The static geometry of a telescope: where its antennas are, and where it is on the earth.
    """

    antenna_names: list = field(default_factory=list)
    antenna_numbers: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=int))
    antenna_positions: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))  # in meters
    antenna_diameters: np.ndarray = field(default_factory=lambda: np.zeros(0))  # in meters
    antenna_position_frame: str = "enu"
    latitude: float = np.nan  # in degrees
    longitude: float = np.nan  # in degrees
    altitude: float = np.nan  # in meters
    telescope_name: str = "Unknown"

    def __post_init__(self):
        object.__setattr__(self, "antenna_names", [str(name) for name in self.antenna_names])
        object.__setattr__(self, "antenna_numbers", np.asarray(self.antenna_numbers, dtype=int))
        object.__setattr__(self, "antenna_positions", np.asarray(self.antenna_positions, dtype=float))
        object.__setattr__(self, "antenna_diameters", np.asarray(self.antenna_diameters, dtype=float))

        if self.antenna_positions.ndim != 2 or self.antenna_positions.shape[-1] != 3:
            raise ParseError(f"Antenna positions are not 3D (shape {self.antenna_positions.shape}).")

        lengths = {
            "antenna_names": len(self.antenna_names),
            "antenna_numbers": len(self.antenna_numbers),
            "antenna_positions": len(self.antenna_positions),
            "antenna_diameters": len(self.antenna_diameters),
        }
        if len(set(lengths.values())) > 1:
            raise ParseError(f"Per-antenna fields have different lengths: {lengths}.")

    @classmethod
    def from_config(cls, config: dict):
        if not isinstance(config, dict):
            raise ParseError(f"Telescope geometry must be a mapping, not {type(config).__name__}.")
        if "antennas" not in config:
            raise ParseError("Telescope geometry has no 'antennas' field.")

        default_diameter = float(config.get("antenna_diameter", 0.0))
        names, numbers, positions, diameters = [], [], [], []

        for antenna in config["antennas"]:
            try:
                position = [float(x) for x in antenna["position"]]
                names.append(str(antenna["name"]))
                numbers.append(int(antenna["number"]))
                diameters.append(float(antenna.get("diameter", default_diameter)))
            except (AttributeError, KeyError, TypeError, ValueError) as error:
                raise ParseError(f"Bad antenna entry {antenna!r}: {error!r}") from error
            if len(position) != 3:
                raise ParseError(f"Position of antenna '{antenna['name']}' is not 3D: {position}.")
            positions.append(position)

        frame = config.get("antenna_position_frame")

        return cls(
            antenna_names=names,
            antenna_numbers=numbers,
            antenna_positions=np.reshape(positions, (-1, 3)),
            antenna_diameters=diameters,
            antenna_position_frame="enu" if frame is None else str(frame),
            latitude=parse_degrees(config.get("latitude")),
            longitude=parse_degrees(config.get("longitude")),
            altitude=float(config.get("altitude", np.nan)),
            telescope_name=str(config.get("telescope_name", "Unknown")),
        )

    @property
    def nants(self):
        return len(self.antenna_names)

    @property
    def earth_location(self):
        return EarthLocation.from_geodetic(lon=self.longitude, lat=self.latitude, height=self.altitude)

    def reorder_by(self, names):
        """
        Return a new TelInfo with antennas in the order given by `names`. Antennas not in `names` are dropped.
        """
        index_of = {name: index for index, name in enumerate(self.antenna_names)}
        missing = [name for name in names if name not in index_of]
        if missing:
            raise AntennaNotFound(missing, available=self.antenna_names)

        idx = np.array([index_of[name] for name in names], dtype=int)

        return TelInfo(
            antenna_names=[self.antenna_names[i] for i in idx],
            antenna_numbers=self.antenna_numbers[idx],
            antenna_positions=self.antenna_positions[idx],
            antenna_diameters=self.antenna_diameters[idx],
            antenna_position_frame=self.antenna_position_frame,
            latitude=self.latitude,
            longitude=self.longitude,
            altitude=self.altitude,
            telescope_name=self.telescope_name,
        )

    def to_dataframe(self):
        return pd.DataFrame(
            {
                "number": self.antenna_numbers,
                "east": self.antenna_positions[:, 0],
                "north": self.antenna_positions[:, 1],
                "up": self.antenna_positions[:, 2],
                "diameter": self.antenna_diameters,
            },
            index=pd.Index(self.antenna_names, name="name"),
        )

    def __repr__(self):
        location = repr_lat_lon(self.latitude, self.longitude)
        return (
            f"TelInfo(telescope_name='{self.telescope_name}', nants={self.nants}, "
            f"location={location}, altitude={self.altitude} m, frame='{self.antenna_position_frame}')"
        )


def load_telinfo(path: str) -> TelInfo:
    logger.debug(f"Loading telescope geometry from {path}")
    return TelInfo.from_config(read_yaml(path))


def enu_to_xyz(enu, latitude):
    """
    Rotate (..., 3) east/north/up coordinates into the topocentric XYZ frame, where X points at the
    meridian on the equator, Y points east, and Z points at the celestial pole. `latitude` is in radians.
    """
    e, n, up = enu[..., 0], enu[..., 1], enu[..., 2]
    sin_lat, cos_lat = np.sin(latitude), np.cos(latitude)
    return np.stack([-sin_lat * n + cos_lat * up, e, cos_lat * n + sin_lat * up], axis=-1)


def to_topocentric_xyz(telinfo: TelInfo):
    """
    Antenna positions of `telinfo` as (nants, 3) topocentric XYZ, in the same length units as the input.
    """
    frame = (telinfo.antenna_position_frame or "").strip().lower()
    if frame not in ENU_FRAMES:
        raise UnsupportedFrameError(telinfo.antenna_position_frame)
    return enu_to_xyz(telinfo.antenna_positions, np.radians(telinfo.latitude))
