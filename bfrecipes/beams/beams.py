from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
from matplotlib import pyplot as plt

from ..coords import offsets_to_phi_theta, phi_theta_to_offsets
from ..errors import DimensionMismatch

logger = logging.getLogger("bfrecipes")

BORESIGHT_NAME = "BORESIGHT"


@dataclass(frozen=True)
class BeamSet:
    """
    Named beam positions. Right ascensions and declinations are in radians.
    """

    names: list = field(default_factory=list)
    ras: np.ndarray = field(default_factory=lambda: np.zeros(0))
    decs: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def __post_init__(self):
        object.__setattr__(self, "names", [str(name) for name in self.names])
        object.__setattr__(self, "ras", np.atleast_1d(np.asarray(self.ras, dtype=float)))
        object.__setattr__(self, "decs", np.atleast_1d(np.asarray(self.decs, dtype=float)))

        if not (len(self.names) == len(self.ras) == len(self.decs)):
            raise DimensionMismatch(
                f"Got {len(self.names)} beam names but {len(self.ras)} / {len(self.decs)} beam positions."
            )

    def __len__(self):
        return len(self.names)

    def __getitem__(self, key):
        if isinstance(key, (int, np.integer)):
            return self.names[key], self.ras[key], self.decs[key]
        idx = np.arange(len(self))[key]
        return BeamSet(names=[self.names[i] for i in idx], ras=self.ras[idx], decs=self.decs[idx])

    @property
    def positions(self):
        """
        A (2, nbeams) array of [ra, dec].
        """
        return np.stack([self.ras, self.decs])

    def offsets(self, center=None):
        """
        Tangent-plane offsets (in radians) of each beam from `center`, which defaults to the first beam.
        """
        cra, cdec = center if center is not None else (self.ras[0], self.decs[0])
        return phi_theta_to_offsets(np.stack([self.ras, self.decs], axis=-1), cra, cdec)

    def plot(self, center=None, ax=None, annotate: bool = False):
        offsets_arcsec = 3600 * np.degrees(self.offsets(center=center))

        if ax is None:
            fig, ax = plt.subplots(1, 1, figsize=(5, 5), constrained_layout=True)

        ax.scatter(*offsets_arcsec.T, marker="o", s=16, color="C0")
        if annotate:
            for name, (x, y) in zip(self.names, offsets_arcsec):
                ax.annotate(name, (x, y), fontsize=6)

        ax.set_xlabel(r"$\Delta \alpha$ [arcsec]")
        ax.set_ylabel(r"$\Delta \delta$ [arcsec]")
        ax.set_aspect("equal")

        return ax

    def __repr__(self):
        return f"BeamSet(nbeams={len(self)}, names={self.names[:3]}{'...' if len(self) > 3 else ''})"


def hexagonal_ring_offsets(nrings: int):
    """
    A (1 + 3 * nrings * (nrings + 1), 2) array of offsets: the origin, followed by concentric hexagonal
    rings where ring r has its corners at distance r and 6r points spaced evenly along its edges.
    """
    offsets = [np.zeros((1, 2))]
    corner_angles = np.radians(60 * np.arange(7))
    corners = np.c_[np.cos(corner_angles), np.sin(corner_angles)]

    for r in range(1, nrings + 1):
        frac = np.arange(r)[:, None] / r
        ring = [r * (corners[k] + frac * (corners[k + 1] - corners[k])) for k in range(6)]
        offsets.append(np.concatenate(ring, axis=0))

    return np.concatenate(offsets, axis=0)


def ring_beam_names(source_name: str, nrings: int):
    return [source_name, *[f"{source_name}_R{r}B{b}" for r in range(1, nrings + 1) for b in range(1, 6 * r + 1)]]


def ring_beam_pattern(
    ra: float,
    dec: float,
    nrings: int = 4,
    ring_spacing: float = np.radians(10 / 3600),
    source_name: str = None,
) -> BeamSet:
    """
    A beam at (ra, dec) and `nrings` hexagonal rings of beams around it, `ring_spacing` radians apart.
    """
    source_name = source_name or BORESIGHT_NAME
    offsets = ring_spacing * hexagonal_ring_offsets(nrings)

    ras, decs = offsets_to_phi_theta(offsets, ra, dec).T
    # the boresight stays exactly where it was asked to be
    ras[0], decs[0] = ra, dec

    logger.debug(f"Generated {len(offsets)} beams in {nrings} rings around {source_name}")

    return BeamSet(names=ring_beam_names(source_name, nrings), ras=ras, decs=decs)
