from __future__ import annotations

import numpy as np


def offsets_to_phi_theta(dX, cphi, ctheta):
    """
    A fast and well-conditioned method to convert from local dx/dy coordinates to phi/theta coordinates.
    """

    dx, dy = dX[..., 0], dX[..., 1]

    r = np.sqrt(dx**2 + dy**2)  # distance from the center
    p = np.arctan2(dx, -dy)  # 0 at the bottom, increases CCW to pi at the top

    # if we're looking at the north pole, we have (lon, lat) = (p, pi/2 - r)
    # a projection looking from the east
    proj_from_east = (np.sin(r) * np.cos(p) + 1j * np.cos(r)) * np.exp(1j * (ctheta - np.pi / 2))

    return np.stack(
        [
            (np.arctan2(np.sin(r) * np.sin(p), np.real(proj_from_east)) + cphi) % (2 * np.pi),
            np.arcsin(np.imag(proj_from_east)),
        ],
        axis=-1,
    )


def phi_theta_to_offsets(pt, cphi, ctheta):
    """
    A fast and well-conditioned to convert from phi/theta coordinates to local dx/dy coordinates.
    """

    phi, theta = pt[..., 0], pt[..., 1]

    dphi = phi - cphi
    proj_from_east = (np.cos(dphi) * np.cos(theta) + 1j * np.sin(theta)) * np.exp(1j * (np.pi / 2 - ctheta))
    dz = np.sin(dphi) * np.cos(theta) + 1j * np.real(proj_from_east)
    r = np.abs(dz)
    dz *= np.arcsin(r) / np.where(r > 0, r, 1.0)

    # negative, because we're looking at the observer
    return np.stack([np.real(dz), -np.imag(dz)], axis=-1)
