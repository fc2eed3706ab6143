"""Initial velocity adjustment: zero total momentum and set the temperature."""

from __future__ import annotations

import math

import numpy as np

from minimd.atom import Atom
from minimd.thermo import Thermo


def zero_momentum(atom: Atom) -> np.ndarray:
    """Remove the centre-of-mass velocity; returns the velocity removed."""
    if atom.natoms <= 0:
        raise ValueError("no atoms to adjust")
    n = atom.nlocal
    mean = atom.v[:n].sum(axis=0) / atom.natoms
    atom.v[:n] -= mean
    return mean


def create_velocity(t_request: float, atom: Atom, thermo: Thermo) -> float:
    """Zero the momentum and rescale velocities to temperature ``t_request``.

    Returns the scale factor applied.
    """
    if t_request < 0.0:
        raise ValueError("requested temperature must not be negative")
    zero_momentum(atom)
    thermo.t_act = 0.0
    t = thermo.temperature(atom)
    if not t > 0.0:
        raise ValueError("cannot rescale velocities: temperature is zero")
    factor = math.sqrt(t_request / t)
    atom.v[: atom.nlocal] *= factor
    return factor