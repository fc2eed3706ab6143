"""Thermodynamic output: temperature, energy and pressure in reduced units."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import TextIO

import numpy as np

from minimd.atom import Atom

TIME_TOTAL = 0


class Units(IntEnum):
    """Unit systems understood by the thermodynamics."""

    LJ = 0
    METAL = 1


@dataclass(frozen=True)
class ThermoRecord:
    """One line of thermodynamic output."""

    step: int
    temperature: float
    energy: float
    pressure: float


class Thermo:
    """Computes and records thermodynamic quantities every ``nstat`` steps.

    ``force`` arguments are any object with ``eng_vdwl`` and ``virial``
    attributes. ``timer`` arguments are ``None`` or an object with an
    ``array`` of accumulated times and a ``barrier_stop(slot)`` method.
    """

    def __init__(self, nstat: int = 0, stream: TextIO | None = None) -> None:
        self.nstat = nstat
        self.ntimes = 0
        self.records: list[ThermoRecord] = []
        self.stream = stream
        self.rho = 0.0
        self.t_act = 0.0
        self.p_act = 0.0
        self.e_act = 0.0
        self.t_scale = 0.0
        self.e_scale = 0.0
        self.p_scale = 0.0
        self.mvv2e = 0.0
        self.dof_boltz = 0.0

    @property
    def mstat(self) -> int:
        """Number of records taken so far."""
        return len(self.records)

    def setup(self, rho: float, ntimes: int, atom: Atom, units) -> None:
        """Set unit conversion factors.

        In metal units the integrator's force time step must be divided by
        ``mvv2e`` afterwards.
        """
        units = Units(units)
        self.rho = rho
        self.ntimes = ntimes
        self.records = []
        volume = atom.box.xprd * atom.box.yprd * atom.box.zprd
        if units is Units.LJ:
            self.mvv2e = 1.0
            self.dof_boltz = atom.natoms * 3 - 3
            self.p_scale = 1.0 / 3 / volume
            self.e_scale = 0.5
        else:
            self.mvv2e = 1.036427e-04
            self.dof_boltz = (atom.natoms * 3 - 3) * 8.617343e-05
            self.p_scale = 1.602176e06 / 3 / volume
            self.e_scale = 524287.985533
        self.t_scale = self.mvv2e / self.dof_boltz

    def temperature(self, atom: Atom) -> float:
        """Reduced temperature of the owned atoms."""
        v = atom.v[: atom.nlocal]
        self.t_act = float(np.sum(v * v)) * atom.mass
        return self.t_act * self.t_scale

    def energy(self, atom: Atom, half_neigh: bool, force) -> float:
        """Reduced potential energy per atom."""
        e = force.eng_vdwl
        if half_neigh:
            e *= 2.0
        self.e_act = e * self.e_scale
        return self.e_act / atom.natoms

    def pressure(self, t: float, force) -> float:
        """Reduced pressure from temperature and virial."""
        self.p_act = force.virial
        return (t * self.dof_boltz + self.p_act) * self.p_scale

    def compute(self, iflag: int, atom: Atom, half_neigh: bool, force,
                timer=None) -> ThermoRecord | None:
        """Record and print the state at step ``iflag`` (``-1`` for the final step).

        Returns the new record, or ``None`` when this step is not sampled.
        """
        if iflag > 0 and (self.nstat == 0 or iflag % self.nstat):
            return None
        if iflag == -1 and self.nstat > 0 and self.ntimes % self.nstat == 0:
            return None

        self.t_act = self.e_act = self.p_act = 0.0
        t = self.temperature(atom)
        eng = self.energy(atom, half_neigh, force)
        p = self.pressure(t, force)

        istep = self.ntimes if iflag == -1 else iflag
        if iflag == 0:
            self.records = []
        record = ThermoRecord(istep, t, eng, p)
        self.records.append(record)

        elapsed = 0.0
        if timer is not None:
            old = timer.array[TIME_TOTAL]
            timer.barrier_stop(TIME_TOTAL)
            elapsed = timer.array[TIME_TOTAL]
            timer.array[TIME_TOTAL] = old

        stream = self.stream if self.stream is not None else sys.stdout
        shown = 0.0 if istep == 0 else elapsed
        stream.write("%d %e %e %e %6.3f\n" % (istep, t, eng, p, shown))
        return record