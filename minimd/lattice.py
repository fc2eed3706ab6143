"""Simulation box and fcc lattice creation with reproducible velocities."""

from __future__ import annotations

from typing import Iterator

from minimd.atom import Atom

_IA = 16807
_IM = 2147483647
_AM = 1.0 / _IM
_IQ = 127773
_IR = 2836
_SUBBOX = 8


class SetupError(Exception):
    """The system could not be created consistently."""


def park_miller(seed: int) -> Iterator[float]:
    """Yield the Park-Miller minimal standard sequence in ``[0, 1)`` from ``seed``."""
    idum = int(seed)
    while True:
        k = abs(idum) // _IQ
        if idum < 0:
            k = -k
        idum = _IA * (idum - k * _IQ) - _IR * k
        if idum < 0:
            idum += _IM
        yield _AM * idum


def _velocity_component(gen: Iterator[float]) -> float:
    for _ in range(5):
        next(gen)
    return next(gen)


def create_box(atom: Atom, nx: int, ny: int, nz: int, rho: float) -> None:
    """Size the global box for ``nx * ny * nz`` fcc unit cells at density ``rho``."""
    lattice = (4.0 / rho) ** (1.0 / 3.0)
    atom.box.xprd = nx * lattice
    atom.box.yprd = ny * lattice
    atom.box.zprd = nz * lattice


def _covers_whole_box(atom: Atom) -> bool:
    box = atom.box
    return all(lo == 0.0 and hi == prd
               for lo, hi, prd in zip(box.lo, box.hi, box.prd))


def create_atoms(atom: Atom, nx: int, ny: int, nz: int, rho: float) -> int:
    """Place the fcc atoms that fall in this process's sub-domain.

    Each atom's velocity is drawn from a generator seeded by its lattice
    index, so results do not depend on the decomposition. Returns the
    number of owned atoms.
    """
    atom.natoms = 4 * nx * ny * nz
    atom.nlocal = 0
    box = atom.box

    alat = (4.0 / rho) ** (1.0 / 3.0)
    half = 0.5 * alat
    ilo = max(int(box.xlo / half - 1), 0)
    ihi = min(int(box.xhi / half + 1), 2 * nx - 1)
    jlo = max(int(box.ylo / half - 1), 0)
    jhi = min(int(box.yhi / half + 1), 2 * ny - 1)
    klo = max(int(box.zlo / half - 1), 0)
    khi = min(int(box.zhi / half + 1), 2 * nz - 1)

    def blocks(top: int) -> range:
        return range(top // _SUBBOX + 1) if top >= 0 else range(0)

    for oz in blocks(khi):
        for oy in blocks(jhi):
            for ox in blocks(ihi):
                for sz in range(_SUBBOX):
                    k = oz * _SUBBOX + sz
                    for sy in range(_SUBBOX):
                        j = oy * _SUBBOX + sy
                        for sx in range(_SUBBOX):
                            i = ox * _SUBBOX + sx
                            if (i + j + k) % 2 or not (ilo <= i <= ihi and jlo <= j <= jhi
                                                       and klo <= k <= khi):
                                continue
                            x, y, z = half * i, half * j, half * k
                            if not (box.xlo <= x < box.xhi and box.ylo <= y < box.yhi
                                    and box.zlo <= z < box.zhi):
                                continue
                            n = k * (2 * ny) * (2 * nx) + j * (2 * nx) + i + 1
                            gen = park_miller(n)
                            vx = _velocity_component(gen)
                            vy = _velocity_component(gen)
                            vz = _velocity_component(gen)
                            atom.add_atom(x, y, z, vx, vy, vz)

    if atom.nlocal > atom.natoms or (
            _covers_whole_box(atom) and atom.nlocal != atom.natoms):
        raise SetupError("Created incorrect # of atoms")
    return atom.nlocal