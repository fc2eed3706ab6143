"""Per-process atom storage: positions, velocities, forces and types."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Sequence

import numpy as np

DELTA = 20000
"""Number of slots added each time the atom arrays grow."""

COMM_SIZE = 3
REVERSE_SIZE = 3
BORDER_SIZE = 4
EXCHANGE_SIZE = 7


@dataclass
class Box:
    """Global box lengths and the bounds of this process's sub-domain."""

    xprd: float = 0.0
    yprd: float = 0.0
    zprd: float = 0.0
    xlo: float = 0.0
    xhi: float = 0.0
    ylo: float = 0.0
    yhi: float = 0.0
    zlo: float = 0.0
    zhi: float = 0.0

    @property
    def prd(self) -> tuple[float, float, float]:
        """Box lengths along x, y and z."""
        return (self.xprd, self.yprd, self.zprd)

    @property
    def lo(self) -> tuple[float, float, float]:
        """Lower sub-domain bounds."""
        return (self.xlo, self.ylo, self.zlo)

    @property
    def hi(self) -> tuple[float, float, float]:
        """Upper sub-domain bounds."""
        return (self.xhi, self.yhi, self.zhi)


def _grown(array: np.ndarray, nmax: int) -> np.ndarray:
    new = np.zeros((nmax,) + array.shape[1:], dtype=array.dtype)
    new[: len(array)] = array
    return new


class Atom:
    """Owned atoms (the first ``nlocal`` rows) followed by ``nghost`` ghost atoms."""

    def __init__(self, ntypes: int = 1, rng: random.Random | None = None) -> None:
        self.natoms = 0
        self.nlocal = 0
        self.nghost = 0
        self.nmax = 0
        self.ntypes = ntypes
        self.mass = 1.0
        self.virial = 0.0
        self.comm_size = COMM_SIZE
        self.reverse_size = REVERSE_SIZE
        self.border_size = BORDER_SIZE
        self.box = Box()
        self.x = np.zeros((0, 3))
        self.v = np.zeros((0, 3))
        self.f = np.zeros((0, 3))
        self.xold = np.zeros((0, 3))
        self.type = np.zeros(0, dtype=np.int64)
        self._rng = rng if rng is not None else random.Random()

    def grow(self) -> None:
        """Enlarge every per-atom array by ``DELTA`` slots, keeping contents."""
        self.nmax += DELTA
        self.x = _grown(self.x, self.nmax)
        self.v = _grown(self.v, self.nmax)
        self.f = _grown(self.f, self.nmax)
        self.xold = _grown(self.xold, self.nmax)
        self.type = _grown(self.type, self.nmax)

    def _ensure_capacity(self, n: int) -> None:
        while n > self.nmax:
            self.grow()

    def add_atom(self, x: float, y: float, z: float,
                 vx: float, vy: float, vz: float) -> None:
        """Append an owned atom with a random type in ``[0, ntypes)``."""
        if self.nlocal == self.nmax:
            self.grow()
        i = self.nlocal
        self.x[i] = (x, y, z)
        self.v[i] = (vx, vy, vz)
        self.type[i] = self._rng.randrange(self.ntypes)
        self.nlocal += 1

    def pbc(self) -> None:
        """Wrap owned atoms back into ``[0, prd)`` along each dimension."""
        pos = self.x[: self.nlocal]
        for dim, prd in enumerate(self.box.prd):
            col = pos[:, dim]
            col[col < 0.0] += prd
            col[col >= prd] -= prd

    def copy(self, i: int, j: int) -> None:
        """Copy position, velocity and type of atom ``i`` onto slot ``j``."""
        self.x[j] = self.x[i]
        self.v[j] = self.v[i]
        self.type[j] = self.type[i]

    def _shift(self, pbc_flags: Sequence[int]) -> np.ndarray | None:
        if not pbc_flags[0]:
            return None
        return np.asarray(pbc_flags[1:4], dtype=float) * np.asarray(self.box.prd)

    def pack_comm(self, indices: Sequence[int], pbc_flags: Sequence[int]) -> np.ndarray:
        """Positions of the listed atoms, shifted by whole boxes when flagged."""
        idx = np.asarray(indices, dtype=np.int64)
        buf = self.x[idx].copy()
        shift = self._shift(pbc_flags)
        if shift is not None:
            buf += shift
        return buf

    def unpack_comm(self, first: int, buf) -> None:
        """Store received positions into consecutive slots from ``first``."""
        rows = np.asarray(buf, dtype=float).reshape(-1, 3)
        self._ensure_capacity(first + len(rows))
        self.x[first:first + len(rows)] = rows

    def pack_reverse(self, first: int, n: int) -> np.ndarray:
        """Forces of ``n`` consecutive atoms starting at ``first``."""
        return self.f[first:first + n].copy()

    def unpack_reverse(self, indices: Sequence[int], buf) -> None:
        """Add received forces onto the listed atoms."""
        idx = np.asarray(indices, dtype=np.int64)
        rows = np.asarray(buf, dtype=float).reshape(-1, 3)
        np.add.at(self.f, idx, rows)

    def pack_border(self, i: int, pbc_flags: Sequence[int]) -> np.ndarray:
        """Position (possibly shifted) and type of atom ``i``."""
        pos = self.x[i].copy()
        shift = self._shift(pbc_flags)
        if shift is not None:
            pos += shift
        return np.array([pos[0], pos[1], pos[2], float(self.type[i])])

    def unpack_border(self, i: int, buf) -> int:
        """Store a border record into slot ``i``; returns the record size."""
        self._ensure_capacity(i + 1)
        self.x[i] = buf[0:3]
        self.type[i] = int(buf[3])
        return BORDER_SIZE

    def pack_exchange(self, i: int) -> np.ndarray:
        """Position, velocity and type of atom ``i`` for migration."""
        return np.concatenate((self.x[i], self.v[i], [float(self.type[i])]))

    def unpack_exchange(self, i: int, buf) -> int:
        """Store a migrated atom into slot ``i``; returns the record size."""
        self._ensure_capacity(i + 1)
        self.x[i] = buf[0:3]
        self.v[i] = buf[3:6]
        self.type[i] = int(buf[6])
        return EXCHANGE_SIZE

    def reorder(self, order: Sequence[int]) -> None:
        """Rearrange owned atoms so that new slot ``k`` holds old atom ``order[k]``."""
        idx = np.asarray(order, dtype=np.int64)
        n = self.nlocal
        if len(idx) != n or not np.array_equal(np.sort(idx), np.arange(n)):
            raise ValueError("order must be a permutation of the owned atoms")
        self.x[:n] = self.x[idx]
        self.v[:n] = self.v[idx]
        self.type[:n] = self.type[idx]