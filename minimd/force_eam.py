"""Embedded-atom method forces over precomputed neighbour lists."""

from __future__ import annotations

from itertools import islice
from typing import Iterable, Optional, Sequence

import numpy as np

from minimd.atom import Atom
from minimd.comm import Comm
from minimd.eam_potential import EamTables, read_funcfl
from minimd.input import ForceType

DEFAULT_POTENTIAL = "Cu_u6.eam"


def _value(spline: np.ndarray, m: np.ndarray, p: np.ndarray) -> np.ndarray:
    return ((spline[m, 3] * p + spline[m, 4]) * p + spline[m, 5]) * p + spline[m, 6]


def _derivative(spline: np.ndarray, m: np.ndarray, p: np.ndarray) -> np.ndarray:
    return (spline[m, 0] * p + spline[m, 1]) * p + spline[m, 2]


class ForceEAM:
    """Single-element embedded-atom potential read from a funcfl file.

    ``neighbors`` passed to :meth:`compute` holds, for every owned atom
    ``i``, the indices of its neighbours. ``fp`` holds the derivative of
    the embedding energy per atom, ``rho`` the electron density.
    """

    style = ForceType.EAM

    def __init__(self, ntypes: int = 1, tables: Optional[EamTables] = None) -> None:
        self.ntypes = ntypes
        self.cutforce = 0.0
        self.cutmax = 0.0
        self.cutforcesq = np.zeros(ntypes * ntypes)
        self.use_oldcompute = False
        self.evflag = True
        self.mass = 1.0
        self.eng_vdwl = 0.0
        self.virial = 0.0
        self.rho = np.zeros(0)
        self.fp = np.zeros(0)
        self.tables: Optional[EamTables] = None
        if tables is not None:
            self._use(tables)

    def _use(self, tables: EamTables) -> None:
        self.tables = tables
        self.mass = tables.mass
        self.cutmax = tables.cutmax
        self.cutforcesq[:] = tables.cutmax * tables.cutmax

    def setup(self, path=DEFAULT_POTENTIAL) -> None:
        """Read the funcfl potential at ``path`` and build its spline tables."""
        self._use(EamTables.from_funcfl(read_funcfl(path)))

    def _require_tables(self) -> EamTables:
        if self.tables is None:
            raise RuntimeError("potential tables are not loaded; call setup() first")
        return self.tables

    def _ensure(self, n: int) -> None:
        if n > len(self.rho):
            grown = np.zeros(n)
            grown[: len(self.rho)] = self.rho
            self.rho = grown
        if n > len(self.fp):
            grown = np.zeros(n)
            grown[: len(self.fp)] = self.fp
            self.fp = grown

    def _pairs(self, atom: Atom, neighbors: Iterable[Sequence[int]]):
        nlocal = atom.nlocal
        lists = [np.asarray(n, dtype=np.int64).ravel()
                 for n in islice(neighbors, nlocal)]
        if len(lists) < nlocal:
            raise ValueError("a neighbour list is needed for every owned atom")
        counts = [len(lst) for lst in lists]
        i = np.repeat(np.arange(nlocal, dtype=np.int64), counts)
        j = np.concatenate(lists) if lists else np.zeros(0, dtype=np.int64)

        delta = atom.x[i] - atom.x[j]
        rsq = np.einsum("ij,ij->i", delta, delta)
        tij = atom.type[i] * self.ntypes + atom.type[j]
        inside = rsq < self.cutforcesq[tij]
        return i[inside], j[inside], delta[inside], rsq[inside]

    def _radial(self, r: np.ndarray):
        tables = self._require_tables()
        p = r * tables.rdr + 1.0
        m = np.minimum(p.astype(np.int64), tables.nr - 1)
        p = np.minimum(p - m, 1.0)
        return m, p

    def _embedding(self, rho: np.ndarray):
        tables = self._require_tables()
        p = rho * tables.rdrho + 1.0
        m = np.maximum(1, np.minimum(p.astype(np.int64), tables.nrho - 1))
        p = np.minimum(p - m, 1.0)
        return (_derivative(tables.frho_spline, m, p),
                _value(tables.frho_spline, m, p))

    def _communicate(self, comm: Comm) -> None:
        for swap in comm.swaps:
            buf = self.pack_comm(swap.sendlist)
            if swap.sendproc != comm.me:
                if comm.transport is None:
                    raise RuntimeError("no transport configured to reach other processes")
                buf = np.asarray(comm.transport(buf, swap.sendproc, swap.recvproc),
                                 dtype=float).ravel()
            self.unpack_comm(swap.firstrecv, buf[: swap.recvnum])

    def compute(self, atom: Atom, neighbors, comm: Optional[Comm] = None,
                half_neigh: bool = False) -> None:
        """Fill ``atom.f``, ``eng_vdwl`` and ``virial``.

        ``comm`` carries the embedding derivatives to ghost atoms; it may be
        ``None`` when there are no ghosts.
        """
        tables = self._require_tables()
        nlocal = atom.nlocal
        nall = nlocal + atom.nghost
        self._ensure(max(atom.nmax, nall))
        self.eng_vdwl = 0.0
        self.virial = 0.0

        i, j, delta, rsq = self._pairs(atom, neighbors)
        r = np.sqrt(rsq)
        m, p = self._radial(r)
        rho_pair = _value(tables.rhor_spline, m, p)

        self.rho[:nlocal] = 0.0
        np.add.at(self.rho, i, rho_pair)
        own = j < nlocal
        if half_neigh:
            atom.f[:nall] = 0.0
            np.add.at(self.rho, j[own], rho_pair[own])

        fp, embed = self._embedding(self.rho[:nlocal])
        self.fp[:nlocal] = fp
        evdwl = float(np.sum(embed)) if self.evflag else 0.0

        if comm is not None:
            self._communicate(comm)

        rhoip = _derivative(tables.rhor_spline, m, p)
        z2p = _derivative(tables.z2r_spline, m, p)
        z2 = _value(tables.z2r_spline, m, p)
        recip = 1.0 / r
        phi = z2 * recip
        phip = z2p * recip - phi * recip
        psip = self.fp[i] * rhoip + self.fp[j] * rhoip + phip
        fpair = -psip * recip
        fij = delta * fpair[:, None]

        if half_neigh:
            np.add.at(atom.f, i, fij)
            np.add.at(atom.f, j[own], -fij[own])
            scale = np.where(own, 1.0, 0.5)
            if self.evflag:
                self.virial = float(np.sum(rsq * fpair * scale))
            evdwl += float(np.sum(scale * phi))
            self.eng_vdwl = evdwl
        else:
            forces = np.zeros((nlocal, 3))
            np.add.at(forces, i, fij)
            atom.f[:nlocal] = forces
            if self.evflag:
                self.virial = float(np.sum(rsq * fpair * 0.5))
                evdwl += 0.5 * float(np.sum(phi))
            self.eng_vdwl = 2.0 * evdwl

    def single(self, i: int, j: int, rsq: float) -> tuple[float, float]:
        """Pair energy and scalar force between atoms ``i`` and ``j`` at ``rsq``."""
        tables = self._require_tables()
        r = float(np.sqrt(rsq))
        m, p = self._radial(np.array([r]))
        rhoip = _derivative(tables.rhor_spline, m, p)[0]
        rhojp = rhoip
        z2p = _derivative(tables.z2r_spline, m, p)[0]
        z2 = _value(tables.z2r_spline, m, p)[0]
        recip = 1.0 / r
        phi = z2 * recip
        phip = z2p * recip - phi * recip
        psip = self.fp[i] * rhojp + self.fp[j] * rhoip + phip
        return float(phi), float(-psip * recip)

    def pack_comm(self, indices) -> np.ndarray:
        """Embedding derivatives of the listed atoms."""
        idx = np.asarray(indices, dtype=np.int64)
        if len(idx):
            self._ensure(int(idx.max()) + 1)
        return self.fp[idx].copy()

    def unpack_comm(self, first: int, buf) -> None:
        """Store received embedding derivatives from slot ``first`` on."""
        values = np.asarray(buf, dtype=float).ravel()
        self._ensure(first + len(values))
        self.fp[first:first + len(values)] = values

    def pack_reverse_comm(self, first: int, n: int) -> np.ndarray:
        """Densities of ``n`` consecutive atoms starting at ``first``."""
        self._ensure(first + n)
        return self.rho[first:first + n].copy()

    def unpack_reverse_comm(self, indices, buf) -> None:
        """Add received densities onto the listed atoms."""
        idx = np.asarray(indices, dtype=np.int64)
        values = np.asarray(buf, dtype=float).ravel()
        if len(idx):
            self._ensure(int(idx.max()) + 1)
        np.add.at(self.rho, idx, values)