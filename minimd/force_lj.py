"""Lennard-Jones pair forces over precomputed neighbour lists."""

from __future__ import annotations

from itertools import islice
from typing import Iterable, Sequence

import numpy as np

from minimd.atom import Atom
from minimd.input import ForceType


class ForceLJ:
    """Truncated 12-6 Lennard-Jones interaction.

    Per type-pair parameters are stored flat, indexed by
    ``type_i * ntypes + type_j``. ``neighbors`` passed to :meth:`compute`
    holds, for every owned atom ``i``, the indices of its neighbours.
    """

    style = ForceType.LJ

    def __init__(self, ntypes: int = 1) -> None:
        self.ntypes = ntypes
        self.cutforce = 0.0
        self.use_oldcompute = False
        self.reneigh = True
        self.evflag = True
        npairs = ntypes * ntypes
        self.cutforcesq = np.zeros(npairs)
        self.epsilon = np.ones(npairs)
        self.sigma6 = np.ones(npairs)
        self.sigma = np.ones(npairs)
        self.eng_vdwl = 0.0
        self.virial = 0.0

    def setup(self) -> None:
        """Apply ``cutforce`` to every type pair."""
        self.cutforcesq[:] = self.cutforce * self.cutforce

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

        i, j, delta, rsq, tij = i[inside], j[inside], delta[inside], rsq[inside], tij[inside]
        sr2 = 1.0 / rsq
        sr6 = sr2 * sr2 * sr2 * self.sigma6[tij]
        eps = self.epsilon[tij]
        force = 48.0 * sr6 * (sr6 - 0.5) * sr2 * eps
        eterm = sr6 * (sr6 - 1.0) * eps
        return i, j, delta, rsq, force, eterm

    def compute(self, atom: Atom, neighbors, half_neigh: bool = False,
                ghost_newton: bool = False) -> None:
        """Fill ``atom.f`` and, when ``evflag`` is set, energy and virial.

        With half lists each pair appears once; with ``ghost_newton`` the
        reaction force is also stored on ghost atoms, otherwise ghost pairs
        count half. Full lists hold each pair twice and update atom ``i`` only.
        """
        self.eng_vdwl = 0.0
        self.virial = 0.0
        nlocal = atom.nlocal
        nall = nlocal + atom.nghost
        i, j, delta, rsq, force, eterm = self._pairs(atom, neighbors)
        fij = delta * force[:, None]
        f = atom.f

        if self.use_oldcompute:
            f[:nall] = 0.0
            np.add.at(f, i, fij)
            np.add.at(f, j, -fij)
            if self.evflag:
                self.eng_vdwl = float(np.sum(4.0 * eterm))
                self.virial = float(np.sum(rsq * force))
        elif half_neigh:
            f[:nall] = 0.0
            np.add.at(f, i, fij)
            newton = np.ones(len(j), dtype=bool) if ghost_newton else j < nlocal
            np.add.at(f, j[newton], -fij[newton])
            if self.evflag:
                scale = np.where(newton, 1.0, 0.5)
                self.eng_vdwl = float(np.sum(scale * 4.0 * eterm))
                self.virial = float(np.sum(scale * rsq * force))
        else:
            f[:nlocal] = 0.0
            np.add.at(f, i, fij)
            if self.evflag:
                self.eng_vdwl = 4.0 * float(np.sum(eterm))
                self.virial = 0.5 * float(np.sum(rsq * force))