"""Migration of owned atoms between neighbouring sub-domains."""

from __future__ import annotations

import numpy as np

from minimd.atom import EXCHANGE_SIZE, Atom
from minimd.comm import Comm


def _transfer(comm: Comm, payload: np.ndarray, dest: int, source: int) -> np.ndarray:
    if comm.transport is None:
        raise RuntimeError("no transport configured to reach other processes")
    received = comm.transport(payload, dest, source)
    return np.asarray(received, dtype=float).reshape(-1, EXCHANGE_SIZE)


def _pack(atom: Atom, indices) -> np.ndarray:
    rows = [atom.pack_exchange(int(i)) for i in indices]
    return np.array(rows, dtype=float).reshape(-1, EXCHANGE_SIZE)


def _receive(atom: Atom, buf: np.ndarray, dim: int, lo: float, hi: float) -> None:
    """Append the incoming atoms whose coordinate lies inside ``[lo, hi)``."""
    n = atom.nlocal
    for row in buf:
        if lo <= row[dim] < hi:
            atom.unpack_exchange(n, row)
            n += 1
    atom.nlocal = n


def exchange(comm: Comm, atom: Atom) -> None:
    """Send atoms that left this sub-domain to the adjacent processes.

    Atoms are exchanged only with the two direct neighbours in every
    dimension split over more than one process. Holes left by departing
    atoms are filled with staying atoms from the end of the owned range.
    """
    if comm.do_safeexchange:
        exchange_all(comm, atom)
        return

    atom.pbc()
    for dim in range(3):
        if comm.procgrid[dim] == 1:
            continue
        lo, hi = atom.box.lo[dim], atom.box.hi[dim]

        nlocal = atom.nlocal
        coords = atom.x[:nlocal, dim]
        leaving = (coords < lo) | (coords >= hi)
        send = np.nonzero(leaving)[0]
        payload = _pack(atom, send)

        nkeep = nlocal - len(send)
        holes = send[send < nkeep]
        fillers = nkeep + np.nonzero(~leaving[nkeep:])[0]
        for src, dst in zip(fillers, holes):
            atom.copy(int(src), int(dst))
        atom.nlocal = nkeep

        down, up = comm.procneigh[dim]
        received = [_transfer(comm, payload, down, up)]
        if comm.procgrid[dim] > 2:
            received.append(_transfer(comm, payload, up, down))
        _receive(atom, np.concatenate(received), dim, lo, hi)


def exchange_all(comm: Comm, atom: Atom) -> None:
    """Send departing atoms to every process within the neighbour cutoff.

    Safe variant of :func:`exchange` for atoms that may travel further than
    one sub-domain between reneighborings.
    """
    atom.pbc()
    iswap = 0
    for dim in range(3):
        grid = comm.procgrid[dim]
        nneed = 2 * comm.need[dim]
        if grid == 1:
            iswap += nneed
            continue
        lo, hi = atom.box.lo[dim], atom.box.hi[dim]

        rows = []
        i = 0
        nlocal = atom.nlocal
        while i < nlocal:
            c = atom.x[i, dim]
            if c < lo or c >= hi:
                rows.append(atom.pack_exchange(i))
                atom.copy(nlocal - 1, i)
                nlocal -= 1
            else:
                i += 1
        atom.nlocal = nlocal
        payload = np.array(rows, dtype=float).reshape(-1, EXCHANGE_SIZE)

        for ineed in range(nneed):
            if ineed < grid - 1:
                buf = _transfer(comm, payload, comm.sendproc_exc[iswap],
                                comm.recvproc_exc[iswap])
                _receive(atom, buf, dim, lo, hi)
            iswap += 1