"""Spatial-decomposition communication: processor grid, ghost atoms and swaps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

import numpy as np

from minimd.atom import Atom

Transport = Callable[[np.ndarray, int, int], np.ndarray]
"""Sends ``payload`` to rank ``dest`` and returns what rank ``source`` sent."""


def processor_grid(nprocs: int, xprd: float, yprd: float,
                   zprd: float) -> tuple[int, int, int]:
    """Factor ``nprocs`` into a 3-d grid with the least sub-domain surface."""
    if nprocs < 1:
        raise ValueError("number of processes must be positive")
    area = (xprd * yprd, xprd * zprd, yprd * zprd)
    bestsurf = 2.0 * sum(area)
    best: Optional[tuple[int, int, int]] = None
    for ipx in range(1, nprocs + 1):
        if nprocs % ipx:
            continue
        nremain = nprocs // ipx
        for ipy in range(1, nremain + 1):
            if nremain % ipy:
                continue
            ipz = nremain // ipy
            surf = area[0] / ipx / ipy + area[1] / ipx / ipz + area[2] / ipy / ipz
            if surf < bestsurf:
                bestsurf = surf
                best = (ipx, ipy, ipz)
    if best is None or best[0] * best[1] * best[2] != nprocs:
        raise ValueError("bad grid of processors")
    return best


@dataclass
class Swap:
    """One ghost-atom swap: where to send, where to receive, and what."""

    sendproc: int
    recvproc: int
    slablo: float
    slabhi: float
    pbc_flags: tuple[int, int, int, int]
    sendlist: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    recvnum: int = 0
    firstrecv: int = 0
    comm_send_size: int = 0
    comm_recv_size: int = 0
    reverse_send_size: int = 0
    reverse_recv_size: int = 0

    @property
    def sendnum(self) -> int:
        """Number of atoms sent in this swap."""
        return len(self.sendlist)


class Comm:
    """Communication pattern of one process in a periodic Cartesian grid."""

    def __init__(self, nprocs: int = 1, rank: int = 0,
                 transport: Optional[Transport] = None) -> None:
        if nprocs < 1 or not 0 <= rank < nprocs:
            raise ValueError("rank must lie in [0, nprocs)")
        self.nprocs = nprocs
        self.me = rank
        self.transport = transport
        self.procgrid: tuple[int, int, int] = (1, 1, 1)
        self.myloc: tuple[int, int, int] = (0, 0, 0)
        self.procneigh: list[tuple[int, int]] = [(rank, rank)] * 3
        self.need: tuple[int, int, int] = (0, 0, 0)
        self.swaps: list[Swap] = []
        self.sendproc_exc: list[int] = []
        self.recvproc_exc: list[int] = []
        self.check_safeexchange = False
        self.do_safeexchange = False

    @property
    def nswap(self) -> int:
        """Number of swaps per communication."""
        return len(self.swaps)

    def rank_of(self, loc) -> int:
        """Rank at grid location ``loc``, wrapped periodically (row-major)."""
        px, py, pz = self.procgrid
        x, y, z = (loc[d] % self.procgrid[d] for d in range(3))
        return (x * py + y) * pz + z

    def _location(self, rank: int) -> tuple[int, int, int]:
        _, py, pz = self.procgrid
        return (rank // (py * pz), (rank // pz) % py, rank % pz)

    def _shifted(self, dim: int, disp: int) -> int:
        loc = list(self.myloc)
        loc[dim] += disp
        return self.rank_of(loc)

    def _transfer(self, payload: np.ndarray, dest: int, source: int) -> np.ndarray:
        if self.transport is None:
            raise RuntimeError("no transport configured to reach other processes")
        return np.asarray(self.transport(payload, dest, source), dtype=float)

    def setup(self, cutneigh: float, atom: Atom) -> None:
        """Build the processor grid, sub-domain bounds and swap pattern."""
        prd = atom.box.prd
        self.procgrid = processor_grid(self.nprocs, *prd)
        self.myloc = self._location(self.me)
        self.procneigh = [(self._shifted(d, -1), self._shifted(d, 1)) for d in range(3)]

        lo = [self.myloc[d] * prd[d] / self.procgrid[d] for d in range(3)]
        hi = [(self.myloc[d] + 1) * prd[d] / self.procgrid[d] for d in range(3)]
        box = atom.box
        box.xlo, box.ylo, box.zlo = lo
        box.xhi, box.yhi, box.zhi = hi

        self.need = tuple(int(cutneigh * self.procgrid[d] / prd[d] + 1) for d in range(3))

        self.sendproc_exc = []
        self.recvproc_exc = []
        for dim in range(3):
            for i in range(1, self.need[dim] + 1):
                down, up = self._shifted(dim, -i), self._shifted(dim, i)
                self.sendproc_exc += [down, up]
                self.recvproc_exc += [up, down]

        self.swaps = []
        for dim in range(3):
            grid = self.procgrid[dim]
            for ineed in range(2 * self.need[dim]):
                flags = [0, 0, 0, 0]
                if ineed % 2 == 0:
                    sendproc, recvproc = self.procneigh[dim]
                    nbox = self.myloc[dim] + ineed // 2
                    slab_lo = nbox * prd[dim] / grid
                    slab_hi = min(lo[dim] + cutneigh, (nbox + 1) * prd[dim] / grid)
                    if self.myloc[dim] == 0:
                        flags[0] = 1
                        flags[1 + dim] = 1
                else:
                    recvproc, sendproc = self.procneigh[dim]
                    nbox = self.myloc[dim] - ineed // 2
                    slab_hi = (nbox + 1) * prd[dim] / grid
                    slab_lo = max(hi[dim] - cutneigh, nbox * prd[dim] / grid)
                    if self.myloc[dim] == grid - 1:
                        flags[0] = 1
                        flags[1 + dim] = -1
                self.swaps.append(Swap(sendproc, recvproc, slab_lo, slab_hi, tuple(flags)))

    def communicate(self, atom: Atom) -> None:
        """Refresh ghost positions from their owners."""
        for swap in self.swaps:
            buf = atom.pack_comm(swap.sendlist, swap.pbc_flags)
            if swap.sendproc != self.me:
                buf = self._transfer(buf, swap.sendproc, swap.recvproc)
            atom.unpack_comm(swap.firstrecv, buf)

    def reverse_communicate(self, atom: Atom) -> None:
        """Add forces accumulated on ghosts back onto their owners."""
        for swap in reversed(self.swaps):
            buf = atom.pack_reverse(swap.firstrecv, swap.recvnum)
            if swap.sendproc != self.me:
                buf = self._transfer(buf, swap.recvproc, swap.sendproc)
            atom.unpack_reverse(swap.sendlist, buf)

    def borders(self, atom: Atom) -> None:
        """Rebuild all ghost atoms and the per-swap send lists."""
        atom.nghost = 0
        iswap = 0
        for dim in range(3):
            nfirst = nlast = 0
            for ineed in range(2 * self.need[dim]):
                swap = self.swaps[iswap]
                if ineed % 2 == 0:
                    nfirst = nlast
                    nlast = atom.nlocal + atom.nghost
                coords = atom.x[nfirst:nlast, dim]
                inside = (coords >= swap.slablo) & (coords <= swap.slabhi)
                sendlist = nfirst + np.nonzero(inside)[0].astype(np.int64)
                buf = np.array([atom.pack_border(int(i), swap.pbc_flags) for i in sendlist],
                               dtype=float).reshape(-1, atom.border_size)
                if swap.sendproc != self.me:
                    buf = self._transfer(buf, swap.sendproc, swap.recvproc)
                    buf = buf.reshape(-1, atom.border_size)
                first = atom.nlocal + atom.nghost
                for k, row in enumerate(buf):
                    atom.unpack_border(first + k, row)

                nsend, nrecv = len(sendlist), len(buf)
                swap.sendlist = sendlist
                swap.recvnum = nrecv
                swap.comm_send_size = nsend * atom.comm_size
                swap.comm_recv_size = nrecv * atom.comm_size
                swap.reverse_send_size = nrecv * atom.reverse_size
                swap.reverse_recv_size = nsend * atom.reverse_size
                swap.firstrecv = first
                atom.nghost += nrecv
                iswap += 1