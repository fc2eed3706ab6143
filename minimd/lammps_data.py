"""Reading atoms, velocities and masses from LAMMPS-style data files."""

from __future__ import annotations

import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Optional

import numpy as np

from minimd.atom import Atom

SECTION_KEYWORDS = ("Atoms", "Velocities", "Masses")

_INT = re.compile(r"\s*([+-]?\d+)")


class LammpsDataError(Exception):
    """The data file is missing, malformed or inconsistent."""


@dataclass
class LammpsData:
    """Header values and per-atom data, rows ordered by atom id."""

    natoms: int = 0
    ntypes: int = 0
    xprd: float = 0.0
    yprd: float = 0.0
    zprd: float = 0.0
    positions: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    velocities: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))
    mass: Optional[float] = None


def _header_int(text: str) -> int:
    match = _INT.match(text)
    if match is None:
        raise LammpsDataError(f"bad header line: {text.strip()!r}")
    return int(match.group(1))


def _header_extent(text: str) -> float:
    try:
        lo, hi = (float(tok) for tok in text.split()[:2])
    except ValueError as exc:
        raise LammpsDataError(f"bad header line: {text.strip()!r}") from exc
    return hi - lo


def _keyword(lines: Iterator[str], line: Optional[str]) -> str:
    """Next non-blank line as a section keyword; the line after it is skipped."""
    if line is None:
        line = next(lines, None)
    while line is not None and not line.strip():
        line = next(lines, None)
    if line is None or next(lines, None) is None:
        return ""
    return line.strip()


def _rows(lines: Iterator[str], count: int, section: str):
    for _ in range(count):
        line = next(lines, None)
        if line is None:
            raise LammpsDataError(f"data file ends inside the {section} section")
        yield line.split()


def _atom_index(token: str, natoms: int) -> int:
    idx = _header_int(token) - 1
    if not 0 <= idx < natoms:
        raise LammpsDataError(f"atom id {token} outside 1..{natoms}")
    return idx


def _floats(tokens: list[str], line_desc: str) -> list[float]:
    try:
        return [float(tok) for tok in tokens]
    except ValueError as exc:
        raise LammpsDataError(f"bad number in {line_desc}") from exc


def parse_lammps_data(lines: Iterable[str]) -> LammpsData:
    """Parse a data file: header, then Atoms, Velocities and Masses sections."""
    it = iter(lines)
    data = LammpsData()
    next(it, None)

    first: Optional[str] = None
    while True:
        raw = next(it, None)
        if raw is None:
            break
        text = raw.split("#", 1)[0]
        if not text.strip():
            continue
        if "atoms" in text:
            data.natoms = _header_int(text)
        elif "atom types" in text:
            data.ntypes = _header_int(text)
        elif "xlo xhi" in text:
            data.xprd = _header_extent(text)
        elif "ylo yhi" in text:
            data.yprd = _header_extent(text)
        elif "zlo zhi" in text:
            data.zprd = _header_extent(text)
        else:
            first = text
            break

    natoms = data.natoms
    data.positions = np.zeros((natoms, 3))
    data.velocities = np.zeros((natoms, 3))
    if first is None:
        return data

    atoms_read = False
    keyword = _keyword(it, first)
    while keyword:
        if keyword == "Atoms":
            for tokens in _rows(it, natoms, "Atoms"):
                if len(tokens) < 5:
                    raise LammpsDataError("Atoms line needs id, type and three coordinates")
                idx = _atom_index(tokens[0], natoms)
                data.positions[idx] = _floats(tokens[2:5], "Atoms section")
            atoms_read = True
        elif keyword == "Velocities":
            if not atoms_read:
                warnings.warn("Must read Atoms before Velocities")
            for tokens in _rows(it, natoms, "Velocities"):
                if len(tokens) < 4:
                    raise LammpsDataError("Velocities line needs id and three components")
                idx = _atom_index(tokens[0], natoms)
                data.velocities[idx] = _floats(tokens[1:4], "Velocities section")
        elif keyword == "Masses":
            (tokens,) = _rows(it, 1, "Masses")
            if len(tokens) < 2:
                raise LammpsDataError("Masses line needs a type and a mass")
            (data.mass,) = _floats(tokens[1:2], "Masses section")
        else:
            raise LammpsDataError(f"Unknown identifier in data file: {keyword}")
        keyword = _keyword(it, None)
    return data


def read_lammps_data(path) -> LammpsData:
    """Read and parse the data file at ``path``."""
    try:
        with Path(path).open("r") as handle:
            content = handle.readlines()
    except OSError as exc:
        raise LammpsDataError(f"Cannot open file {path}") from exc
    return parse_lammps_data(content)


def _covers_whole_box(atom: Atom) -> bool:
    box = atom.box
    return all(lo == 0.0 and hi == prd
               for lo, hi, prd in zip(box.lo, box.hi, box.prd))


def load_lammps_atoms(data: LammpsData, atom: Atom) -> int:
    """Add the atoms that lie in this process's sub-domain to ``atom``.

    The box lengths, total atom count and mass are copied from ``data``;
    the sub-domain bounds must already be set. Returns the owned count.
    """
    atom.natoms = data.natoms
    box = atom.box
    box.xprd, box.yprd, box.zprd = data.xprd, data.yprd, data.zprd
    if data.mass is not None:
        atom.mass = data.mass
    atom.nlocal = 0
    for (x, y, z), (vx, vy, vz) in zip(data.positions, data.velocities):
        if (box.xlo <= x < box.xhi and box.ylo <= y < box.yhi
                and box.zlo <= z < box.zhi):
            atom.add_atom(float(x), float(y), float(z),
                          float(vx), float(vy), float(vz))
    if _covers_whole_box(atom) and atom.nlocal != atom.natoms:
        raise LammpsDataError("Created incorrect # of atoms")
    return atom.nlocal