"""Reading the run parameters file."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Iterable, Optional

from minimd.thermo import Units


class ForceType(IntEnum):
    """Interatomic potential styles."""

    LJ = 0
    EAM = 1


class InputError(Exception):
    """The parameters file is missing or malformed."""


@dataclass
class InputParameters:
    """Run parameters; ``neigh_cut`` already includes the force cutoff."""

    units: Units
    datafile: Optional[str]
    forcetype: ForceType
    epsilon: float
    sigma: float
    nx: int
    ny: int
    nz: int
    ntimes: int
    dt: float
    t_request: float
    rho: float
    neigh_every: int
    force_cut: float
    neigh_cut: float
    thermo_nstat: int


_INT = re.compile(r"[+-]?\d+")


def _first_token(line: str, lineno: int) -> str:
    tokens = line.split()
    if not tokens:
        raise InputError(f"missing value at line {lineno}")
    return tokens[0]


def _floats(line: str, count: int, lineno: int) -> list[float]:
    tokens = line.split()[:count]
    try:
        values = [float(tok) for tok in tokens]
    except ValueError as exc:
        raise InputError(f"bad number at line {lineno}: {line.strip()!r}") from exc
    if len(values) < count:
        raise InputError(f"expected {count} numbers at line {lineno}")
    return values


def _ints(line: str, count: int, lineno: int) -> list[int]:
    values = []
    for tok in line.split()[:count]:
        match = _INT.match(tok)
        if match is None:
            raise InputError(f"bad integer at line {lineno}: {line.strip()!r}")
        values.append(int(match.group()))
    if len(values) < count:
        raise InputError(f"expected {count} integers at line {lineno}")
    return values


def parse_input(lines: Iterable[str]) -> InputParameters:
    """Parse the fixed-layout parameters file from its lines."""
    text = list(lines)
    if len(text) < 14:
        raise InputError(f"input has {len(text)} lines, 14 are required")

    units_word = _first_token(text[2], 3)
    if units_word == "lj":
        units = Units.LJ
    elif units_word == "metal":
        units = Units.METAL
    else:
        raise InputError(f"Unknown units option in file at line 3 ('{units_word}'). "
                         "Expecting either 'lj' or 'metal'.")

    data_word = _first_token(text[3], 4)
    datafile = None if data_word == "none" else data_word

    force_word = _first_token(text[4], 5)
    if force_word == "lj":
        forcetype = ForceType.LJ
    elif force_word == "eam":
        forcetype = ForceType.EAM
    else:
        raise InputError(f"Unknown forcetype option in file at line 5 ('{force_word}'). "
                         "Expecting either 'lj' or 'eam'.")

    epsilon, sigma = _floats(text[5], 2, 6)
    nx, ny, nz = _ints(text[6], 3, 7)
    (ntimes,) = _ints(text[7], 1, 8)
    (dt,) = _floats(text[8], 1, 9)
    (t_request,) = _floats(text[9], 1, 10)
    (rho,) = _floats(text[10], 1, 11)
    (neigh_every,) = _ints(text[11], 1, 12)
    force_cut, skin = _floats(text[12], 2, 13)
    (thermo_nstat,) = _ints(text[13], 1, 14)

    return InputParameters(
        units=units, datafile=datafile, forcetype=forcetype,
        epsilon=epsilon, sigma=sigma, nx=nx, ny=ny, nz=nz,
        ntimes=ntimes, dt=dt, t_request=t_request, rho=rho,
        neigh_every=neigh_every, force_cut=force_cut,
        neigh_cut=skin + force_cut, thermo_nstat=thermo_nstat,
    )


def read_input(path) -> InputParameters:
    """Read and parse the parameters file at ``path``."""
    try:
        with Path(path).open("r") as handle:
            lines = handle.readlines()
    except OSError as exc:
        raise InputError(f"Cannot open {path}") from exc
    return parse_input(lines)