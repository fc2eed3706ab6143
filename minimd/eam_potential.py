"""Embedded-atom potential tables: funcfl file reading, resampling and splines."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

import numpy as np

_SIXTH = 1.0 / 6.0
_Z2R_SCALE = 27.2 * 0.529
_INT = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    """Leading integer of ``text``, or 0 when there is none."""
    match = _INT.match(text)
    return int(match.group(1)) if match else 0


@dataclass
class Funcfl:
    """Contents of a single-element DYNAMO funcfl file."""

    mass: float
    nrho: int
    drho: float
    nr: int
    dr: float
    cut: float
    frho: np.ndarray
    zr: np.ndarray
    rhor: np.ndarray


def _grab(lines: Iterator[str], n: int, what: str) -> np.ndarray:
    """Read ``n`` values, several to a line; a new array starts on a new line."""
    values: list[float] = []
    while len(values) < n:
        line = next(lines, None)
        if line is None:
            raise ValueError(f"funcfl file ends before {n} {what} values were read")
        try:
            values.extend(float(tok) for tok in line.split())
        except ValueError as exc:
            raise ValueError(f"bad number in {what} values: {line.strip()!r}") from exc
    return np.array(values[:n], dtype=float)


def parse_funcfl(lines: Iterable[str]) -> Funcfl:
    """Parse a funcfl potential from its lines."""
    it = iter(lines)
    header = [next(it, None) for _ in range(3)]
    if header[2] is None:
        raise ValueError("funcfl file needs at least three header lines")
    try:
        mass = float(header[1].split()[1])
        tokens = header[2].split()
        nrho = _atoi(tokens[0])
        drho = float(tokens[1])
        nr = _atoi(tokens[2])
        dr = float(tokens[3])
        cut = float(tokens[4])
    except (IndexError, ValueError) as exc:
        raise ValueError("malformed funcfl header") from exc
    if nrho < 1 or nr < 1:
        raise ValueError("funcfl table sizes must be positive")
    frho = _grab(it, nrho, "frho")
    zr = _grab(it, nr, "zr")
    rhor = _grab(it, nr, "rhor")
    return Funcfl(mass=mass, nrho=nrho, drho=drho, nr=nr, dr=dr, cut=cut,
                  frho=frho, zr=zr, rhor=rhor)


def read_funcfl(path) -> Funcfl:
    """Read and parse the funcfl file at ``path``."""
    with Path(path).open("r") as handle:
        return parse_funcfl(handle.readlines())


def interpolate(values, delta: float) -> np.ndarray:
    """Cubic spline coefficients for ``values`` tabulated at spacing ``delta``.

    Row ``m`` (1-based; row 0 is unused) holds seven coefficients: columns
    0-2 give the derivative and columns 3-6 the value as cubics in the
    fractional offset within interval ``m``.
    """
    f = np.asarray(values, dtype=float).ravel()
    n = len(f)
    if n < 3:
        raise ValueError("at least three tabulated values are needed")
    s = np.zeros((n + 1, 7))
    s[1:, 6] = f
    y = s[:, 6]

    s[1, 5] = y[2] - y[1]
    s[2, 5] = 0.5 * (y[3] - y[1])
    s[n - 1, 5] = 0.5 * (y[n] - y[n - 2])
    s[n, 5] = y[n] - y[n - 1]
    if n >= 5:
        m = np.arange(3, n - 1)
        s[m, 5] = ((y[m - 2] - y[m + 2]) + 8.0 * (y[m + 1] - y[m - 1])) / 12.0

    m = np.arange(1, n)
    diff = y[m + 1] - y[m]
    s[m, 4] = 3.0 * diff - 2.0 * s[m, 5] - s[m + 1, 5]
    s[m, 3] = s[m, 5] + s[m + 1, 5] - 2.0 * diff
    s[n, 4] = 0.0
    s[n, 3] = 0.0

    s[1:, 2] = s[1:, 5] / delta
    s[1:, 1] = 2.0 * s[1:, 4] / delta
    s[1:, 0] = 3.0 * s[1:, 3] / delta
    return s


def parse_bounds(text: str, nmax: int) -> tuple[int, int]:
    """Parse an index range such as ``3``, ``*``, ``*4``, ``2*`` or ``2*4``."""
    star = text.find("*")
    if star < 0:
        nlo = nhi = _atoi(text)
    elif len(text) == 1:
        nlo, nhi = 1, nmax
    elif star == 0:
        nlo, nhi = 1, _atoi(text[1:])
    elif star == len(text) - 1:
        nlo, nhi = _atoi(text), nmax
    else:
        nlo, nhi = _atoi(text), _atoi(text[star + 1:])
    if nlo < 1 or nhi > nmax:
        raise ValueError("Numeric index is out of bounds")
    return nlo, nhi


def _resample(values: np.ndarray, file_delta: float, delta: float, n: int) -> np.ndarray:
    """Four-point Lagrange resampling onto ``n`` points of spacing ``delta``.

    The result is 1-based: element 0 is left at zero.
    """
    nfile = len(values)
    out = np.zeros(n + 1)
    if n < 1:
        return out
    m = np.arange(1, n + 1)
    p = (m - 1) * delta / file_delta + 1.0
    k = np.maximum(np.minimum(p.astype(np.int64), nfile - 2), 2)
    p = np.minimum(p - k, 2.0)
    cof1 = -_SIXTH * p * (p - 1.0) * (p - 2.0)
    cof2 = 0.5 * (p * p - 1.0) * (p - 2.0)
    cof3 = -0.5 * p * (p + 1.0) * (p - 2.0)
    cof4 = _SIXTH * p * (p * p - 1.0)
    # tabulated point k (1-based) is values[k - 1]
    out[1:] = (cof1 * values[k - 2] + cof2 * values[k - 1]
               + cof3 * values[k] + cof4 * values[k + 1])
    return out


@dataclass
class EamTables:
    """Potential functions on a common grid, with their spline coefficients.

    ``frho``, ``rhor`` and ``z2r`` are 1-based arrays (element 0 unused);
    the spline arrays have one row of seven coefficients per grid point.
    """

    nrho: int
    nr: int
    drho: float
    dr: float
    rdrho: float
    rdr: float
    cutmax: float
    mass: float
    frho: np.ndarray
    rhor: np.ndarray
    z2r: np.ndarray
    frho_spline: np.ndarray
    rhor_spline: np.ndarray
    z2r_spline: np.ndarray

    @classmethod
    def from_funcfl(cls, funcfl: Funcfl) -> "EamTables":
        """Resample a funcfl potential onto its grid and build the splines."""
        if funcfl.nrho < 4 or funcfl.nr < 4:
            raise ValueError("funcfl tables need at least four points each")
        if funcfl.dr <= 0.0 or funcfl.drho <= 0.0:
            raise ValueError("funcfl grid spacings must be positive")
        dr = funcfl.dr
        drho = funcfl.drho
        rmax = (funcfl.nr - 1) * funcfl.dr
        rhomax = (funcfl.nrho - 1) * funcfl.drho
        nr = int(rmax / dr + 0.5)
        nrho = int(rhomax / drho + 0.5)

        frho = _resample(np.asarray(funcfl.frho, dtype=float), funcfl.drho, drho, nrho)
        rhor = _resample(np.asarray(funcfl.rhor, dtype=float), funcfl.dr, dr, nr)
        zr = _resample(np.asarray(funcfl.zr, dtype=float), funcfl.dr, dr, nr)
        z2r = _Z2R_SCALE * zr * zr

        return cls(
            nrho=nrho, nr=nr, drho=drho, dr=dr,
            rdrho=1.0 / drho, rdr=1.0 / dr,
            cutmax=funcfl.cut, mass=funcfl.mass,
            frho=frho, rhor=rhor, z2r=z2r,
            frho_spline=interpolate(frho[1:], drho),
            rhor_spline=interpolate(rhor[1:], dr),
            z2r_spline=interpolate(z2r[1:], dr),
        )