import random

import numpy as np
import pytest

from minimd.atom import Atom
from minimd.force_lj import ForceLJ


def _force(cut=2.5):
    force = ForceLJ()
    force.cutforce = cut
    force.setup()
    return force


def _atoms(positions):
    atom = Atom(rng=random.Random(1))
    for p in positions:
        atom.add_atom(*p, 0.0, 0.0, 0.0)
    return atom


def _cluster():
    rng = random.Random(7)
    positions = []
    for a in range(2):
        for b in range(2):
            for c in range(2):
                positions.append((1.1 * a + rng.uniform(-0.05, 0.05),
                                  1.1 * b + rng.uniform(-0.05, 0.05),
                                  1.1 * c + rng.uniform(-0.05, 0.05)))
    return positions


def _half(n):
    return [list(range(i + 1, n)) for i in range(n)]


def _full(n):
    return [[j for j in range(n) if j != i] for i in range(n)]


def test_setup_applies_cutoff_to_all_pairs():
    force = ForceLJ(ntypes=2)
    force.cutforce = 2.5
    force.setup()
    assert np.allclose(force.cutforcesq, 2.5 ** 2)
    assert len(force.cutforcesq) == 4


def test_pair_at_unit_distance():
    atom = _atoms([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)])
    force = _force()
    force.compute(atom, _half(2), half_neigh=True, ghost_newton=True)
    assert atom.f[0, 0] == pytest.approx(-24.0)
    assert atom.f[1, 0] == pytest.approx(24.0)
    assert force.virial == pytest.approx(24.0)
    assert force.eng_vdwl == pytest.approx(0.0)


def test_energy_minimum_has_zero_force():
    r = 2.0 ** (1.0 / 6.0)
    atom = _atoms([(0.0, 0.0, 0.0), (0.0, r, 0.0)])
    force = _force()
    force.compute(atom, _half(2), half_neigh=True, ghost_newton=True)
    assert np.allclose(atom.f[:2], 0.0, atol=1e-9)
    assert force.eng_vdwl == pytest.approx(-1.0)


def test_pairs_beyond_cutoff_are_ignored():
    atom = _atoms([(0.0, 0.0, 0.0), (2.0, 0.0, 0.0)])
    force = _force(cut=1.5)
    force.compute(atom, _half(2), half_neigh=True, ghost_newton=True)
    assert np.all(atom.f[:2] == 0.0)
    assert force.eng_vdwl == 0.0
    assert force.virial == 0.0


def test_half_list_conserves_momentum():
    atom = _atoms(_cluster())
    force = _force()
    force.compute(atom, _half(8), half_neigh=True, ghost_newton=True)
    assert np.allclose(atom.f[:8].sum(axis=0), 0.0, atol=1e-9)
    assert np.any(np.abs(atom.f[:8]) > 1e-6)


def test_full_and_half_lists_agree():
    positions = _cluster()
    half_atom = _atoms(positions)
    full_atom = _atoms(positions)
    half = _force()
    full = _force()
    half.compute(half_atom, _half(8), half_neigh=True, ghost_newton=True)
    full.compute(full_atom, _full(8), half_neigh=False, ghost_newton=False)
    assert np.allclose(half_atom.f[:8], full_atom.f[:8])
    assert full.eng_vdwl == pytest.approx(2.0 * half.eng_vdwl)
    assert full.virial == pytest.approx(half.virial)


def test_original_compute_matches_half_newton():
    positions = _cluster()
    a = _atoms(positions)
    b = _atoms(positions)
    half = _force()
    old = _force()
    old.use_oldcompute = True
    half.compute(a, _half(8), half_neigh=True, ghost_newton=True)
    old.compute(b, _half(8))
    assert np.allclose(a.f[:8], b.f[:8])
    assert old.eng_vdwl == pytest.approx(half.eng_vdwl)
    assert old.virial == pytest.approx(half.virial)


def test_ghost_without_newton_counts_half():
    def make():
        atom = _atoms([(0.0, 0.0, 0.0)])
        atom.x[1] = (1.05, 0.0, 0.0)
        atom.type[1] = 0
        atom.nghost = 1
        return atom

    with_newton = make()
    without = make()
    f1 = _force()
    f2 = _force()
    f1.compute(with_newton, [[1]], half_neigh=True, ghost_newton=True)
    f2.compute(without, [[1]], half_neigh=True, ghost_newton=False)
    assert without.f[1, 0] == 0.0
    assert with_newton.f[1, 0] == pytest.approx(-with_newton.f[0, 0])
    assert np.allclose(with_newton.f[0], without.f[0])
    assert f2.eng_vdwl == pytest.approx(0.5 * f1.eng_vdwl)
    assert f2.virial == pytest.approx(0.5 * f1.virial)


def test_evflag_off_skips_energy_but_not_forces():
    atom = _atoms([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)])
    force = _force()
    force.evflag = False
    force.compute(atom, _half(2), half_neigh=True, ghost_newton=True)
    assert force.virial == 0.0
    assert atom.f[1, 0] == pytest.approx(-atom.f[0, 0])
    assert atom.f[1, 0] > 0.0


def test_missing_neighbor_lists_raise():
    atom = _atoms([(0.0, 0.0, 0.0), (1.0, 0.0, 0.0)])
    with pytest.raises(ValueError):
        _force().compute(atom, [[1]], half_neigh=True, ghost_newton=True)