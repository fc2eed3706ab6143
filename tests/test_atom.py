import numpy as np
import pytest

from minimd.atom import DELTA, Atom, Box


def make_atom(n=3):
    atom = Atom(ntypes=1)
    atom.box = Box(xprd=10.0, yprd=20.0, zprd=30.0)
    for k in range(n):
        atom.add_atom(k + 0.5, k + 1.5, k + 2.5, -k, k, 2 * k)
    return atom


def test_add_atom_stores_values_and_grows():
    atom = make_atom(2)
    assert atom.nlocal == 2
    assert atom.nmax == DELTA
    assert list(atom.x[1]) == [1.5, 2.5, 3.5]
    assert list(atom.v[1]) == [-1.0, 1.0, 2.0]
    assert atom.type[0] == 0 and atom.type[1] == 0


def test_types_within_range():
    atom = Atom(ntypes=4)
    for _ in range(200):
        atom.add_atom(0, 0, 0, 0, 0, 0)
    types = atom.type[: atom.nlocal]
    assert types.min() >= 0 and types.max() < 4


def test_grow_preserves_contents():
    atom = make_atom(3)
    before = atom.x[:3].copy()
    atom.grow()
    assert atom.nmax == 2 * DELTA
    assert np.array_equal(atom.x[:3], before)
    assert len(atom.v) == atom.nmax and len(atom.type) == atom.nmax


def test_pbc_wraps_into_box():
    atom = make_atom(0)
    atom.add_atom(-1.0, 25.0, 29.0, 0, 0, 0)
    atom.pbc()
    assert atom.x[0, 0] == pytest.approx(-1.0 + atom.box.xprd)
    assert atom.x[0, 1] == pytest.approx(25.0 - atom.box.yprd)
    assert atom.x[0, 2] == 29.0
    for dim, prd in enumerate(atom.box.prd):
        assert 0.0 <= atom.x[0, dim] < prd


def test_copy():
    atom = make_atom(3)
    atom.copy(2, 0)
    assert np.array_equal(atom.x[0], atom.x[2])
    assert np.array_equal(atom.v[0], atom.v[2])


def test_pack_comm_without_and_with_shift():
    atom = make_atom(3)
    plain = atom.pack_comm([2, 0], (0, 1, 1, 1))
    assert np.array_equal(plain, atom.x[[2, 0]])
    shifted = atom.pack_comm([2, 0], (1, -1, 0, 1))
    delta = shifted - plain
    assert np.allclose(delta[:, 0], -atom.box.xprd)
    assert np.allclose(delta[:, 1], 0.0)
    assert np.allclose(delta[:, 2], atom.box.zprd)


def test_comm_round_trip():
    atom = make_atom(3)
    buf = atom.pack_comm([0, 1, 2], (0, 0, 0, 0))
    atom.unpack_comm(3, buf)
    assert np.array_equal(atom.x[3:6], atom.x[0:3])


def test_reverse_accumulates_repeated_indices():
    atom = make_atom(3)
    atom.f[:] = 0.0
    atom.f[3] = (1.0, 2.0, 3.0)
    atom.f[4] = (1.0, 2.0, 3.0)
    buf = atom.pack_reverse(3, 2)
    atom.unpack_reverse([0, 0], buf)
    assert list(atom.f[0]) == [2.0, 4.0, 6.0]


def test_border_round_trip():
    atom = Atom(ntypes=3)
    atom.box = Box(xprd=5.0, yprd=5.0, zprd=5.0)
    atom.add_atom(1.0, 2.0, 3.0, 0, 0, 0)
    buf = atom.pack_border(0, (0, 0, 0, 0))
    assert len(buf) == atom.border_size
    assert atom.unpack_border(1, buf) == atom.border_size
    assert np.array_equal(atom.x[1], atom.x[0])
    assert atom.type[1] == atom.type[0]


def test_unpack_border_grows_at_capacity():
    atom = make_atom(1)
    buf = atom.pack_border(0, (1, 1, 0, 0))
    atom.unpack_border(atom.nmax, buf)
    assert atom.nmax == 2 * DELTA
    assert atom.x[DELTA, 0] == pytest.approx(atom.x[0, 0] + atom.box.xprd)


def test_exchange_round_trip():
    atom = make_atom(3)
    buf = atom.pack_exchange(2)
    assert len(buf) == 7
    assert atom.unpack_exchange(5, buf) == 7
    assert np.array_equal(atom.x[5], atom.x[2])
    assert np.array_equal(atom.v[5], atom.v[2])


def test_reorder_permutes_owned_atoms():
    atom = make_atom(3)
    old_x = atom.x[:3].copy()
    old_v = atom.v[:3].copy()
    atom.reorder([2, 0, 1])
    assert np.array_equal(atom.x[:3], old_x[[2, 0, 1]])
    assert np.array_equal(atom.v[:3], old_v[[2, 0, 1]])


@pytest.mark.parametrize("order", [[0, 1], [0, 0, 1], [0, 1, 3]])
def test_reorder_rejects_non_permutation(order):
    atom = make_atom(3)
    with pytest.raises(ValueError):
        atom.reorder(order)