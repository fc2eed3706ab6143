import numpy as np
import pytest

from minimd.atom import Atom
from minimd.lammps_data import (
    LammpsDataError,
    load_lammps_atoms,
    parse_lammps_data,
    read_lammps_data,
)

SAMPLE = """LAMMPS data file

4 atoms   # four of them
1 atom types

0.0 2.0 xlo xhi
0.0 2.0 ylo yhi
0.0 2.0 zlo zhi

Masses

1 2.5

Atoms

3 1 0.5 1.5 0.5
1 1 0.5 0.5 0.5
4 1 1.5 1.5 1.5
2 1 1.5 0.5 0.5

Velocities

2 0.4 0.5 0.6
1 0.1 0.2 0.3
4 1.0 1.1 1.2
3 0.7 0.8 0.9
"""

POSITIONS = [[0.5, 0.5, 0.5], [1.5, 0.5, 0.5], [0.5, 1.5, 0.5], [1.5, 1.5, 1.5]]
VELOCITIES = [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6], [0.7, 0.8, 0.9], [1.0, 1.1, 1.2]]


def sample_lines(text=SAMPLE):
    return text.splitlines(keepends=True)


def whole_box_atom():
    atom = Atom()
    b = atom.box
    b.xlo = b.ylo = b.zlo = 0.0
    b.xhi = b.yhi = b.zhi = 2.0
    return atom


def test_parse_header():
    data = parse_lammps_data(sample_lines())
    assert data.natoms == 4
    assert data.ntypes == 1
    assert (data.xprd, data.yprd, data.zprd) == (2.0, 2.0, 2.0)
    assert data.mass == 2.5


def test_parse_sections_order_by_id():
    data = parse_lammps_data(sample_lines())
    assert np.allclose(data.positions, POSITIONS)
    assert np.allclose(data.velocities, VELOCITIES)


def test_header_only_file():
    data = parse_lammps_data(["title\n", "\n", "2 atoms\n"])
    assert data.natoms == 2
    assert data.positions.shape == (2, 3)
    assert data.mass is None


def test_unknown_section_raises():
    text = SAMPLE.replace("Masses", "Bonds")
    with pytest.raises(LammpsDataError):
        parse_lammps_data(sample_lines(text))


def test_truncated_atoms_section_raises():
    text = SAMPLE.split("Atoms")[0] + "Atoms\n\n1 1 0.5 0.5 0.5\n"
    with pytest.raises(LammpsDataError):
        parse_lammps_data(sample_lines(text))


def test_atom_id_out_of_range_raises():
    text = SAMPLE.replace("4 1 1.5 1.5 1.5", "9 1 1.5 1.5 1.5")
    with pytest.raises(LammpsDataError):
        parse_lammps_data(sample_lines(text))


def test_velocities_before_atoms_warns():
    text = ("title\n\n1 atoms\n0 1 xlo xhi\n0 1 ylo yhi\n0 1 zlo zhi\n\n"
            "Velocities\n\n1 0.1 0.2 0.3\n\nAtoms\n\n1 1 0.2 0.2 0.2\n")
    with pytest.warns(UserWarning):
        data = parse_lammps_data(sample_lines(text))
    assert np.allclose(data.velocities[0], [0.1, 0.2, 0.3])
    assert np.allclose(data.positions[0], [0.2, 0.2, 0.2])


def test_read_from_file(tmp_path):
    path = tmp_path / "data.lmp"
    path.write_text(SAMPLE)
    data = read_lammps_data(path)
    assert data.natoms == 4
    assert np.allclose(data.positions, POSITIONS)


def test_read_missing_file(tmp_path):
    with pytest.raises(LammpsDataError):
        read_lammps_data(tmp_path / "missing.lmp")


def test_load_whole_box():
    data = parse_lammps_data(sample_lines())
    atom = whole_box_atom()
    assert load_lammps_atoms(data, atom) == 4
    assert atom.natoms == 4
    assert atom.mass == 2.5
    assert atom.box.prd == (2.0, 2.0, 2.0)
    assert np.allclose(atom.x[:4], POSITIONS)
    assert np.allclose(atom.v[:4], VELOCITIES)


def test_load_sub_domain_keeps_only_inside_atoms():
    data = parse_lammps_data(sample_lines())
    atom = whole_box_atom()
    atom.box.xhi = 1.0
    assert load_lammps_atoms(data, atom) == 2
    assert np.allclose(atom.x[:2], [POSITIONS[0], POSITIONS[2]])


def test_load_atom_outside_box_raises():
    text = SAMPLE.replace("4 1 1.5 1.5 1.5", "4 1 2.5 1.5 1.5")
    data = parse_lammps_data(sample_lines(text))
    with pytest.raises(LammpsDataError):
        load_lammps_atoms(data, whole_box_atom())