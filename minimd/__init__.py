"""Atoms, lattices, data files, LJ and EAM forces, ghost-atom communication and thermo output."""

__version__ = "0.1.0"

__all__ = [
    "atom",
    "comm",
    "eam_potential",
    "exchange",
    "force_eam",
    "force_lj",
    "input",
    "lammps_data",
    "lattice",
    "thermo",
    "timer",
    "velocity",
]