# minimd

Building blocks for small molecular dynamics runs of simple atomic
systems. The package builds face-centred cubic lattices or reads
LAMMPS-style data files, sets up ghost atoms across periodic boundaries,
computes Lennard-Jones or embedded-atom (EAM) forces from neighbour lists
you supply, and reports reduced temperature, energy and pressure.

It needs only `numpy`.

## Modules

| Module                 | What it provides |
|------------------------|------------------|
| `minimd.atom`          | `Box` and `Atom`: positions, velocities, forces and types of owned and ghost atoms; `pbc`, `copy`, `reorder`, and the `pack_*` / `unpack_*` methods used for communication |
| `minimd.lattice`       | `create_box`, `create_atoms`, the `park_miller` generator and `SetupError` |
| `minimd.velocity`      | `zero_momentum` and `create_velocity` |
| `minimd.lammps_data`   | `LammpsData`, `parse_lammps_data`, `read_lammps_data`, `load_lammps_atoms`, `LammpsDataError` |
| `minimd.input`         | `InputParameters`, `parse_input`, `read_input`, `ForceType`, `InputError` |
| `minimd.force_lj`      | `ForceLJ`, the truncated 12-6 Lennard-Jones force |
| `minimd.eam_potential` | `Funcfl`, `EamTables`, `parse_funcfl`, `read_funcfl`, `interpolate`, `parse_bounds` |
| `minimd.force_eam`     | `ForceEAM`, the single-element embedded-atom force |
| `minimd.comm`          | `processor_grid`, `Swap`, `Comm`: sub-domain bounds and ghost-atom swaps |
| `minimd.exchange`      | `exchange` and `exchange_all`, which move owned atoms between sub-domains |
| `minimd.thermo`        | `Units`, `ThermoRecord`, `Thermo` |
| `minimd.timer`         | `TimerSlot` and `Timer` for accumulating wall-clock time per phase |

## The parameters file

`read_input(path)` (or `parse_input(lines)`) reads a fixed 14-line
layout: two free lines, then the units (`lj` or `metal`), the data file
(`none` to build a lattice), the force type (`lj` or `eam`), epsilon and
sigma, the unit cell counts, the number of steps, the time step, the
requested temperature, the density, the reneighbouring interval, the
force cutoff and neighbour skin, and the thermodynamic output interval.
The returned `neigh_cut` is the force cutoff plus the skin. A missing
file, a short file, a bad number or an unknown units or force keyword
raises `InputError`.

```python
from minimd.input import parse_input

deck = """Lennard-Jones input

lj
none
lj
1.0 1.0
4 4 4
100
0.005
1.44
0.8442
20
2.5 0.30
100
""".splitlines(keepends=True)

params = parse_input(deck)
print(params.neigh_cut)  # 2.8
```

## A single-process start

```python
import numpy as np

from minimd.atom import Atom
from minimd.comm import Comm
from minimd.force_lj import ForceLJ
from minimd.lattice import create_atoms, create_box
from minimd.thermo import Thermo, Units
from minimd.velocity import create_velocity

atom = Atom()
create_box(atom, 4, 4, 4, 0.8442)       # global box lengths
comm = Comm()                           # one process, rank 0
comm.setup(2.8, atom)                   # sub-domain bounds and swaps
create_atoms(atom, 4, 4, 4, 0.8442)     # 256 fcc atoms

thermo = Thermo(nstat=100)
thermo.setup(0.8442, 100, atom, Units.LJ)
create_velocity(1.44, atom, thermo)

comm.borders(atom)                      # ghost atoms

# Full neighbour lists: the package expects them from the caller.
nall = atom.nlocal + atom.nghost
pos = atom.x[:nall]
neighbors = []
for i in range(atom.nlocal):
    d2 = ((pos - pos[i]) ** 2).sum(axis=1)
    neighbors.append(np.nonzero((d2 < 2.8 ** 2) & (np.arange(nall) != i))[0])

force = ForceLJ()
force.cutforce = 2.5
force.setup()
force.compute(atom, neighbors)          # full lists
record = thermo.compute(0, atom, False, force)
```

`Thermo.compute` prints one line (`step temperature energy pressure
time`) to its stream, standard output by default, and returns a
`ThermoRecord`, or `None` on steps it does not sample.

## Forces

`ForceLJ.compute(atom, neighbors, half_neigh=False, ghost_newton=False)`
works with full lists (each pair listed from both sides) or half lists.
With half lists and `ghost_newton` the reaction force is also stored on
ghost atoms; without it, pairs with a ghost count half toward energy and
virial. Setting `use_oldcompute` stores forces on both atoms of every
listed pair.

`ForceEAM.setup(path)` reads a DYNAMO funcfl file (default
`Cu_u6.eam`) and builds the spline tables through
`EamTables.from_funcfl`; tables can also be passed to the constructor.
`ForceEAM.compute(atom, neighbors, comm=None, half_neigh=False)` uses
`comm` to send embedding derivatives to ghost atoms. `single(i, j, rsq)`
returns the pair energy and scalar force.

## Several processes

`Comm(nprocs, rank, transport)` describes one process in a periodic
Cartesian grid chosen by `processor_grid`, which picks the factorisation
with the least sub-domain surface (`processor_grid(8, 10.0, 10.0, 10.0)`
gives `(2, 2, 2)`). Ranks are laid out row-major. There is no built-in
message passing: `transport(payload, dest, source)` must send `payload`
to rank `dest` and return what rank `source` sent. Swaps with the
process itself need no transport. `exchange` and `exchange_all` use the
same transport to hand atoms that left a sub-domain to its neighbours.

## Random numbers

Lattice velocities come from `park_miller(seed)`, the Park-Miller
minimal standard generator, seeded from each atom's lattice index, so a
lattice gets the same velocities on any processor layout.

## What the package does not do

- It has no command and no run loop: there is no time integrator, so
  stepping positions and velocities is up to the caller.
- It does not build neighbour lists or bin and sort atoms; `ForceLJ`
  and `ForceEAM` take the lists as an argument (`Atom.reorder` can apply
  an ordering you compute).
- It writes no result files; thermodynamic lines go to a text stream and
  records are kept in `Thermo.records`.
- It has no message-passing layer of its own beyond the `transport`
  callable described above.

## Running the tests

```
pip install -e ".[test]"
pytest
```