[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minimd"
version = "0.1.0"
description = "Building blocks for small molecular dynamics runs: lattices and data files, Lennard-Jones and EAM forces, ghost-atom communication and thermodynamic output"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "molecular dynamics",
    "lennard-jones",
    "eam",
    "embedded atom",
    "simulation",
    "physics",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["minimd"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
