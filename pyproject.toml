[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "glaciersim"
version = "0.1.0"
description = "Glacier terrains on regular grids: scalar fields, shallow-ice flow quantities, terrain geometry and GLSL source preparation"
requires-python = ">=3.10"
keywords = [
    "glacier",
    "terrain",
    "heightfield",
    "shallow ice approximation",
    "scalar field",
    "simplex noise",
    "glsl",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Physics",
    "Topic :: Scientific/Engineering :: GIS",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["glaciersim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
