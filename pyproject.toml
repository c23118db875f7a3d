[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kitbag"
version = "0.1.0"
description = "Small self-contained algorithms: expression evaluation, BGZF files, HMMs, suffix arrays, special functions and more"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "bgzf",
    "expression",
    "hmm",
    "suffix-array",
    "newick",
    "eigenvalues",
    "special-functions",
    "range-minimum-query",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: Scientific/Engineering :: Mathematics",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
kitbag-expr = "kitbag.expr:main"
kitbag-kson = "kitbag.kson:main"

[tool.hatch.build.targets.wheel]
packages = ["kitbag"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
