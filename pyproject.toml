[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ocmcontroller"
version = "0.26.4"
description = "Helpers for delivering software components: safe tar extraction, reproducible snapshot archives, semver constraint resolution, identity hashing and status conditions."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "ocm",
    "component",
    "semver",
    "tar",
    "snapshot",
    "software-distribution",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Software Distribution",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
ocmcontroller-version = "ocmcontroller.version:main"

[tool.hatch.build.targets.wheel]
packages = ["ocmcontroller"]

[tool.hatch.build.targets.sdist]
include = ["ocmcontroller", "tests", "README.md"]

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
strict = true
