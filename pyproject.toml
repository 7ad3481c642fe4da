[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fvemeta"
version = "0.1.0"
description = "Parse and search the FVE metadata structures of BitLocker-encrypted volumes"
requires-python = ">=3.10"
dependencies = []
keywords = ["bitlocker", "fve", "ntfs", "metadata", "datum", "vmk", "filesystems"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["fvemeta"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
