[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pitools"
version = "1.18.0"
description = "Serial-link file transfer, version query and CRC32 tools for a Raspberry Pi attached over a UART"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = [
    "uart",
    "serial",
    "file-transfer",
    "raspberry-pi",
    "crc32",
    "nbn",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Terminals :: Serial",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
piget = "pitools.cli:piget_main"
piput = "pitools.cli:piput_main"
piver = "pitools.piver:main"
pitools-crc32 = "pitools.crc32cli:main"

[tool.hatch.build.targets.wheel]
packages = ["pitools"]

[tool.hatch.build.targets.sdist]
include = [
    "pitools",
    "tests",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"
