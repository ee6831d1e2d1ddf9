[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "qnetgw"
version = "0.1.0"
description = "D-STAR gateway building blocks: DSVT packets, slow data, Golay decoding, GPS parsing, routing cache and configuration"
requires-python = ">=3.10"
dependencies = []
keywords = ["d-star", "dstar", "ham radio", "amateur radio", "gateway", "aprs", "dplus", "golay", "dtmf"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Ham Radio",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["qnetgw*"]

[tool.pytest.ini_options]
addopts = "-ra"
