[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "udpgate"
version = "0.1.0"
description = "Building blocks for a UDP proxy: endpoint addresses, localities, packet filter chains and capture filters."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["udp", "proxy", "filters", "endpoints", "game-servers"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["udpgate"]

[tool.pytest.ini_options]
addopts = "-ra"
