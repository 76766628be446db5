[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "meshsec"
version = "0.1.0"
description = "Consumer-side mesh security building blocks: price feed, converter, IBC packets and staking arithmetic as plain Python"
requires-python = ">=3.10"
dependencies = []
keywords = ["staking", "mesh-security", "ibc", "validators", "rewards", "simulation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["meshsec"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
