[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wasmgroups"
version = "0.1.0"
description = "In-memory weighted membership groups, token staking with claims, and multisig executor rules"
requires-python = ">=3.10"
dependencies = []
keywords = ["group", "membership", "staking", "multisig", "governance", "snapshot", "hooks"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Groupware",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wasmgroups"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
