[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "btcembed"
version = "0.1.0"
description = "Embed and extract arbitrary data and TLV-encoded messages in Bitcoin transactions"
requires-python = ">=3.10"
dependencies = []
keywords = ["bitcoin", "embed", "extract", "envelope", "inscribe", "op_return", "taproot", "annex"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["btcembed"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
