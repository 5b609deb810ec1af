[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cantoolkit"
version = "0.1.0"
description = "SocketCAN utilities: slcan ASCII protocol tools and an MCP251xFD register and RAM dump decoder"
requires-python = ">=3.10"
dependencies = []
keywords = ["can", "socketcan", "slcan", "lawicel", "mcp2517fd", "mcp2518fd", "mcp251xfd", "embedded"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems :: Controller Area Network (CAN)",
    "Topic :: System :: Networking",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
slcanpty = "cantoolkit.slcanpty:main"
slcan-attach = "cantoolkit.slcan_attach:main"
slcand = "cantoolkit.slcand:main"
mcp251xfd-dump = "cantoolkit.mcp251xfd.main:main"

[tool.hatch.build.targets.wheel]
packages = ["cantoolkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
