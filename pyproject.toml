[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sonicbuf"
version = "0.1.0"
description = "Byte buffers for networking code: a three-area byte buffer, a bip buffer and codec connections over byte streams"
requires-python = ">=3.10"
dependencies = []
keywords = ["buffer", "ring buffer", "bip buffer", "networking", "codec"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sonicbuf"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
