[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wirepack"
version = "0.1.0"
description = "Declarative, bit-precise packet layouts with zero-copy accessors and mutators"
requires-python = ">=3.10"
dependencies = []
keywords = ["networking", "packet", "protocol", "bitfield", "parser"]
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
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wirepack"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
