[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mirror"
version = "0.1.0"
description = "Serialize dataclasses into a typed value tree and encode it as JSON, YAML or a compact binary format"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["serialization", "dataclasses", "json", "yaml", "binary", "sql"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["mirror"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
