[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pagedb"
version = "0.1.0"
description = "A small paged database engine: page files, a buffer pool, condition expressions and a record manager"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "storage", "buffer pool", "page file", "record manager", "scan"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pagedb"]

[tool.hatch.build.targets.sdist]
include = ["pagedb", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
