[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cowncurrency"
version = "0.1.0"
description = "Concurrency building blocks: behaviour-oriented cowns, reference counting, compare-and-swap stacks, growable arrays, hazard pointers and a small caching server"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "concurrency",
    "threads",
    "lock-free",
    "hazard-pointers",
    "thread-pool",
    "cache",
    "stack",
    "behaviour-oriented-concurrency",
]
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
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cowncurrency-server = "cowncurrency.server:main"

[tool.hatch.build.targets.wheel]
packages = ["cowncurrency"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
