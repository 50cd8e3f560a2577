[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vidrec"
version = "0.1.0"
description = "In-process video recommendation service with simulated backends, failure injection, batching and a trending-video fallback cache"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "recommendation",
    "distributed-systems",
    "failure-injection",
    "batching",
    "fallback",
    "concurrency",
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
    "Topic :: System :: Distributed Computing",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vidrec"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
