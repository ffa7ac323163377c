[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "revdog"
version = "0.1.0"
description = "Unified diff parsing, CI environment detection and review comment writers for code review tooling"
requires-python = ">=3.10"
dependencies = []
keywords = ["diff", "unified-diff", "code-review", "linter", "ci"]
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
    "Topic :: Software Development :: Quality Assurance",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["revdog"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
