[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "qlimaster"
version = "0.1.0"
description = "Pub-quiz score keeping: half-point scores, rankings, checkpoints, team history and CSV/XLSX export"
requires-python = ">=3.10"
dependencies = []
keywords = ["quiz", "pub quiz", "scoreboard", "ranking", "trivia", "hujson"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = [
    "pytest",
    "hypothesis",
]

[project.scripts]
qlimaster = "qlimaster.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["qlimaster"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
