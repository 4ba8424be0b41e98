[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cohorthub"
version = "0.1.0"
description = "Training-cohort management: users, groups, countries, problems, submissions, contests and Elo-style ratings"
requires-python = ">=3.10"
dependencies = []
keywords = ["education", "competitive-programming", "contests", "ratings", "codeforces"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cohorthub"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
