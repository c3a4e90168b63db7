[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dccsignal"
version = "0.1.0"
description = "DCC accessory decoder that drives a model railway light signal with fading lamps"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "dcc",
    "nmra",
    "model railway",
    "accessory decoder",
    "signal",
    "model train",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Home Automation",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
dccsignal = "dccsignal.app:main"

[tool.hatch.build.targets.wheel]
packages = ["dccsignal"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
