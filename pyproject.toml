[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pygba"
version = "0.1.0"
description = "A Game Boy Advance emulator core with an ARM7TDMI interpreter"
requires-python = ">=3.10"
keywords = ["emulator", "gba", "game boy advance", "arm7tdmi", "thumb"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
    "Topic :: System :: Emulators",
]
dependencies = [
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
pygba = "pygba.app:main"

[tool.hatch.build.targets.wheel]
packages = ["pygba"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
