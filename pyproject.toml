[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "simplecomputer"
version = "0.1.0"
description = "A terminal emulator of a small educational computer, with an assembler and a Basic translator"
requires-python = ">=3.10"
keywords = ["emulator", "simple computer", "assembler", "basic", "terminal"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Education",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
simplecomputer = "simplecomputer.console:main"
sat = "simplecomputer.assembler:main"
sbt = "simplecomputer.basic:main"

[tool.hatch.build.targets.wheel]
packages = ["simplecomputer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
