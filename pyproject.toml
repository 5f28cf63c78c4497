[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "y86kit"
version = "0.1.0"
description = "Bit-level integer and float puzzles with a checker, plus a Y86 assembler, instruction set simulator and HCL code generator"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "y86",
    "assembler",
    "simulator",
    "emulator",
    "hcl",
    "bit-manipulation",
    "ieee-754",
    "computer-systems",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Software Development :: Assemblers",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
fshow = "y86kit.numshow:fshow_main"
ishow = "y86kit.numshow:ishow_main"
btest = "y86kit.btest:main"
yis = "y86kit.machine:main"
yas = "y86kit.assembler:main"

[tool.hatch.build.targets.wheel]
packages = ["y86kit"]

[tool.pytest.ini_options]
addopts = "-ra"
