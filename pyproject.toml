[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "t32asm"
version = "0.1.0"
description = "Assembler, instruction listing and virtual machine for the t32 8-bit instruction set"
requires-python = ">=3.10"
dependencies = []
keywords = ["assembler", "virtual machine", "8-bit", "interpreter", "emulator"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Assemblers",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
t32 = "t32asm.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["t32asm"]

[tool.pytest.ini_options]
addopts = "-ra"
