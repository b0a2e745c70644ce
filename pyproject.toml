[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "alexlink"
version = "0.1.0"
description = "Serial command console and packet framing for the Alex robot controller"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = ["serial", "robot", "arduino", "packet", "framing", "teleoperation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Terminals :: Serial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
alexlink = "alexlink.client:main"

[tool.hatch.build.targets.wheel]
packages = ["alexlink"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
