[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "regbus"
version = "0.1.0"
description = "Register-level access to I2C, SPI and generic bus devices through pluggable bus objects"
requires-python = ">=3.10"
dependencies = []
keywords = ["i2c", "spi", "register", "bus", "embedded", "bitbang"]
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
    "Topic :: Software Development :: Embedded Systems",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["regbus"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
