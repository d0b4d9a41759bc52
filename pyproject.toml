[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cicero"
version = "0.1.0"
description = "A continuation-passing-style intermediate representation with CPS conversion, an interpreter and dataflow analysis"
requires-python = ">=3.10"
dependencies = []
keywords = ["cps", "compiler", "intermediate-representation", "interpreter", "dataflow", "static-analysis"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cicero"]

[tool.pytest.ini_options]
addopts = "-ra"
