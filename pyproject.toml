[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tdstypes"
version = "0.1.0"
description = "Encoding and decoding of SQL Server TDS data types, type metadata and uniqueidentifier values"
requires-python = ">=3.10"
dependencies = []
keywords = ["tds", "mssql", "sqlserver", "protocol", "datatypes"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tdstypes"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
