[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "depcheck"
version = "0.1.0"
description = "Check npm package versions for updates, breaking changes and known vulnerabilities"
requires-python = ">=3.10"
keywords = ["npm", "dependencies", "vulnerabilities", "cve", "osv", "semver", "security"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: Software Development :: Quality Assurance",
]
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
depcheck = "depcheck.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["depcheck"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
