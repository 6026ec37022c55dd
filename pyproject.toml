[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "qmcore"
version = "0.1.0"
description = "Core utilities for desktop applications: insertion-ordered collections, path helpers, variable expressions, translatable strings and .qm translation management"
requires-python = ">=3.10"
dependencies = []
keywords = ["ordered-dict", "ordered-set", "translation", "i18n", "qm", "paths", "variables"]
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
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Topic :: Software Development :: Internationalization",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["qmcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
