[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "structlogline"
version = "0.1.0"
description = "Structured JSON line logging: chained event field builders, hooks, a console formatter and a non-blocking ring-buffer writer."
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "structured-logging", "json", "console", "hooks", "ring-buffer"]
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
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["structlogline"]

[tool.pytest.ini_options]
addopts = "-ra"
