[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "htsnet"
version = "0.1.0"
description = "Small TCP/UDP socket helpers, line and data readers, string utilities and a pure SHA-1"
requires-python = ">=3.10"
dependencies = []
keywords = ["tcp", "udp", "tls", "socket", "networking", "sha1"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["htsnet"]

[tool.pytest.ini_options]
addopts = "-ra"
