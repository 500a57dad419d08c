[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "commute_loadtest"
version = "0.1.0"
description = "Load generator that simulates transit display devices against an HTTP and MQTT backend"
requires-python = ">=3.10"
keywords = ["load testing", "mqtt", "http", "simulation", "transit", "terminal dashboard"]
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
    "Topic :: Software Development :: Testing :: Traffic Generation",
]
dependencies = [
    "requests>=2.28",
    "paho-mqtt>=2.0",
    "wcwidth>=0.2.6",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "responses>=0.23",
]

[tool.hatch.build.targets.wheel]
packages = ["commute_loadtest"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
