[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cwexporter"
version = "0.1.0"
description = "Job model, metric-to-resource association and concurrent job scraping for a CloudWatch metrics exporter"
requires-python = ">=3.10"
dependencies = []
keywords = ["cloudwatch", "metrics", "monitoring", "exporter", "scraping"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cwexporter"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
