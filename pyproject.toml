[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pholcus"
version = "0.4.8"
description = "A rule-driven web crawler library with a priority scheduler, batched CSV/Excel/MongoDB output and task packing for distributed runs"
requires-python = ">=3.10"
keywords = ["crawler", "spider", "scraping", "scheduler", "deduplication"]
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
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Internet :: WWW/HTTP :: Indexing/Search",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "requests",
    "beautifulsoup4",
    "pymongo",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["pholcus"]

[tool.pytest.ini_options]
addopts = "-ra"
