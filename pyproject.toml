[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "burrow"
version = "0.1.0"
description = "Radix-tree HTTP router, response wrapper and WSGI middleware for security headers, trailing slashes and static files"
requires-python = ">=3.10"
dependencies = []
keywords = ["router", "http", "wsgi", "middleware", "static files", "radix tree"]
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
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Middleware",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["burrow"]

[tool.pytest.ini_options]
addopts = "-ra"
