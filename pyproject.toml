[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "agentarmy"
version = "0.1.0"
description = "Manage specs for AI coding agents: dependency manifests, bootstrap output and plugin/skill inventories"
requires-python = ">=3.10"
dependencies = []
keywords = ["agents", "skills", "plugins", "frontmatter", "manifest", "code-generation"]
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
    "Topic :: Software Development :: Code Generators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
army = "agentarmy.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["agentarmy"]

[tool.pytest.ini_options]
addopts = "-ra"
