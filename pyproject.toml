[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tensor_explorer"
version = "0.1.1"
description = "Interactive terminal explorer for .safetensors and .gguf model files"
requires-python = ">=3.10"
dependencies = [
    "blessed",
]
keywords = ["safetensors", "gguf", "tensors", "models", "terminal", "explorer"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
tensor-explorer = "tensor_explorer.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tensor_explorer"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
