[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "truss"
version = "0.1.0"
description = "Read gRPC service definitions from protobuf and generated Go sources, including their HTTP annotations"
requires-python = ">=3.10"
dependencies = []
keywords = ["grpc", "protobuf", "code generation", "http annotations", "service definition"]
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
    "Topic :: Software Development :: Code Generators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["truss"]

[tool.pytest.ini_options]
addopts = "-ra"
