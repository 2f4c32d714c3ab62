[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tssh"
version = "0.1.0"
description = "SSH-2.0 transport building blocks: wire encoding, ECDH key exchange and packet protection"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = ["ssh", "ecdh", "aes-ctr", "hmac", "transport", "mpint"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["tssh"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
