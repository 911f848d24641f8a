[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "plonkvk"
version = "0.1.0"
description = "Packed binary verifying-key format, Keccak Fiat-Shamir transcript and BN254 helpers for PLONK/KZG proofs"
requires-python = ">=3.10"
dependencies = [
    "pycryptodome",
]
keywords = ["plonk", "kzg", "bn254", "zero-knowledge", "verifying-key", "keccak", "transcript", "pairing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["plonkvk"]

[tool.pytest.ini_options]
addopts = "-ra"
