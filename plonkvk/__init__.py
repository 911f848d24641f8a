"""Packed PLONK/KZG verifying keys, a Keccak Fiat-Shamir transcript and BN254 helpers."""

__version__ = "0.1.0"

__all__ = ["bn254", "compile", "encode", "expression", "transcript", "vk"]