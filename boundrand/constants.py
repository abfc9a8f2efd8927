"""
boundrand constants.

This module centralizes:
- The entropy buffer length requested per draw
- The fold multiplier used to turn that buffer into a 64-bit value
- Unsigned 64-bit limits
- Domain separation tags for the optional entropy pool

Code that needs stable defaults imports from here; operational knobs live in
`boundrand.config.BoundRandConfig`.
"""

from __future__ import annotations

# -----------------------------
# Draw parameters
# -----------------------------
# Bytes requested from the entropy source per draw.
ENTROPY_BUFFER_LEN: int = 32

# Only the first ENTROPY_BUFFER_LEN - 1 bytes are folded into the accumulator.
FOLD_BYTES: int = ENTROPY_BUFFER_LEN - 1

FOLD_MULTIPLIER: int = 255

# -----------------------------
# Unsigned 64-bit limits
# -----------------------------
U64_BITS: int = 64
U64_MOD: int = 1 << U64_BITS
U64_MASK: int = U64_MOD - 1
U64_MAX: int = U64_MASK

# -----------------------------
# Entropy pool
# -----------------------------
# Keep these stable; changing them changes every pool output for a given seed.
DOMAIN_PREFIX: bytes = b"boundrand.pool."
DOMAIN_SEED: bytes = DOMAIN_PREFIX + b"seed.v1"
DOMAIN_RESEED: bytes = DOMAIN_PREFIX + b"reseed.v1"
DOMAIN_OUTPUT: bytes = DOMAIN_PREFIX + b"output.v1"
DOMAIN_RATCHET: bytes = DOMAIN_PREFIX + b"ratchet.v1"

# Upstream bytes pulled when seeding or reseeding the pool.
POOL_SEED_LEN: int = 64

DEFAULT_POOL_RESEED_AFTER_DRAWS: int = 4096
DEFAULT_POOL_RESEED_INTERVAL_S: float = 300.0

# -----------------------------
# File sources
# -----------------------------
DEFAULT_DEVICE_PATH: str = "/dev/urandom"
DEFAULT_FILE_BLOCK_SIZE: int = 1 << 16
DEFAULT_DEVICE_BLOCK_SIZE: int = 1 << 12

__all__ = [
    "ENTROPY_BUFFER_LEN",
    "FOLD_BYTES",
    "FOLD_MULTIPLIER",
    "U64_BITS",
    "U64_MOD",
    "U64_MASK",
    "U64_MAX",
    "DOMAIN_PREFIX",
    "DOMAIN_SEED",
    "DOMAIN_RESEED",
    "DOMAIN_OUTPUT",
    "DOMAIN_RATCHET",
    "POOL_SEED_LEN",
    "DEFAULT_POOL_RESEED_AFTER_DRAWS",
    "DEFAULT_POOL_RESEED_INTERVAL_S",
    "DEFAULT_DEVICE_PATH",
    "DEFAULT_FILE_BLOCK_SIZE",
    "DEFAULT_DEVICE_BLOCK_SIZE",
]
