"""Security utilities for docgate."""

from docgate.core.security.signing import load_private_key, load_signing_key, sign_sha256_rsa

__all__ = [
    "load_private_key",
    "load_signing_key",
    "sign_sha256_rsa",
]
