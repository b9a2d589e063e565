# tests/conftest.py
"""Shared test fixtures and helpers.

Fixtures:
- mock_clock: MockClock starting at t=0ns
- rsa_private_key / rsa_key_b64 / rsa_key_pem: one 2048-bit key per session
  (generation is slow, so it is shared)
- sample_document: a valid Document with one product
- settings_file: writes a minimal settings YAML to tmp_path

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import base64
import os
from collections.abc import Callable
from datetime import date
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from hypothesis import Phase, Verbosity, settings

from docgate.contracts import Document, Product
from docgate.core.clock import MockClock


@pytest.fixture
def mock_clock() -> MockClock:
    return MockClock()


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_key_b64(rsa_private_key: rsa.RSAPrivateKey) -> str:
    """Base64 PKCS#8 DER, the registry's usual key export format."""
    der = rsa_private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return base64.b64encode(der).decode("ascii")


@pytest.fixture(scope="session")
def rsa_key_pem(rsa_private_key: rsa.RSAPrivateKey) -> str:
    return rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def sample_document() -> Document:
    doc = Document(
        doc_status="DRAFT",
        doc_type="LP_INTRODUCE_GOODS",
        owner_inn="7700000001",
        participant_inn="7700000002",
        producer_inn="7700000003",
        production_date=date(2024, 1, 15),
        production_type="OWN_PRODUCTION",
        reg_date=date(2024, 1, 16),
        reg_number="REG-1",
    )
    doc.add_product(
        Product(
            product_date=date(2024, 1, 15),
            tnved_code="6401100000",
            uit_code="010460043993125621JgXJ5.T",
        )
    )
    return doc


@pytest.fixture
def settings_file(tmp_path: Path) -> Callable[[str], Path]:
    """Factory writing YAML text to settings.yaml and returning its path."""

    def _write(content: str) -> Path:
        path = tmp_path / "settings.yaml"
        path.write_text(content, encoding="utf-8")
        return path

    return _write


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
