"""
Pytest Configuration
Provides fixed test wallets, a verifying domain and deterministic randomness.
"""

import os
import random
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from hup.eip712 import domain_separator
from hup.schemas import Domain
from hup.sign import address_of

# Set deterministic seed for all tests
RNG_SEED = int(os.getenv("RNG_SEED", "1337"))
random.seed(RNG_SEED)

# Standard hardhat test wallet private keys
KEY_1 = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
KEY_2 = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
KEY_3 = "0x5de4111afa1a4b94908f83103eb1f1706367c2e68ca870fc3fb9a804cdab365a"

CHAIN_ID = 31337
VERIFYING_CONTRACT = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def seeded_random():
    """Provide seeded random number generator."""
    random.seed(RNG_SEED)
    yield random


@pytest.fixture
def wallets():
    """(key, address) for the three standard wallets."""
    return [(k, address_of(k)) for k in (KEY_1, KEY_2, KEY_3)]


@pytest.fixture
def player1(wallets):
    return wallets[0]


@pytest.fixture
def player2(wallets):
    return wallets[1]


@pytest.fixture
def outsider(wallets):
    return wallets[2]


@pytest.fixture
def domain() -> Domain:
    return Domain(chain_id=CHAIN_ID, verifying_contract=VERIFYING_CONTRACT)


@pytest.fixture
def separator(domain) -> bytes:
    return domain_separator(domain)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Keep developer .env values out of config tests."""
    for key in ["HUP_CHAIN_ID", "HUP_VERIFYING_CONTRACT", "HUP_DOMAIN_NAME",
                "HUP_DOMAIN_VERSION", "HUP_LOG_DIR", "HUP_LOG_LEVEL"]:
        monkeypatch.delenv(key, raising=False)
    yield


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with deterministic settings."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
    config.addinivalue_line("markers", "deterministic: marks tests as deterministic")


def pytest_collection_modifyitems(config, items):
    """Mark deterministic tests by name."""
    for item in items:
        if "deterministic" in item.name:
            item.add_marker(pytest.mark.deterministic)
