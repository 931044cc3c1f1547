from __future__ import annotations

import hashlib
import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


def _try_load_env() -> None:
    """
    Load .env from the repo root if present so running tests locally is easy.
    """
    repo_root = Path(__file__).resolve().parents[1]
    env_path = repo_root / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)


_try_load_env()


def _address(label: str) -> str:
    return "0x" + hashlib.sha256(label.encode("utf-8")).hexdigest()[-40:]


@pytest.fixture(scope="session")
def token_farm_url() -> str:
    url = os.getenv("TOKEN_FARM_URL")
    if not url:
        pytest.skip("TOKEN_FARM_URL not set; start services/token_farm/main.py and export it.")
    return url


@pytest.fixture(scope="session")
def owner_address() -> str:
    # Must match the service's FARM_OWNER.
    return os.getenv("FARM_OWNER") or _address("owner")


@pytest.fixture()
def fresh_address() -> str:
    # Unique per test so runs against a long-lived service don't collide.
    return _address(f"it-{os.urandom(8).hex()}")
