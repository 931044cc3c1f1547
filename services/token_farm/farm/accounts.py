import hashlib
import re

from farm.errors import InvalidAddress

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_address(value: str) -> str:
    """
    Canonical form of an account address:
    - strip surrounding whitespace
    - lowercase
    - must be 0x + 40 hex chars
    """
    if not isinstance(value, str):
        raise InvalidAddress(f"address must be a string, got {type(value).__name__}")
    addr = value.strip().lower()
    if not _ADDRESS_RE.match(addr):
        raise InvalidAddress(f"malformed address: {value!r}")
    return addr


def derive_address(label: str) -> str:
    """Deterministic address for a named account ("owner", "user", ...)."""
    label = " ".join(label.lower().split())
    digest = hashlib.sha256(label.encode("utf-8")).hexdigest()
    return "0x" + digest[-40:]


def contract_address(deployer: str, nonce: int) -> str:
    deployer = normalize_address(deployer)
    digest = hashlib.sha256(f"{deployer}:{nonce}".encode("utf-8")).hexdigest()
    return "0x" + digest[-40:]
