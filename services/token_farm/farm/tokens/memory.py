import logging
from typing import Dict, Tuple

from farm.accounts import normalize_address
from farm.errors import InvalidAmount, TransferFailed, Unauthorized
from farm.tokens.base import TokenLedger

logger = logging.getLogger(__name__)


def _require_positive(amount: int) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"amount must be an integer, got {amount!r}")
    if amount <= 0:
        raise InvalidAmount(f"amount must be > 0, got {amount}")
    return amount


class InMemoryToken(TokenLedger):
    """
    Dict-backed fungible token.

    Checks run before any balance moves, so a rejected call leaves the
    ledger exactly as it was.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        address: str,
        owner: str,
        decimals: int = 18,
    ):
        self._name = name
        self._symbol = symbol
        self._address = normalize_address(address)
        self._owner = normalize_address(owner)
        self._decimals = decimals
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}

    @property
    def name(self) -> str:
        return self._name

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def decimals(self) -> int:
        return self._decimals

    @property
    def address(self) -> str:
        return self._address

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def total_supply(self) -> int:
        return sum(self._balances.values())

    def balance_of(self, account: str) -> int:
        return self._balances.get(normalize_address(account), 0)

    def allowance(self, holder: str, spender: str) -> int:
        key = (normalize_address(holder), normalize_address(spender))
        return self._allowances.get(key, 0)

    def mint(self, caller: str, to: str, amount: int) -> None:
        caller = normalize_address(caller)
        to = normalize_address(to)
        _require_positive(amount)
        if caller != self._owner:
            raise Unauthorized(f"{self._symbol}: only the owner can mint")

        self._balances[to] = self._balances.get(to, 0) + amount
        logger.debug("%s mint to=%s amount=%d", self._symbol, to, amount)

    def transfer(self, caller: str, to: str, amount: int) -> None:
        caller = normalize_address(caller)
        to = normalize_address(to)
        _require_positive(amount)
        self._move(caller, to, amount)

    def transfer_from(self, caller: str, holder: str, to: str, amount: int) -> None:
        caller = normalize_address(caller)
        holder = normalize_address(holder)
        to = normalize_address(to)
        _require_positive(amount)

        allowed = self._allowances.get((holder, caller), 0)
        if allowed < amount:
            raise TransferFailed(
                f"{self._symbol}: insufficient allowance ({allowed} < {amount})"
            )
        self._move(holder, to, amount)
        self._allowances[(holder, caller)] = allowed - amount

    def approve(self, caller: str, spender: str, amount: int) -> None:
        caller = normalize_address(caller)
        spender = normalize_address(spender)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise InvalidAmount(f"allowance must be a non-negative integer, got {amount!r}")
        self._allowances[(caller, spender)] = amount

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        if normalize_address(caller) != self._owner:
            raise Unauthorized(f"{self._symbol}: only the owner can transfer ownership")
        self._owner = normalize_address(new_owner)
        logger.info("%s ownership transferred to %s", self._symbol, self._owner)

    def snapshot(self) -> Tuple[Dict[str, int], Dict[Tuple[str, str], int]]:
        return dict(self._balances), dict(self._allowances)

    def restore(
        self,
        balances: Dict[str, int],
        allowances: Dict[Tuple[str, str], int],
        owner: str,
    ) -> None:
        self._balances = {normalize_address(a): int(v) for a, v in balances.items() if v}
        self._allowances = {
            (normalize_address(h), normalize_address(s)): int(v)
            for (h, s), v in allowances.items()
            if v
        }
        self._owner = normalize_address(owner)

    def _move(self, sender: str, to: str, amount: int) -> None:
        have = self._balances.get(sender, 0)
        if have < amount:
            raise TransferFailed(
                f"{self._symbol}: insufficient balance ({have} < {amount})"
            )
        self._balances[sender] = have - amount
        self._balances[to] = self._balances.get(to, 0) + amount
        if not self._balances[sender]:
            del self._balances[sender]


def dapp_token(address: str, owner: str, decimals: int = 18) -> InMemoryToken:
    """Reward asset."""
    return InMemoryToken("Dapp Token", "DAPP", address, owner, decimals)


def lp_token(address: str, owner: str, decimals: int = 18) -> InMemoryToken:
    """Stake asset."""
    return InMemoryToken("LP Token", "LPT", address, owner, decimals)
