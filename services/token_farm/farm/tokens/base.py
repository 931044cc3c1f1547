from abc import ABC, abstractmethod
from typing import Dict, Tuple


class TokenLedger(ABC):
    """
    Minimal fungible-token interface the farm talks to.
    Amounts are integers in the smallest unit. Every mutating call
    takes the transaction sender as `caller`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def symbol(self) -> str:
        ...

    @property
    @abstractmethod
    def decimals(self) -> int:
        ...

    @property
    @abstractmethod
    def address(self) -> str:
        ...

    @property
    @abstractmethod
    def owner(self) -> str:
        ...

    @property
    @abstractmethod
    def total_supply(self) -> int:
        ...

    @abstractmethod
    def balance_of(self, account: str) -> int:
        ...

    @abstractmethod
    def allowance(self, holder: str, spender: str) -> int:
        ...

    @abstractmethod
    def mint(self, caller: str, to: str, amount: int) -> None:
        ...

    @abstractmethod
    def transfer(self, caller: str, to: str, amount: int) -> None:
        ...

    @abstractmethod
    def transfer_from(self, caller: str, holder: str, to: str, amount: int) -> None:
        ...

    @abstractmethod
    def approve(self, caller: str, spender: str, amount: int) -> None:
        ...

    @abstractmethod
    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        ...

    @abstractmethod
    def snapshot(self) -> Tuple[Dict[str, int], Dict[Tuple[str, str], int]]:
        """Return (balances, allowances) copies for persistence."""
        ...

    @abstractmethod
    def restore(
        self,
        balances: Dict[str, int],
        allowances: Dict[Tuple[str, str], int],
        owner: str,
    ) -> None:
        ...
