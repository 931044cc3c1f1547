from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, List, Optional

from farm.accounts import normalize_address
from farm.chain import Chain
from farm.config import REWARD_RATE_DENOMINATOR, REWARD_RATE_NUMERATOR
from farm.errors import (
    FarmError,
    InvalidAmount,
    NothingStaked,
    NothingToClaim,
    Unauthorized,
)
from farm.tokens.base import TokenLedger

logger = logging.getLogger(__name__)


@dataclass
class Participant:
    address: str
    staking_balance: int = 0
    is_staking: bool = False
    checkpoint_block: int = 0
    pending_rewards: int = 0
    has_staked: bool = False


@dataclass(frozen=True)
class RewardRate:
    """Reward units per `denominator` staked units per block."""

    numerator: int = REWARD_RATE_NUMERATOR
    denominator: int = REWARD_RATE_DENOMINATOR

    def accrue(self, staking_balance: int, elapsed_blocks: int) -> int:
        if elapsed_blocks <= 0 or staking_balance <= 0:
            return 0
        return staking_balance * elapsed_blocks * self.numerator // self.denominator


class StakingLedger:
    """
    Stake LP tokens, earn DAPP per block.

    Callers:
      - deposit / claim_rewards / withdraw: any participant
      - distribute_rewards_all: owner only

    Every operation validates first, then runs its token side effect, and
    only then touches participant records. A raised FarmError therefore
    leaves the ledger unchanged.
    """

    def __init__(
        self,
        *,
        address: str,
        owner: str,
        chain: Chain,
        dapp_token: TokenLedger,
        lp_token: TokenLedger,
        reward_rate: Optional[RewardRate] = None,
    ):
        self.address = normalize_address(address)
        self.owner = normalize_address(owner)
        self.chain = chain
        self.dapp_token = dapp_token
        self.lp_token = lp_token
        self.reward_rate = reward_rate or RewardRate()

        self._participants: Dict[str, Participant] = {}
        # First-deposit order; never pruned, drives distribution order.
        self._registry: List[str] = []

    # -----------------------------------------------------------------
    # Transactions
    # -----------------------------------------------------------------

    def deposit(self, caller: str, amount: int) -> Participant:
        caller = normalize_address(caller)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise self._reject("deposit", caller, InvalidAmount(f"amount must be > 0, got {amount!r}"))

        with self.chain.lock:
            height = self.chain.block_number
            try:
                self.lp_token.transfer_from(self.address, caller, self.address, amount)
            except FarmError as e:
                raise self._reject("deposit", caller, e) from e

            p = self._participants.get(caller)
            if p is None:
                p = Participant(address=caller)
                self._participants[caller] = p
            if not p.has_staked:
                self._registry.append(caller)
                p.has_staked = True
            if not p.is_staking:
                p.checkpoint_block = height

            p.staking_balance += amount
            p.is_staking = True

            logger.info(
                "deposit participant=%s amount=%d balance=%d block=%d",
                caller, amount, p.staking_balance, height,
            )
            return replace(p)

    def distribute_rewards_all(self, caller: str) -> int:
        """
        Settle accrual for every staking participant up to the current block.
        Returns the total reward added to pending balances by this call.
        """
        caller = normalize_address(caller)
        if caller != self.owner:
            raise self._reject("distribute", caller, Unauthorized("only the owner can distribute rewards"))

        with self.chain.lock:
            height = self.chain.block_number
            total = 0
            for addr in self._registry:
                p = self._participants[addr]
                if not p.is_staking:
                    continue
                reward = self.reward_rate.accrue(p.staking_balance, height - p.checkpoint_block)
                p.pending_rewards += reward
                p.checkpoint_block = height
                total += reward

            logger.info("distribute block=%d total=%d", height, total)
            return total

    def claim_rewards(self, caller: str) -> int:
        caller = normalize_address(caller)
        with self.chain.lock:
            p = self._participants.get(caller)
            pending = p.pending_rewards if p else 0
            if pending == 0:
                raise self._reject("claim", caller, NothingToClaim("no pending rewards"))

            try:
                self.dapp_token.mint(self.address, caller, pending)
            except FarmError as e:
                raise self._reject("claim", caller, e) from e
            p.pending_rewards = 0

            logger.info("claim participant=%s amount=%d", caller, pending)
            return pending

    def withdraw(self, caller: str) -> int:
        caller = normalize_address(caller)
        with self.chain.lock:
            p = self._participants.get(caller)
            balance = p.staking_balance if p else 0
            if balance == 0:
                raise self._reject("withdraw", caller, NothingStaked("nothing staked"))

            try:
                self.lp_token.transfer(self.address, caller, balance)
            except FarmError as e:
                raise self._reject("withdraw", caller, e) from e
            p.staking_balance = 0
            p.is_staking = False

            logger.info(
                "withdraw participant=%s amount=%d pending=%d",
                caller, balance, p.pending_rewards,
            )
            return balance

    # -----------------------------------------------------------------
    # Views
    # -----------------------------------------------------------------

    def participant(self, address: str) -> Participant:
        address = normalize_address(address)
        with self.chain.lock:
            p = self._participants.get(address)
            return replace(p) if p else Participant(address=address)

    def participants(self) -> List[Participant]:
        with self.chain.lock:
            return [replace(self._participants[a]) for a in self._registry]

    def staking_balance(self, address: str) -> int:
        return self.participant(address).staking_balance

    def is_staking(self, address: str) -> bool:
        return self.participant(address).is_staking

    def checkpoint_block(self, address: str) -> int:
        return self.participant(address).checkpoint_block

    def pending_rewards(self, address: str) -> int:
        return self.participant(address).pending_rewards

    def total_staked(self) -> int:
        with self.chain.lock:
            return sum(p.staking_balance for p in self._participants.values())

    # -----------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------

    def export_state(self) -> List[Dict[str, Any]]:
        """Participant rows in registry order."""
        return [asdict(p) for p in self.participants()]

    def load_state(self, rows: List[Dict[str, Any]]) -> None:
        participants: Dict[str, Participant] = {}
        registry: List[str] = []
        for row in rows:
            p = Participant(
                address=normalize_address(row["address"]),
                staking_balance=int(row["staking_balance"]),
                is_staking=bool(row["is_staking"]),
                checkpoint_block=int(row["checkpoint_block"]),
                pending_rewards=int(row["pending_rewards"]),
                has_staked=True,
            )
            if (p.staking_balance > 0) != p.is_staking:
                raise ValueError(f"inconsistent participant row for {p.address}")
            participants[p.address] = p
            registry.append(p.address)

        with self.chain.lock:
            self._participants = participants
            self._registry = registry

    def _reject(self, op: str, caller: str, err: FarmError) -> FarmError:
        logger.warning("%s rejected participant=%s code=%s: %s", op, caller, err.code, err.message)
        return err


# Contract name used by deploy().
TokenFarm = StakingLedger
