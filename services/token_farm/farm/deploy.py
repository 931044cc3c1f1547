from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from farm.accounts import contract_address, derive_address, normalize_address
from farm.chain import Chain
from farm.config import FARM_OWNER, TOKEN_DECIMALS
from farm.ledger import RewardRate, StakingLedger, TokenFarm
from farm.tokens.memory import InMemoryToken, dapp_token, lp_token

logger = logging.getLogger(__name__)


@dataclass
class Deployment:
    owner: str
    chain: Chain
    dapp: InMemoryToken
    lp: InMemoryToken
    farm: StakingLedger

    def token(self, symbol: str) -> Optional[InMemoryToken]:
        symbol = symbol.upper()
        for t in (self.dapp, self.lp):
            if t.symbol == symbol:
                return t
        return None

    def checkpoint(self) -> Dict[str, Any]:
        """Capture chain, token and farm state so a failed transaction can be undone."""
        with self.chain.lock:
            return {
                "block_number": self.chain.block_number,
                "tokens": [(t, t.snapshot(), t.owner) for t in (self.dapp, self.lp)],
                "participants": self.farm.export_state(),
            }

    def rollback(self, state: Dict[str, Any]) -> None:
        with self.chain.lock:
            self.chain.rollback_to(state["block_number"])
            for token, (balances, allowances), owner in state["tokens"]:
                token.restore(balances, allowances, owner)
            self.farm.load_state(state["participants"])
            logger.warning("state rolled back to block %d", state["block_number"])


def default_owner() -> str:
    return normalize_address(FARM_OWNER) if FARM_OWNER else derive_address("owner")


def deploy(
    owner: Optional[str] = None,
    chain: Optional[Chain] = None,
    reward_rate: Optional[RewardRate] = None,
) -> Deployment:
    """
    Deploy DappToken, LPToken and TokenFarm, in that order, and hand
    DappToken ownership to the farm so it can mint rewards.
    """
    owner = normalize_address(owner) if owner else default_owner()
    chain = chain or Chain()

    dapp = dapp_token(contract_address(owner, 0), owner, TOKEN_DECIMALS)
    logger.info("DappToken deployed at %s", dapp.address)

    lp = lp_token(contract_address(owner, 1), owner, TOKEN_DECIMALS)
    logger.info("LPToken deployed at %s", lp.address)

    farm = TokenFarm(
        address=contract_address(owner, 2),
        owner=owner,
        chain=chain,
        dapp_token=dapp,
        lp_token=lp,
        reward_rate=reward_rate,
    )
    logger.info("TokenFarm deployed at %s", farm.address)

    dapp.transfer_ownership(owner, farm.address)

    return Deployment(owner=owner, chain=chain, dapp=dapp, lp=lp, farm=farm)


if __name__ == "__main__":
    from farm.logs import configure_logging

    configure_logging()
    deploy()
