import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field, StrictInt
from sqlalchemy.orm import Session

from farm.db import get_db, load_deployment, open_session, persistence_enabled, save_deployment
from farm.deploy import Deployment, deploy
from farm.errors import FarmError, UnknownToken
from farm.logs import configure_logging
from farm.tokens.memory import InMemoryToken

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Token Farm")


# ---------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------

class CallerRequest(BaseModel):
    caller: str


class DepositRequest(CallerRequest):
    amount: StrictInt


class MineRequest(BaseModel):
    blocks: int = Field(default=1, ge=1, le=10_000)


class MintRequest(CallerRequest):
    to: str
    amount: StrictInt


class TransferRequest(CallerRequest):
    to: str
    amount: StrictInt


class ApproveRequest(CallerRequest):
    spender: str
    amount: StrictInt


# ---------------------------------------------------------------------
# Deployment
# ---------------------------------------------------------------------

def make_deployment() -> Deployment:
    dep = deploy()
    if persistence_enabled():
        db = open_session()
        try:
            load_deployment(db, dep)
        finally:
            db.close()
    return dep


try:
    deployment = make_deployment()
except Exception as e:
    raise RuntimeError(f"Token farm deployment failed: {e}") from e


def get_deployment() -> Deployment:
    return deployment


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _token(dep: Deployment, symbol: str) -> InMemoryToken:
    token = dep.token(symbol)
    if token is None:
        raise HTTPException(
            status_code=UnknownToken.status_code,
            detail=UnknownToken(f"unknown token {symbol!r}").to_dict(),
        )
    return token


def _transact(db: Optional[Session], dep: Deployment, fn: Callable[[], Any]) -> Any:
    """
    Run one transaction under the chain lock and persist the resulting state.

    If anything after fn() fails (typically the snapshot save), the in-memory
    state is rolled back to where it was before the call.
    """
    try:
        with dep.chain.lock:
            state = dep.checkpoint()
            try:
                result = fn()
                if db is not None:
                    save_deployment(db, dep)
            except FarmError:
                raise
            except Exception:
                dep.rollback(state)
                raise
            return result
    except FarmError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict()) from e
    except Exception as e:
        logger.exception("transaction failed")
        raise HTTPException(status_code=500, detail=str(e)) from e


def _view(dep: Deployment, fn: Callable[[], Any]) -> Any:
    try:
        with dep.chain.lock:
            return fn()
    except FarmError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_dict()) from e


def token_info(token: InMemoryToken) -> Dict[str, Any]:
    return {
        "name": token.name,
        "symbol": token.symbol,
        "decimals": token.decimals,
        "address": token.address,
        "owner": token.owner,
        "total_supply": token.total_supply,
    }


# ---------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------

@app.get("/health")
def health():
    return {"ok": True}


@app.get("/chain")
def chain_info(dep: Deployment = Depends(get_deployment)):
    return {"block_number": dep.chain.block_number}


@app.post("/chain/mine")
def mine(req: MineRequest, db: Optional[Session] = Depends(get_db), dep: Deployment = Depends(get_deployment)):
    height = _transact(db, dep, lambda: dep.chain.mine(req.blocks))
    return {"block_number": height}


@app.get("/tokens/{symbol}")
def get_token(symbol: str, dep: Deployment = Depends(get_deployment)):
    token = _token(dep, symbol)
    return _view(dep, lambda: token_info(token))


@app.get("/tokens/{symbol}/balances/{address}")
def get_balance(symbol: str, address: str, dep: Deployment = Depends(get_deployment)):
    token = _token(dep, symbol)
    balance = _view(dep, lambda: token.balance_of(address))
    return {"symbol": token.symbol, "address": address.lower(), "balance": balance}


@app.post("/tokens/{symbol}/mint")
def mint(symbol: str, req: MintRequest, db: Optional[Session] = Depends(get_db), dep: Deployment = Depends(get_deployment)):
    token = _token(dep, symbol)
    _transact(db, dep, lambda: token.mint(req.caller, req.to, req.amount))
    return {"symbol": token.symbol, "balance": _view(dep, lambda: token.balance_of(req.to))}


@app.post("/tokens/{symbol}/transfer")
def transfer(symbol: str, req: TransferRequest, db: Optional[Session] = Depends(get_db), dep: Deployment = Depends(get_deployment)):
    token = _token(dep, symbol)
    _transact(db, dep, lambda: token.transfer(req.caller, req.to, req.amount))
    return {"symbol": token.symbol, "balance": _view(dep, lambda: token.balance_of(req.caller))}


@app.post("/tokens/{symbol}/approve")
def approve(symbol: str, req: ApproveRequest, db: Optional[Session] = Depends(get_db), dep: Deployment = Depends(get_deployment)):
    token = _token(dep, symbol)
    _transact(db, dep, lambda: token.approve(req.caller, req.spender, req.amount))
    return {"symbol": token.symbol, "allowance": _view(dep, lambda: token.allowance(req.caller, req.spender))}


@app.get("/farm")
def farm_info(dep: Deployment = Depends(get_deployment)):
    return _view(dep, lambda: _farm_info(dep))


def _farm_info(dep: Deployment) -> Dict[str, Any]:
    farm = dep.farm
    return {
        "address": farm.address,
        "owner": farm.owner,
        "dapp_token": farm.dapp_token.address,
        "lp_token": farm.lp_token.address,
        "reward_rate": {
            "numerator": farm.reward_rate.numerator,
            "denominator": farm.reward_rate.denominator,
        },
        "total_staked": farm.total_staked(),
        "block_number": dep.chain.block_number,
    }


@app.get("/farm/participants")
def list_participants(dep: Deployment = Depends(get_deployment)):
    return {"participants": [asdict(p) for p in _view(dep, dep.farm.participants)]}


@app.get("/farm/participants/{address}")
def get_participant(address: str, dep: Deployment = Depends(get_deployment)):
    return asdict(_view(dep, lambda: dep.farm.participant(address)))


@app.post("/farm/deposit")
def deposit(req: DepositRequest, db: Optional[Session] = Depends(get_db), dep: Deployment = Depends(get_deployment)):
    p = _transact(db, dep, lambda: dep.farm.deposit(req.caller, req.amount))
    return asdict(p)


@app.post("/farm/distribute")
def distribute(req: CallerRequest, db: Optional[Session] = Depends(get_db), dep: Deployment = Depends(get_deployment)):
    total = _transact(db, dep, lambda: dep.farm.distribute_rewards_all(req.caller))
    return {"distributed": total, "block_number": dep.chain.block_number}


@app.post("/farm/claim")
def claim(req: CallerRequest, db: Optional[Session] = Depends(get_db), dep: Deployment = Depends(get_deployment)):
    amount = _transact(db, dep, lambda: dep.farm.claim_rewards(req.caller))
    return {"claimed": amount}


@app.post("/farm/withdraw")
def withdraw(req: CallerRequest, db: Optional[Session] = Depends(get_db), dep: Deployment = Depends(get_deployment)):
    amount = _transact(db, dep, lambda: dep.farm.withdraw(req.caller))
    return {"withdrawn": amount}
