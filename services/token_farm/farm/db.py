from __future__ import annotations

import logging
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session, sessionmaker

from farm.config import DATABASE_URL

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Lazy engine/session creation
# -------------------------------------------------------------------

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def _get_engine() -> Engine:
    global _engine
    if _engine is not None:
        return _engine

    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL is not set")

    _engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        future=True,
    )
    init_schema(_engine)
    return _engine


def _get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is not None:
        return _SessionLocal

    engine = _get_engine()
    _SessionLocal = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        future=True,
    )
    return _SessionLocal


def persistence_enabled() -> bool:
    return bool(DATABASE_URL)


def open_session() -> Session:
    return _get_session_factory()()


def get_db() -> Generator[Optional[Session], None, None]:
    """
    Yields None when DATABASE_URL is unset: state then lives in memory only.
    """
    if not persistence_enabled():
        yield None
        return

    db = open_session()
    try:
        yield db
    finally:
        db.close()


# -------------------------------------------------------------------
# Schema
# -------------------------------------------------------------------

# Amounts are stored as TEXT: 18-decimal balances overflow 64-bit integers.
SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS chain_state (
      id            INTEGER PRIMARY KEY,
      block_number  INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS token_state (
      symbol  TEXT PRIMARY KEY,
      owner   TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS token_balance (
      symbol   TEXT NOT NULL,
      account  TEXT NOT NULL,
      amount   TEXT NOT NULL,
      PRIMARY KEY (symbol, account)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS token_allowance (
      symbol   TEXT NOT NULL,
      holder   TEXT NOT NULL,
      spender  TEXT NOT NULL,
      amount   TEXT NOT NULL,
      PRIMARY KEY (symbol, holder, spender)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS participant (
      address           TEXT PRIMARY KEY,
      registry_index    INTEGER NOT NULL,
      staking_balance   TEXT NOT NULL,
      is_staking        INTEGER NOT NULL,
      checkpoint_block  INTEGER NOT NULL,
      pending_rewards   TEXT NOT NULL
    )
    """,
]


def init_schema(bind) -> None:
    """Accepts an Engine or a Connection."""
    if isinstance(bind, Connection):
        for stmt in SCHEMA:
            bind.execute(text(stmt))
        return

    with bind.begin() as conn:
        for stmt in SCHEMA:
            conn.execute(text(stmt))


# -------------------------------------------------------------------
# Snapshot persistence
# -------------------------------------------------------------------

def save_deployment(db: Session, dep) -> None:
    """
    Replace the stored snapshot with the current in-memory state.
    Single commit: either the whole snapshot is written or none of it.
    """
    try:
        for table in ("chain_state", "token_state", "token_balance", "token_allowance", "participant"):
            db.execute(text(f"DELETE FROM {table}"))

        db.execute(
            text("INSERT INTO chain_state (id, block_number) VALUES (1, :b)"),
            {"b": dep.chain.block_number},
        )

        for token in (dep.dapp, dep.lp):
            db.execute(
                text("INSERT INTO token_state (symbol, owner) VALUES (:s, :o)"),
                {"s": token.symbol, "o": token.owner},
            )
            balances, allowances = token.snapshot()
            for account, amount in balances.items():
                db.execute(
                    text(
                        """
                        INSERT INTO token_balance (symbol, account, amount)
                        VALUES (:s, :a, :amt)
                        """
                    ),
                    {"s": token.symbol, "a": account, "amt": str(amount)},
                )
            for (holder, spender), amount in allowances.items():
                db.execute(
                    text(
                        """
                        INSERT INTO token_allowance (symbol, holder, spender, amount)
                        VALUES (:s, :h, :sp, :amt)
                        """
                    ),
                    {"s": token.symbol, "h": holder, "sp": spender, "amt": str(amount)},
                )

        for idx, row in enumerate(dep.farm.export_state()):
            db.execute(
                text(
                    """
                    INSERT INTO participant
                      (address, registry_index, staking_balance, is_staking,
                       checkpoint_block, pending_rewards)
                    VALUES
                      (:address, :idx, :bal, :staking, :cp, :pending)
                    """
                ),
                {
                    "address": row["address"],
                    "idx": idx,
                    "bal": str(row["staking_balance"]),
                    "staking": 1 if row["is_staking"] else 0,
                    "cp": row["checkpoint_block"],
                    "pending": str(row["pending_rewards"]),
                },
            )

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.debug("state saved at block %d", dep.chain.block_number)


def load_deployment(db: Session, dep) -> bool:
    """
    Restore a stored snapshot into `dep`. Returns False if nothing is stored.
    """
    row = db.execute(text("SELECT block_number FROM chain_state WHERE id = 1")).fetchone()
    if not row:
        return False

    dep.chain.set_block_number(int(row[0]))

    for token in (dep.dapp, dep.lp):
        owner_row = db.execute(
            text("SELECT owner FROM token_state WHERE symbol = :s"),
            {"s": token.symbol},
        ).fetchone()
        if not owner_row:
            raise RuntimeError(f"token_state missing symbol={token.symbol}")

        balances = {
            str(account): int(amount)
            for account, amount in db.execute(
                text("SELECT account, amount FROM token_balance WHERE symbol = :s"),
                {"s": token.symbol},
            ).fetchall()
        }
        allowances = {
            (str(holder), str(spender)): int(amount)
            for holder, spender, amount in db.execute(
                text(
                    """
                    SELECT holder, spender, amount
                    FROM token_allowance
                    WHERE symbol = :s
                    """
                ),
                {"s": token.symbol},
            ).fetchall()
        }
        token.restore(balances, allowances, str(owner_row[0]))

    rows = db.execute(
        text(
            """
            SELECT address, staking_balance, is_staking, checkpoint_block, pending_rewards
            FROM participant
            ORDER BY registry_index ASC
            """
        )
    ).fetchall()
    dep.farm.load_state(
        [
            {
                "address": str(address),
                "staking_balance": int(bal),
                "is_staking": bool(staking),
                "checkpoint_block": int(cp),
                "pending_rewards": int(pending),
            }
            for address, bal, staking, cp, pending in rows
        ]
    )

    logger.info("state restored at block %d (%d participants)", dep.chain.block_number, len(rows))
    return True
