from sqlalchemy import text

from farm.db import load_deployment, save_deployment
from farm.deploy import deploy
from farm.units import parse_ether


def test_load_empty_returns_false(db_session, owner):
    assert load_deployment(db_session, deploy(owner=owner)) is False


def test_snapshot_roundtrip(db_session, deployment, owner, user):
    deployment.farm.deposit(user, parse_ether("100"))
    deployment.chain.mine()
    deployment.farm.distribute_rewards_all(owner)

    save_deployment(db_session, deployment)

    restored = deploy(owner=owner)
    assert load_deployment(db_session, restored) is True

    assert restored.chain.block_number == deployment.chain.block_number
    assert restored.farm.staking_balance(user) == parse_ether("100")
    assert restored.farm.pending_rewards(user) == parse_ether("1")
    assert restored.lp.balance_of(user) == parse_ether("900")
    assert restored.lp.balance_of(restored.farm.address) == parse_ether("100")
    assert restored.dapp.owner == restored.farm.address

    # Restored farm keeps working.
    restored.farm.claim_rewards(user)
    assert restored.dapp.balance_of(user) == parse_ether("1")


def test_save_overwrites_previous_snapshot(db_session, deployment, user):
    save_deployment(db_session, deployment)
    deployment.farm.deposit(user, 100)
    save_deployment(db_session, deployment)

    count = db_session.execute(text("SELECT COUNT(*) FROM participant")).scalar()
    assert count == 1
    count = db_session.execute(text("SELECT COUNT(*) FROM chain_state")).scalar()
    assert count == 1


def test_registry_order_preserved(db_session, deployment, owner, user, other):
    deployment.lp.mint(owner, other, 10)
    deployment.lp.approve(other, deployment.farm.address, 10)
    deployment.farm.deposit(other, 10)
    deployment.farm.deposit(user, 10)
    save_deployment(db_session, deployment)

    restored = deploy(owner=owner)
    load_deployment(db_session, restored)
    assert [p.address for p in restored.farm.participants()] == [other, user]


def test_large_amounts_survive(db_session, deployment, user):
    # Above the 64-bit integer range.
    deployment.farm.deposit(user, parse_ether("1000"))
    save_deployment(db_session, deployment)

    restored = deploy(owner=deployment.owner)
    load_deployment(db_session, restored)
    assert restored.farm.staking_balance(user) == parse_ether("1000")
