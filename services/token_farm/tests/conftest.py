import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from farm.accounts import derive_address
from farm.db import init_schema
from farm.deploy import deploy
from farm.units import parse_ether


@pytest.fixture()
def owner():
    return derive_address("owner")


@pytest.fixture()
def user():
    return derive_address("user")


@pytest.fixture()
def other():
    return derive_address("other")


@pytest.fixture()
def deployment(owner, user):
    """
    Fresh DappToken / LPToken / TokenFarm with 1000 LP minted to `user`
    and the full amount approved for the farm.
    """
    dep = deploy(owner=owner)
    dep.lp.mint(owner, user, parse_ether("1000"))
    dep.lp.approve(user, dep.farm.address, parse_ether("1000"))
    return dep


@pytest.fixture()
def farm(deployment):
    return deployment.farm


@pytest.fixture()
def db_session():
    """
    In-memory SQLite DB with the service schema.
    """
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    init_schema(engine)

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
