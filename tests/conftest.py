import os
from decimal import Decimal

import pytest


@pytest.fixture(autouse=True)
def use_test_database():
    """
    Override settings to use in-memory database for all tests.
    Each test gets a fresh, isolated database.
    """
    from barterhub.configuration.settings import settings
    from barterhub.configuration.container import reset_container, get_engine
    from barterhub.adapters.secondary.persistence.models import metadata

    original_db_path = settings.db_path
    original_lock_timeout = settings.lock_timeout_seconds
    original_env_db_path = os.environ.get("BARTERHUB_DB_PATH")
    original_database_url = os.environ.get("DATABASE_URL")

    # DATABASE_URL wins over the SQLite path, so tests must never see it
    os.environ.pop("DATABASE_URL", None)
    os.environ["BARTERHUB_DB_PATH"] = ":memory:"
    settings.db_path = ":memory:"
    settings.lock_timeout_seconds = 5.0

    reset_container()
    metadata.create_all(get_engine())

    yield

    settings.db_path = original_db_path
    settings.lock_timeout_seconds = original_lock_timeout

    if original_database_url is None:
        os.environ.pop("DATABASE_URL", None)
    else:
        os.environ["DATABASE_URL"] = original_database_url

    if original_env_db_path is None:
        os.environ.pop("BARTERHUB_DB_PATH", None)
    else:
        os.environ["BARTERHUB_DB_PATH"] = original_env_db_path

    reset_container()


@pytest.fixture
def context():
    """Shared context for BDD steps"""
    return {}


@pytest.fixture
def mediator():
    """Get mediator instance for testing"""
    from barterhub.configuration.container import get_mediator
    return get_mediator()


@pytest.fixture
def catalog():
    """Real product catalog backed by the in-memory database"""
    from barterhub.configuration.container import get_product_catalog
    return get_product_catalog()


@pytest.fixture
def trade_repo():
    """Real trade repository backed by the in-memory database"""
    from barterhub.configuration.container import get_trade_repository
    return get_trade_repository()


@pytest.fixture
def listed_trade(mediator, catalog):
    """
    Factory: list a seller product and a buyer product, then propose a trade.

    Returns a callable taking ProposeTradeCommand overrides; the result is
    (trade, seller_product, buyer_product).
    """
    import asyncio
    from barterhub.application.trading.commands import ProposeTradeCommand

    def _propose(buyer_id=1, seller_id=2, **overrides):
        wanted = catalog.add_product(seller_id, "Film camera")
        offered = catalog.add_product(buyer_id, "Vinyl collection")
        fields = dict(
            caller_id=buyer_id,
            target_product_id=wanted.product_id,
            offered_product_ids=(offered.product_id,),
            offered_cash_amount=Decimal("0"),
        )
        fields.update(overrides)
        trade = asyncio.run(mediator.send_async(ProposeTradeCommand(**fields)))
        return trade, wanted, offered

    return _propose
