import re

import pytest

from apps.api_portfolio.core.domain.exceptions import DuplicateKeyError, NotFoundError, ValidationError
from apps.api_portfolio.core.services import strategy_service as strategy_service_module
from apps.api_portfolio.core.services.strategy_service import StrategyService, new_strategy_id, strategy_to_public
from conftest import OTHER_USER, UNI, USDC, USER, allocation


def test_new_strategy_id_format():
    sid = new_strategy_id(now_ms=1_700_000_000_123)
    assert re.fullmatch(r"strategy_1700000000123_[a-z0-9]{9}", sid)
    assert new_strategy_id() != new_strategy_id()


@pytest.mark.asyncio
async def test_create_stores_lowercased_wallet_and_derived_fields(repo):
    svc = StrategyService(repo)

    entity = await svc.create(
        wallet_address=USER,
        name="  Mixed  ",
        target_allocation=[allocation(UNI, "UNI", 33.33), allocation(USDC, "USDC", 66.67, 6)],
    )

    assert entity.wallet_address == USER.lower()
    assert entity.name == "Mixed"
    assert entity.mongo_id == "oid1"
    public = strategy_to_public(entity)
    assert public["totalPercentage"] == pytest.approx(100.0)
    assert public["isValidAllocation"] is True
    assert public["targetAllocation"][1]["token"]["decimals"] == 6
    assert repo.docs[0]["wallet_address"] == USER.lower()


@pytest.mark.asyncio
async def test_id_collision_is_a_conflict(repo, monkeypatch):
    monkeypatch.setattr(strategy_service_module, "new_strategy_id", lambda: "strategy_1_aaaaaaaaa")
    svc = StrategyService(repo)
    allocs = [allocation(UNI, "UNI", 100)]

    await svc.create(wallet_address=USER, name="one", target_allocation=allocs)
    with pytest.raises(DuplicateKeyError) as exc_info:
        await svc.create(wallet_address=USER, name="two", target_allocation=allocs)

    assert exc_info.value.status_code == 409


@pytest.mark.asyncio
async def test_drift_threshold_out_of_range(repo):
    svc = StrategyService(repo)
    with pytest.raises(ValidationError) as exc_info:
        await svc.create(
            wallet_address=USER, name="x", target_allocation=[allocation(UNI, "UNI", 100)], drift_threshold=80,
        )
    assert exc_info.value.msg.startswith("Validation error:")
    assert repo.docs == []


@pytest.mark.asyncio
async def test_get_for_wallet_hides_foreign_strategy(repo):
    svc = StrategyService(repo)
    entity = await svc.create(wallet_address=USER, name="mine", target_allocation=[allocation(UNI, "UNI", 100)])

    assert (await svc.get_for_wallet(entity.strategy_id, USER)).name == "mine"
    with pytest.raises(NotFoundError):
        await svc.get_for_wallet(entity.strategy_id, OTHER_USER)


@pytest.mark.asyncio
async def test_delete_requires_strategy_id(repo):
    svc = StrategyService(repo)
    with pytest.raises(ValidationError) as exc_info:
        await svc.delete_for_wallet("", USER)
    assert exc_info.value.msg == "Strategy ID is required"
