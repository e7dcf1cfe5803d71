import pytest

from apps.api_portfolio.core.domain.chains import NATIVE_TOKEN_ADDRESS
from apps.api_portfolio.core.domain.entities.quote_entity import Quote
from apps.api_portfolio.core.domain.exceptions import NoLiquidity, TestAddressOnMainnet, TestAddressRejected, ValidationError
from apps.api_portfolio.core.domain.presets import get_preset
from apps.api_portfolio.core.usecases.calculate_investment_use_case import CalculateInvestmentUseCase
from conftest import HARDHAT_ACCOUNT_0, LINK, UNI, USDC, USER, WETH, FakeOracle, allocation


@pytest.fixture
def use_case(gateway):
    return CalculateInvestmentUseCase(gateway, FakeOracle(2000.0), batch_delay_sec=0)


@pytest.mark.asyncio
async def test_split_follows_percentages(use_case):
    calc = await use_case.execute([allocation(UNI, "UNI", 60), allocation(LINK, "LINK", 40)], "1", 1, USER)

    assert [s.from_token.amount for s in calc.swaps] == ["0.6", "0.4"]
    assert [s.to_token.symbol for s in calc.swaps] == ["UNI", "LINK"]
    assert all(s.from_token.address == NATIVE_TOKEN_ADDRESS for s in calc.swaps)
    assert calc.swaps[0].to_token.target_amount == "0.6"
    assert calc.swaps[0].from_token.amount_usd == pytest.approx(1200.0)
    assert calc.total_investment_eth == "1"
    assert calc.total_investment_usd == pytest.approx(2000.0)


@pytest.mark.asyncio
async def test_failed_quote_falls_back_to_zero_target(use_case, gateway):
    gateway.quotes[USDC.lower()] = NoLiquidity(400, "insufficient liquidity")

    calc = await use_case.execute([allocation(UNI, "UNI", 50), allocation(USDC, "USDC", 50, 6)], "2", 1, USER)

    usdc = calc.swaps[1]
    assert usdc.to_token.target_amount == "0"
    assert usdc.quote is None
    assert usdc.quote_failed is True
    assert usdc.from_token.amount == "1"
    assert [s.to_token.symbol for s in calc.failed_quotes] == ["USDC"]
    # the failed line still counts as a swap for gas
    assert calc.estimated_gas_usd == pytest.approx(21_000 * 2 * 20 / 1e9 * 2000.0)


@pytest.mark.asyncio
async def test_test_address_on_production_is_rejected_before_network(use_case, gateway):
    assert TestAddressOnMainnet is TestAddressRejected
    with pytest.raises(TestAddressOnMainnet):
        await use_case.execute([allocation(UNI, "UNI", 100)], "1", 1, HARDHAT_ACCOUNT_0)
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_test_address_allowed_on_local_chain(use_case):
    calc = await use_case.execute([allocation(UNI, "UNI", 100)], "1", 31337, HARDHAT_ACCOUNT_0)
    assert len(calc.swaps) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", ["0", "-1", "abc", "nan"])
async def test_amount_must_be_positive_number(use_case, gateway, amount):
    with pytest.raises(ValidationError):
        await use_case.execute([allocation(UNI, "UNI", 100)], amount, 1, USER)
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_wrapped_native_is_pass_through(use_case, gateway):
    calc = await use_case.execute([allocation(WETH, "WETH", 25), allocation(UNI, "UNI", 75)], "4", 1, USER)

    weth = calc.swaps[0]
    assert weth.pass_through is True
    assert weth.quote is None
    assert weth.quote_failed is False
    assert weth.to_token.target_amount == weth.from_token.amount == "1"
    assert [c for c in gateway.calls if c[0] == "quote" and c[1] == WETH] == []
    assert calc.estimated_gas_usd == pytest.approx(21_000 * 1 * 20 / 1e9 * 2000.0)


@pytest.mark.asyncio
async def test_price_impact_is_worst_case(use_case, gateway):
    gateway.quotes[UNI.lower()] = Quote(dest_amount=10, price_impact_percent=0.5, raw={"dstAmount": "10"})
    gateway.quotes[LINK.lower()] = Quote(dest_amount=10, price_impact_percent=1.7, raw={"dstAmount": "10"})

    calc = await use_case.execute([allocation(UNI, "UNI", 50), allocation(LINK, "LINK", 50)], "1", 1, USER)

    assert calc.price_impact == pytest.approx(1.7)
    assert calc.swaps[0].quote == {"dstAmount": "10"}


@pytest.mark.asyncio
async def test_order_is_preserved_across_batches(gateway):
    uc = CalculateInvestmentUseCase(gateway, FakeOracle(), batch_size=2, batch_delay_sec=0)
    addresses = [f"0x{str(i) * 40}" for i in range(1, 6)]
    allocs = [allocation(a, f"T{i}", 20) for i, a in enumerate(addresses)]

    calc = await uc.execute(allocs, "1", 1, USER)

    assert [s.to_token.address for s in calc.swaps] == addresses
    assert [s.to_token.symbol for s in calc.swaps] == ["T0", "T1", "T2", "T3", "T4"]


@pytest.mark.asyncio
async def test_preset_uses_chain_specific_addresses(use_case, gateway):
    calc = await use_case.execute(get_preset("defi-blue-chip"), "1", 42161, USER)

    assert calc.swaps[0].to_token.symbol == "WETH"
    assert calc.swaps[0].pass_through is True
    assert calc.swaps[1].to_token.address.lower() == "0xfa7f8980b0f1e64a2062791cc3b0871572f1f7f0"
