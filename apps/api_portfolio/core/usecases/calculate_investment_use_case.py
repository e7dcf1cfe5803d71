import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_DOWN
from typing import Any, List, Optional, Sequence, Union

from ..domain.chains import NATIVE_SYMBOL, NATIVE_TOKEN_ADDRESS, is_native_or_wrapped
from ..domain.entities.investment_entity import (
    InvestmentCalculation,
    SwapAllocation,
    SwapFromToken,
    SwapToToken,
)
from ..domain.entities.quote_entity import Quote
from ..domain.entities.strategy_entity import TokenAllocationEntity
from ..domain.exceptions import ValidationError
from ..gateways.price_oracle import PriceOracle
from ..gateways.quote_gateway import QuoteGateway
from ..utils.batching import BATCH_SIZE, DELAY_BETWEEN_BATCHES_SEC, process_in_batches
from ..utils.units import NATIVE_DECIMALS, format_units, parse_units, to_decimal
from .wallet_guard import ensure_usable_wallet

AllocationSource = Union[Sequence[TokenAllocationEntity], Any]


@dataclass
class _Line:
    index: int
    allocation: TokenAllocationEntity
    dst_address: str
    target_wei: int
    pass_through: bool


def _allocations_of(strategy: AllocationSource) -> List[TokenAllocationEntity]:
    """Accept a StrategyEntity, a preset, or a bare allocation list."""
    allocations = getattr(strategy, "target_allocation", strategy)
    return [
        a if isinstance(a, TokenAllocationEntity) else TokenAllocationEntity.model_validate(a)
        for a in allocations
    ]


def _usd(amount_native: str, native_usd: float) -> float:
    return float(Decimal(amount_native) * Decimal(str(native_usd)))


class CalculateInvestmentUseCase:
    """
    Turns (allocation list, native amount) into an InvestmentCalculation.

    Rules:
      - target per line = amount * pct / 100, computed in smallest units
        (percentages are used as given, even if they do not sum to 100).
      - native / wrapped-native lines are pass-through: no quote, amounts equal.
      - other lines get a quote native -> token; a failed quote does NOT abort:
        the line is emitted with targetAmount "0" and no quote.
      - priceImpact is the max across successful quotes.
      - gas = GAS_UNITS_PER_SWAP * (#non pass-through lines), priced in USD.

    Quotes for independent lines run in batches (5 in flight, 1s between
    batches). Output order always equals allocation order.
    """

    def __init__(
        self,
        gateway: QuoteGateway,
        price_oracle: PriceOracle,
        gas_units_per_swap: int = 21_000,
        gas_price_gwei: float = 20.0,
        batch_size: int = BATCH_SIZE,
        batch_delay_sec: float = DELAY_BETWEEN_BATCHES_SEC,
        logger: Optional[logging.Logger] = None,
    ):
        self._gateway = gateway
        self._oracle = price_oracle
        self._gas_units_per_swap = int(gas_units_per_swap)
        self._gas_price_gwei = float(gas_price_gwei)
        self._batch_size = batch_size
        self._batch_delay = batch_delay_sec
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def execute(
        self,
        strategy: AllocationSource,
        investment_amount_native: str,
        chain_id: int,
        user_address: str,
    ) -> InvestmentCalculation:
        ensure_usable_wallet(user_address, chain_id)

        try:
            amount = to_decimal(investment_amount_native)
        except ValueError as exc:
            raise ValidationError("Investment amount must be a positive number") from exc
        if amount <= 0:
            raise ValidationError("Investment amount must be a positive number")

        allocations = _allocations_of(strategy)
        total_wei = parse_units(amount, NATIVE_DECIMALS)

        lines: List[_Line] = []
        for i, alloc in enumerate(allocations):
            pct = to_decimal(alloc.target_percentage)
            target_wei = int((Decimal(total_wei) * pct / Decimal(100)).to_integral_value(rounding=ROUND_DOWN))
            dst = alloc.token.address_for_chain(chain_id)
            lines.append(_Line(i, alloc, dst, target_wei, is_native_or_wrapped(dst, chain_id)))

        native_usd = await self._oracle.get_native_usd_price(chain_id)

        to_quote = [ln for ln in lines if not ln.pass_through and ln.target_wei > 0]
        quotes = {}
        if to_quote:
            outcomes = await process_in_batches(
                to_quote,
                lambda ln: self._gateway.get_quote(chain_id, NATIVE_TOKEN_ADDRESS, ln.dst_address, ln.target_wei),
                batch_size=self._batch_size,
                delay_sec=self._batch_delay,
            )
            for ln, outcome in zip(to_quote, outcomes):
                if outcome.ok:
                    quotes[ln.index] = outcome.value
                else:
                    self._logger.warning(
                        "Failed to get quote for %s (line %s): %s",
                        ln.allocation.token.symbol, ln.index, outcome.error,
                    )

        swaps: List[SwapAllocation] = []
        max_price_impact = 0.0
        for ln in lines:
            quote: Optional[Quote] = quotes.get(ln.index)
            swaps.append(self._build_allocation(ln, quote, native_usd))
            if quote is not None:
                max_price_impact = max(max_price_impact, float(quote.price_impact_percent))

        swap_count = sum(1 for ln in lines if not ln.pass_through)
        gas_cost_native = (
            Decimal(self._gas_units_per_swap * swap_count) * Decimal(str(self._gas_price_gwei)) / Decimal(10**9)
        )
        estimated_gas_usd = float(gas_cost_native * Decimal(str(native_usd)))

        calc = InvestmentCalculation(
            total_investment_usd=float(amount * Decimal(str(native_usd))),
            total_investment_eth=str(investment_amount_native).strip(),
            swaps=swaps,
            estimated_gas_usd=estimated_gas_usd,
            price_impact=max_price_impact,
        )
        self._logger.info(
            "Calculated investment of %s native over %s lines (%s quoted, %s failed) on chain %s",
            calc.total_investment_eth, len(swaps), len(quotes), len(calc.failed_quotes), chain_id,
        )
        return calc

    @staticmethod
    def _build_allocation(ln: _Line, quote: Optional[Quote], native_usd: float) -> SwapAllocation:
        token = ln.allocation.token
        amount_native = format_units(ln.target_wei, NATIVE_DECIMALS)
        amount_usd = _usd(amount_native, native_usd)

        if ln.pass_through:
            target_amount = amount_native
        elif quote is not None:
            target_amount = format_units(quote.dest_amount, token.decimals)
        else:
            target_amount = "0"

        return SwapAllocation(
            from_token=SwapFromToken(
                address=NATIVE_TOKEN_ADDRESS,
                symbol=NATIVE_SYMBOL,
                amount=amount_native,
                amount_usd=amount_usd,
                decimals=NATIVE_DECIMALS,
            ),
            to_token=SwapToToken(
                address=ln.dst_address,
                symbol=token.symbol,
                target_amount=target_amount,
                target_amount_usd=amount_usd,
                percentage=ln.allocation.target_percentage,
                decimals=token.decimals,
            ),
            quote=dict(quote.raw) if quote is not None else None,
            pass_through=ln.pass_through,
        )
