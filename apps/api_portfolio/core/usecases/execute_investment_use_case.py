import asyncio
import logging
from typing import List, Optional

from ..domain.chains import NATIVE_TOKEN_ADDRESS, same_address
from ..domain.entities.investment_entity import InvestmentCalculation, SwapAllocation
from ..domain.exceptions import InternalError, PortfolioError, WalletNotConnected
from ..gateways.quote_gateway import QuoteGateway
from ..gateways.transaction_signer import TransactionSigner
from ..utils.units import parse_units
from .wallet_guard import ensure_usable_wallet

SLIPPAGE_PERCENT = 1.0
MIN_SWAP_GAS_LIMIT = 150_000
SETTLE_DELAY_SEC = 3.0
# gap between consecutive aggregator calls inside one leg
CALL_SPACING_SEC = 0.2


class ExecuteInvestmentUseCase:
    """
    Executes an approved InvestmentCalculation leg by leg, IN ORDER, never
    in parallel.

    Per leg (source != destination):
      1) if the source is an ERC-20: check allowance, approve when short
         (CALL_SPACING_SEC between the aggregator calls)
      2) build the swap tx (1% slippage)
      3) gas limit = max(upstream estimate, 150k)
      4) submit through the injected signer, record the hash
      5) wait SETTLE_DELAY_SEC before the next leg

    On the first failure the remaining legs are abandoned and the error is
    re-raised, annotated with the leg index, token pair and the hashes
    already submitted. Submitted legs are never rolled back.
    """

    def __init__(
        self,
        gateway: QuoteGateway,
        settle_delay_sec: float = SETTLE_DELAY_SEC,
        call_spacing_sec: float = CALL_SPACING_SEC,
        logger: Optional[logging.Logger] = None,
    ):
        self._gateway = gateway
        self._settle_delay = settle_delay_sec
        self._call_spacing = call_spacing_sec
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    async def execute(
        self,
        calculation: InvestmentCalculation,
        chain_id: int,
        user_address: str,
        signer: Optional[TransactionSigner],
    ) -> List[str]:
        if signer is None:
            raise WalletNotConnected()
        ensure_usable_wallet(user_address, chain_id)

        legs = [
            (i, swap) for i, swap in enumerate(calculation.swaps)
            if not same_address(swap.from_token.address, swap.to_token.address)
        ]
        self._logger.info(
            "Executing investment: %s legs (%s skipped) on chain %s for %s",
            len(legs), len(calculation.swaps) - len(legs), chain_id, user_address,
        )

        tx_hashes: List[str] = []
        for n, (index, swap) in enumerate(legs):
            try:
                await self._execute_leg(swap, chain_id, user_address, signer, tx_hashes)
            except PortfolioError as exc:
                self._annotate(exc, index, swap, tx_hashes)
                self._logger.warning(
                    "Leg %s (%s -> %s) failed after %s tx(s): %s",
                    index, swap.from_token.symbol, swap.to_token.symbol, len(tx_hashes), exc,
                )
                raise
            except Exception as exc:
                wrapped = InternalError(f"Unexpected failure on leg {index}: {exc}")
                self._annotate(wrapped, index, swap, tx_hashes)
                self._logger.exception("Unexpected error executing leg %s", index)
                raise wrapped from exc

            if n < len(legs) - 1 and self._settle_delay > 0:
                await asyncio.sleep(self._settle_delay)

        return tx_hashes

    async def _execute_leg(
        self,
        swap: SwapAllocation,
        chain_id: int,
        user_address: str,
        signer: TransactionSigner,
        tx_hashes: List[str],
    ) -> None:
        src = swap.from_token.address
        dst = swap.to_token.address
        amount = parse_units(swap.from_token.amount, swap.from_token.decimals)
        self._logger.info("Processing swap: %s %s -> %s", swap.from_token.amount, swap.from_token.symbol, swap.to_token.symbol)

        if not same_address(src, NATIVE_TOKEN_ADDRESS):
            allowance = await self._gateway.check_allowance(chain_id, src, user_address)
            await self._pace()
            if allowance < amount:
                approval = await self._gateway.build_approval_transaction(chain_id, src, amount)
                approve_hash = await signer.send_transaction(
                    to=approval.to, data=approval.data, value=approval.value, gas=approval.gas,
                )
                tx_hashes.append(approve_hash)
                self._logger.info("Approval tx %s for %s", approve_hash, swap.from_token.symbol)
                await self._pace()

        payload = await self._gateway.build_swap_transaction(
            chain_id, src, dst, amount, user_address.lower(), SLIPPAGE_PERCENT,
        )
        gas_limit = max(int(payload.gas or 0), MIN_SWAP_GAS_LIMIT)

        tx_hash = await signer.send_transaction(
            to=payload.to, data=payload.data, value=payload.value, gas=gas_limit,
        )
        tx_hashes.append(tx_hash)
        self._logger.info("Swap tx %s (%s -> %s, gas=%s)", tx_hash, swap.from_token.symbol, swap.to_token.symbol, gas_limit)

    async def _pace(self) -> None:
        if self._call_spacing > 0:
            await asyncio.sleep(self._call_spacing)

    @staticmethod
    def _annotate(exc: PortfolioError, index: int, swap: SwapAllocation, tx_hashes: List[str]) -> None:
        exc.allocation_index = index
        exc.src_token = swap.from_token.address
        exc.dst_token = swap.to_token.address
        exc.completed_tx_hashes = list(tx_hashes)
