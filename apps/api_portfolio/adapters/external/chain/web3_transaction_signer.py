import asyncio
import logging
from typing import Literal, Optional

from eth_account import Account
from web3 import Web3
from web3.exceptions import Web3Exception

from ....core.domain.exceptions import NetworkError, UpstreamResponseError, WalletNotConnected
from ....core.gateways.transaction_signer import TransactionSigner

GasStrategy = Literal["default", "buffered", "aggressive"]


class Web3TransactionSigner(TransactionSigner):
    """
    Server-side signer backed by a local private key.

    Responsibilities:
    - Build the raw tx dict (nonce, chain id, fee fields).
    - Apply gas padding strategy when no gas limit is given.
    - Sign and broadcast. Does NOT wait for the receipt.

    web3's HTTP provider is blocking, so each submission runs in a worker thread.
    """

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        gas_strategy: GasStrategy = "buffered",
        logger: Optional[logging.Logger] = None,
    ):
        if not private_key:
            raise WalletNotConnected("No private key configured for the server signer")
        self.w3 = Web3(Web3.HTTPProvider(rpc_url))
        self.pk = private_key
        self.account = Account.from_key(private_key)
        self._gas_strategy = gas_strategy
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def address(self) -> str:
        return self.account.address

    # ---------- internal helpers ----------

    def _next_nonce(self) -> int:
        return self.w3.eth.get_transaction_count(self.account.address, "pending")

    def _estimate_with_strategy(self, tx: dict) -> int:
        """
        Calls estimateGas(tx) and applies a safety buffer depending on strategy.
        Falls back to a static 300k if node estimation fails.
        """
        try:
            base_estimate = int(self.w3.eth.estimate_gas(tx))
        except (Web3Exception, ValueError):
            base_estimate = 300_000

        if self._gas_strategy == "buffered":
            return int(base_estimate * 1.25) + 10_000
        if self._gas_strategy == "aggressive":
            return int(base_estimate * 1.5) + 25_000
        return base_estimate

    def _finalize_fee_fields(self, tx: dict) -> dict:
        """
        If the caller didn't specify EIP-1559 style fields, fallback to legacy gasPrice.
        """
        if "maxFeePerGas" in tx or "maxPriorityFeePerGas" in tx:
            return tx
        if "gasPrice" not in tx:
            tx["gasPrice"] = self.w3.eth.gas_price
        return tx

    def _send_sync(self, to: str, data: str, value: int, gas: Optional[int]) -> str:
        tx = {
            "from": self.account.address,
            "to": Web3.to_checksum_address(to),
            "data": data,
            "value": int(value or 0),
            "nonce": self._next_nonce(),
            "chainId": self.w3.eth.chain_id,
        }
        tx["gas"] = int(gas) if gas is not None else self._estimate_with_strategy(tx)
        tx = self._finalize_fee_fields(tx)

        signed = self.w3.eth.account.sign_transaction(tx, self.pk)
        txh = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(txh)

    # ---------- public API ----------

    async def send_transaction(self, *, to: str, data: str, value: int, gas: Optional[int] = None) -> str:
        try:
            tx_hash = await asyncio.to_thread(self._send_sync, to, data, value, gas)
        except OSError as exc:
            # requests/urllib3 connection errors are OSError subclasses
            raise NetworkError(f"RPC unreachable: {exc}") from exc
        except (Web3Exception, ValueError) as exc:
            raise UpstreamResponseError(None, str(exc), f"Transaction rejected by node: {exc}") from exc
        self._logger.info("Broadcasted tx %s -> %s", tx_hash, to)
        return tx_hash
