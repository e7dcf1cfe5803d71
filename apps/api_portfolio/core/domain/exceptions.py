# apps/api_portfolio/core/domain/exceptions.py

from typing import List, Optional


class PortfolioError(Exception):
    """
    Root of every error the service reports to callers.

    `user_message` is the short text shown to the end user; the full
    diagnostic detail stays in `str(exc)` and in the logs.

    When raised out of the investment executor, the error is annotated with
    the failing allocation index, its token pair and the transaction hashes
    that were already submitted (those legs are NOT rolled back).
    """

    status_code: int = 500
    user_message: str = "Something went wrong. Please try again."

    def __init__(self, msg: Optional[str] = None):
        super().__init__(msg or self.user_message)
        self.msg = msg or self.user_message
        self.allocation_index: Optional[int] = None
        self.src_token: Optional[str] = None
        self.dst_token: Optional[str] = None
        self.completed_tx_hashes: List[str] = []

    def public_message(self) -> str:
        return self.user_message


# ---------- request / storage ----------

class ValidationError(PortfolioError):
    """Malformed input, detected before any I/O."""
    status_code = 400
    user_message = "Invalid request."

    def public_message(self) -> str:
        # validation messages are already user-facing
        return self.msg


class NotFoundError(PortfolioError):
    """Entity absent OR owned by another wallet (the two cases are reported identically)."""
    status_code = 404
    user_message = "Strategy not found or access denied"


class DuplicateKeyError(PortfolioError):
    status_code = 409
    user_message = "A strategy with this ID already exists"


class InternalError(PortfolioError):
    status_code = 500
    user_message = "Internal server error"


# ---------- wallet ----------

class WalletNotConnected(PortfolioError):
    status_code = 400
    user_message = "Wallet not connected. Connect a wallet and try again."


class TestAddressRejected(PortfolioError):
    """
    A well-known development account was used on a production network.
    Such accounts hold no real funds, any transaction built for them is meaningless.
    """
    __test__ = False  # keep pytest from collecting this class

    status_code = 400
    user_message = "This is a public test address. Connect a real wallet to use a production network."

    def __init__(self, address: str, chain_id: int):
        super().__init__(f"Test address {address} cannot be used on chain {chain_id}")
        self.address = address
        self.chain_id = chain_id


TestAddressOnMainnet = TestAddressRejected


# ---------- upstream aggregator ----------

class UpstreamError(PortfolioError):
    """
    Non-2xx answer from the swap/quote API. Carries status and body for diagnostics.
    """
    status_code = 502
    user_message = "The swap service returned an error. Please try again later."

    def __init__(self, status: Optional[int], body: str, msg: Optional[str] = None):
        super().__init__(msg or f"Upstream returned status {status}: {body}")
        self.status = status
        self.body = body


class RateLimited(UpstreamError):
    status_code = 429
    user_message = "Rate limited by the swap service. Wait a few seconds and retry."


class InvalidRequestParameters(UpstreamError):
    status_code = 400
    user_message = "Invalid swap parameters. Check your wallet and selected network."


InvalidRequest = InvalidRequestParameters


class NoLiquidity(UpstreamError):
    status_code = 422
    user_message = "No liquidity available for this token pair."


class UpstreamResponseError(UpstreamError):
    """2xx answer whose payload does not match the expected shape."""
    user_message = "The swap service returned an unexpected response."


class NetworkError(PortfolioError):
    """Transport failure or timeout talking to an upstream service."""
    status_code = 504
    user_message = "Network error reaching the swap service. Check your connection and retry."
