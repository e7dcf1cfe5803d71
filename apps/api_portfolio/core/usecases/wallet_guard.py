from typing import Optional

from ..domain.chains import is_test_address_on_production, is_wallet_address
from ..domain.exceptions import TestAddressRejected, ValidationError, WalletNotConnected


def ensure_usable_wallet(user_address: Optional[str], chain_id: int) -> str:
    """
    Reject a missing/malformed address, and any well-known development
    account on a production network. Runs before any network call.
    """
    if not user_address:
        raise WalletNotConnected()
    if not is_wallet_address(user_address):
        raise ValidationError("Invalid wallet address format")
    if is_test_address_on_production(user_address, chain_id):
        raise TestAddressRejected(user_address, chain_id)
    return user_address
