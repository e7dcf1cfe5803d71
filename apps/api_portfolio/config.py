import os
from dotenv import load_dotenv
from dataclasses import dataclass
from functools import lru_cache

load_dotenv()

@dataclass
class Settings:
    # document store
    MONGODB_URI: str
    MONGODB_DB_NAME: str

    # swap / quote aggregator
    ONEINCH_API_URL: str
    ONEINCH_API_KEY: str
    ONEINCH_TIMEOUT_SEC: float

    # signing / chain
    RPC_URL_DEFAULT: str
    PRIVATE_KEY: str  # hex 0x... (empty = no server-side signer)

    # pricing / gas heuristics
    NATIVE_USD_PRICE: float = 3000.0
    GAS_PRICE_GWEI: float = 20.0
    GAS_UNITS_PER_SWAP: int = 21_000

    # investment bounds (native currency units)
    MIN_INVESTMENT_NATIVE: str = "0.001"
    MAX_INVESTMENT_NATIVE: str = "100"

    # generic
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

@lru_cache()
def get_settings() -> Settings:
    return Settings(
        MONGODB_URI=os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
        MONGODB_DB_NAME=os.getenv("MONGODB_DB_NAME", "portfolio_db"),

        ONEINCH_API_URL=os.getenv("ONEINCH_API_URL", "https://api.1inch.dev"),
        ONEINCH_API_KEY=os.environ.get("ONEINCH_API_KEY", ""),
        ONEINCH_TIMEOUT_SEC=float(os.getenv("ONEINCH_TIMEOUT_SEC", 15)),

        RPC_URL_DEFAULT=os.getenv("RPC_URL_DEFAULT", "https://eth.llamarpc.com"),
        PRIVATE_KEY=os.environ.get("PRIVATE_KEY", ""),  # keep empty when missing

        NATIVE_USD_PRICE=float(os.getenv("NATIVE_USD_PRICE", 3000)),
        GAS_PRICE_GWEI=float(os.getenv("GAS_PRICE_GWEI", 20)),
        GAS_UNITS_PER_SWAP=int(os.getenv("GAS_UNITS_PER_SWAP", 21000)),

        MIN_INVESTMENT_NATIVE=os.getenv("MIN_INVESTMENT_NATIVE", "0.001"),
        MAX_INVESTMENT_NATIVE=os.getenv("MAX_INVESTMENT_NATIVE", "100"),

        ENV=os.getenv("ENV", "dev"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
