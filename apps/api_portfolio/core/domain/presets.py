# apps/api_portfolio/core/domain/presets.py
"""
Built-in strategy catalog. Token addresses default to Ethereum mainnet with
per-chain overrides for Arbitrum (42161) and Optimism (10).
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .entities.strategy_entity import TokenAllocationEntity, TokenEntity

RiskLevel = Literal["Conservative", "Moderate", "Aggressive"]


class PresetToken(TokenEntity):
    chain_specific: Dict[int, str] = Field(default_factory=dict, alias="chainSpecific")
    color: Optional[str] = None

    def address_for_chain(self, chain_id: int) -> str:
        return self.chain_specific.get(int(chain_id)) or self.address


class PresetAllocation(TokenAllocationEntity):
    token: PresetToken


class PresetStrategy(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    description: str
    risk_level: RiskLevel = Field(..., alias="riskLevel")
    expected_apy: str = Field(..., alias="expectedAPY")
    total_value_locked: Optional[str] = Field(None, alias="totalValueLocked")
    min_investment: str = Field(..., alias="minInvestment")
    chains: List[int]
    target_allocation: List[PresetAllocation] = Field(..., alias="targetAllocation")
    benefits: List[str] = Field(default_factory=list)


def _token(symbol: str, name: str, decimals: int, color: str, by_chain: Dict[int, str]) -> PresetToken:
    return PresetToken(
        address=by_chain[1], symbol=symbol, name=name, decimals=decimals,
        chain_id=1, chain_specific=by_chain, color=color,
    )


WETH = _token("WETH", "Wrapped Ether", 18, "#627EEA", {
    1: "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    42161: "0x82af49447d8a07e3bd95bd0d56f35241523fbab1",
    10: "0x4200000000000000000000000000000000000006",
})
UNI = _token("UNI", "Uniswap", 18, "#FF007A", {
    1: "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984",
    42161: "0xfa7f8980b0f1e64a2062791cc3b0871572f1f7f0",
    10: "0x6fd9d7AD17242c41f7131d257212c54A0e816691",
})
USDC = _token("USDC", "USD Coin", 6, "#2775CA", {
    1: "0xA0b86991c6218b36c1d19D4a2e9eb0ce3606eb48",
    42161: "0xaf88d065e77c8cc2239327c5edb3a432268e5831",
    10: "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85",
})
ARB = _token("ARB", "Arbitrum", 18, "#12AAFF", {
    1: "0xB50721BCf8d664c30412Cfbc6cf7a15145234ad1",
    42161: "0x912CE59144191C1204E64559FE8253a0e49E6548",
    10: "0x912CE59144191C1204E64559FE8253a0e49E6548",
})
LINK = _token("LINK", "Chainlink", 18, "#375BD2", {
    1: "0x514910771AF9Ca656af840dff83E8264EcF986CA",
    42161: "0xf97f4df75117a78c1A5a0DBb814Af92458539FB4",
    10: "0x350a791Bfc2C21F9Ed5d10980Dad2e2638ffa7f6",
})
DAI = _token("DAI", "Dai Stablecoin", 18, "#F5AC37", {
    1: "0x6B175474E89094C44Da98b954EedeAC495271d0F",
    42161: "0xda10009cbd5d07dd0cecc66161fc93d7c9000da1",
    10: "0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1",
})
USDT = _token("USDT", "Tether USD", 6, "#009393", {
    1: "0xdAC17F958D2ee523a2206206994597C13D831ec7",
    42161: "0xfd086bc7cd5c481dcc9c85ebe478a1c0b69fcbb9",
    10: "0x94b008aA00579c1307B0EF2c499aD98a8ce58e58",
})


def _alloc(token: PresetToken, pct: float) -> PresetAllocation:
    return PresetAllocation(token=token, target_percentage=pct)


STRATEGY_PRESETS: List[PresetStrategy] = [
    PresetStrategy(
        id="defi-blue-chip",
        name="DeFi Blue Chip",
        description="Conservative mix of established DeFi protocols with proven track records and strong fundamentals.",
        risk_level="Conservative",
        expected_apy="8-12%",
        total_value_locked="$2.4B",
        min_investment="0.1",
        chains=[1, 42161, 10],
        target_allocation=[_alloc(WETH, 40), _alloc(UNI, 30), _alloc(USDC, 30)],
        benefits=[
            "Low volatility compared to individual tokens",
            "Exposure to DeFi ecosystem growth",
            "Automatic rebalancing maintains target allocation",
        ],
    ),
    PresetStrategy(
        id="layer2-scalers",
        name="Layer 2 Scalers",
        description="High-growth potential tokens from the Layer 2 ecosystem, available on Ethereum mainnet.",
        risk_level="Aggressive",
        expected_apy="15-25%",
        total_value_locked="$890M",
        min_investment="0.05",
        chains=[1, 42161, 10],
        target_allocation=[_alloc(ARB, 40), _alloc(LINK, 35), _alloc(WETH, 25)],
        benefits=[
            "Exposure to Layer 2 ecosystem growth",
            "Diversified across multiple L2 solutions",
            "Lower fees on Arbitrum execution",
        ],
    ),
    PresetStrategy(
        id="stable-yield",
        name="Stable Yield",
        description="Conservative strategy focusing on stablecoins and yield-generating assets for steady returns.",
        risk_level="Conservative",
        expected_apy="5-8%",
        total_value_locked="$1.8B",
        min_investment="0.01",
        chains=[1, 42161, 10],
        target_allocation=[_alloc(USDC, 50), _alloc(DAI, 30), _alloc(USDT, 20)],
        benefits=[
            "Minimal price volatility",
            "Steady yield generation",
            "Great entry point for DeFi beginners",
        ],
    ),
]


def get_preset(preset_id: str) -> Optional[PresetStrategy]:
    return next((p for p in STRATEGY_PRESETS if p.id == preset_id), None)


def presets_for_chain(chain_id: int) -> List[PresetStrategy]:
    return [p for p in STRATEGY_PRESETS if int(chain_id) in p.chains]


def resolve_token_address(token: TokenEntity, chain_id: int) -> str:
    return token.address_for_chain(chain_id)
