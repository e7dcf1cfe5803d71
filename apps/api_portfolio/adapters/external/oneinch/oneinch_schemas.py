# apps/api_portfolio/adapters/external/oneinch/oneinch_schemas.py
"""
Typed views over the aggregator payloads. Anything that does not parse
here is turned into UpstreamResponseError by the client.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _uint(v) -> int:
    if v is None or v == "":
        raise ValueError("missing integer amount")
    if isinstance(v, bool):
        raise ValueError("boolean is not an amount")
    n = int(str(v), 0) if isinstance(v, str) and v.lower().startswith("0x") else int(str(v))
    if n < 0:
        raise ValueError("negative amount")
    return n


class QuoteResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    dst_amount: int = Field(..., alias="dstAmount")
    price_impact: float = Field(0.0, alias="priceImpact")

    @field_validator("dst_amount", mode="before")
    @classmethod
    def _amount(cls, v):
        return _uint(v)

    @field_validator("price_impact", mode="before")
    @classmethod
    def _impact(cls, v):
        return 0.0 if v in (None, "") else float(v)


class TxResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    to: str
    data: str
    value: int = 0
    gas: Optional[int] = None
    gas_price: Optional[int] = Field(None, alias="gasPrice")

    @field_validator("value", mode="before")
    @classmethod
    def _value(cls, v):
        return 0 if v in (None, "") else _uint(v)

    @field_validator("gas", "gas_price", mode="before")
    @classmethod
    def _optional_uint(cls, v):
        return None if v in (None, "", 0, "0") else _uint(v)


class SwapResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    dst_amount: Optional[str] = Field(None, alias="dstAmount")
    tx: TxResponse


class AllowanceResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    allowance: int

    @field_validator("allowance", mode="before")
    @classmethod
    def _allowance(cls, v):
        return _uint(v)


class TokenMetadataResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    symbol: Optional[str] = None
    name: Optional[str] = None
    decimals: Optional[int] = None
    logo_uri: Optional[str] = Field(None, alias="logoURI")
