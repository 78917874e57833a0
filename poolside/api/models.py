"""Pydantic request and response models for the quote service.

Amounts, weights and fees are decimals in token units; they are carried as
JSON strings or numbers and validated on the way in.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from poolside.models.types import Amount, Fee, Weight


class QuoteBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SwapQuoteRequest(QuoteBase):
    """Pool state for a swap between two assets."""

    balance_in: Amount = Field(alias="balanceIn")
    weight_in: Weight = Field(alias="weightIn")
    balance_out: Amount = Field(alias="balanceOut")
    weight_out: Weight = Field(alias="weightOut")
    fee: Fee = Decimal(0)


class OutGivenInRequest(SwapQuoteRequest):
    amount_in: Amount = Field(alias="amountIn")


class InGivenOutRequest(SwapQuoteRequest):
    amount_out: Amount = Field(alias="amountOut")


class LiquidityQuoteRequest(QuoteBase):
    """Pool state for a single-asset join or exit."""

    balance: Amount
    weight: Weight
    pool_supply: Amount = Field(alias="poolSupply")
    total_weight: Weight = Field(alias="totalWeight")
    fee: Fee = Decimal(0)


class PoolOutGivenSingleInRequest(LiquidityQuoteRequest):
    amount_in: Amount = Field(alias="amountIn")


class SingleInGivenPoolOutRequest(LiquidityQuoteRequest):
    pool_amount_out: Amount = Field(alias="poolAmountOut")


class SingleOutGivenPoolInRequest(LiquidityQuoteRequest):
    pool_amount_in: Amount = Field(alias="poolAmountIn")


class PoolInGivenSingleOutRequest(LiquidityQuoteRequest):
    amount_out: Amount = Field(alias="amountOut")


class CeilingRequest(QuoteBase):
    reserve: Amount


class CeilingResponse(QuoteBase):
    max_in: Decimal = Field(alias="maxIn")
    max_out: Decimal = Field(alias="maxOut")


class QuoteResponse(BaseModel):
    amount: Decimal


class DispensableRequest(QuoteBase):
    active: bool
    max_tokens: Amount = Field(alias="maxTokens")
    max_balance: Amount = Field(alias="maxBalance")
    balance: Amount
    is_minter: bool = Field(default=False, alias="isMinter")
    recipient_balance: Amount = Field(alias="recipientBalance")
    amount: Amount = Decimal(1)


class DispensableResponse(BaseModel):
    dispensable: bool


class ErrorResponse(BaseModel):
    error: str
    detail: str
