"""API endpoints for the quote service.

The service is stateless: every request carries the pool state it should be
quoted against. Pricing errors propagate as PoolError and are mapped to a
400 response by the application's exception handler.
"""

import structlog
from fastapi import APIRouter, Depends

from poolside.dispenser import DispenserStatus, is_dispensable
from poolside.pool.guard import GuardConfig, PoolGuard
from poolside.pool.scaling import from_bfp, to_bfp
from poolside.pool.weighted_math import (
    calc_in_given_out,
    calc_out_given_in,
    calc_pool_in_given_single_out,
    calc_pool_out_given_single_in,
    calc_single_in_given_pool_out,
    calc_single_out_given_pool_in,
    calc_spot_price,
)

from .models import (
    CeilingRequest,
    CeilingResponse,
    DispensableRequest,
    DispensableResponse,
    InGivenOutRequest,
    OutGivenInRequest,
    PoolInGivenSingleOutRequest,
    PoolOutGivenSingleInRequest,
    QuoteResponse,
    SingleInGivenPoolOutRequest,
    SingleOutGivenPoolInRequest,
    SwapQuoteRequest,
)

logger = structlog.get_logger()

router = APIRouter()


def get_guard() -> PoolGuard:
    """Dependency provider for the guard.

    Override this in tests to inject a different policy:
        app.dependency_overrides[get_guard] = lambda: PoolGuard(config)
    """
    return PoolGuard(GuardConfig.from_env())


@router.post("/quote/out-given-in")
async def quote_out_given_in(request: OutGivenInRequest) -> QuoteResponse:
    amount = calc_out_given_in(
        to_bfp(request.balance_in),
        to_bfp(request.weight_in),
        to_bfp(request.balance_out),
        to_bfp(request.weight_out),
        to_bfp(request.amount_in),
        to_bfp(request.fee),
    )
    logger.debug("quoted", kind="out_given_in", amount=str(amount))
    return QuoteResponse(amount=from_bfp(amount))


@router.post("/quote/in-given-out")
async def quote_in_given_out(request: InGivenOutRequest) -> QuoteResponse:
    amount = calc_in_given_out(
        to_bfp(request.balance_in),
        to_bfp(request.weight_in),
        to_bfp(request.balance_out),
        to_bfp(request.weight_out),
        to_bfp(request.amount_out),
        to_bfp(request.fee),
    )
    logger.debug("quoted", kind="in_given_out", amount=str(amount))
    return QuoteResponse(amount=from_bfp(amount))


@router.post("/quote/spot-price")
async def quote_spot_price(request: SwapQuoteRequest) -> QuoteResponse:
    price = calc_spot_price(
        to_bfp(request.balance_in),
        to_bfp(request.weight_in),
        to_bfp(request.balance_out),
        to_bfp(request.weight_out),
        to_bfp(request.fee),
    )
    return QuoteResponse(amount=from_bfp(price))


@router.post("/quote/pool-out-given-single-in")
async def quote_pool_out_given_single_in(request: PoolOutGivenSingleInRequest) -> QuoteResponse:
    shares = calc_pool_out_given_single_in(
        to_bfp(request.balance),
        to_bfp(request.weight),
        to_bfp(request.pool_supply),
        to_bfp(request.total_weight),
        to_bfp(request.amount_in),
        to_bfp(request.fee),
    )
    return QuoteResponse(amount=from_bfp(shares))


@router.post("/quote/single-in-given-pool-out")
async def quote_single_in_given_pool_out(request: SingleInGivenPoolOutRequest) -> QuoteResponse:
    amount = calc_single_in_given_pool_out(
        to_bfp(request.balance),
        to_bfp(request.weight),
        to_bfp(request.pool_supply),
        to_bfp(request.total_weight),
        to_bfp(request.pool_amount_out),
        to_bfp(request.fee),
    )
    return QuoteResponse(amount=from_bfp(amount))


@router.post("/quote/single-out-given-pool-in")
async def quote_single_out_given_pool_in(request: SingleOutGivenPoolInRequest) -> QuoteResponse:
    amount = calc_single_out_given_pool_in(
        to_bfp(request.balance),
        to_bfp(request.weight),
        to_bfp(request.pool_supply),
        to_bfp(request.total_weight),
        to_bfp(request.pool_amount_in),
        to_bfp(request.fee),
    )
    return QuoteResponse(amount=from_bfp(amount))


@router.post("/quote/pool-in-given-single-out")
async def quote_pool_in_given_single_out(request: PoolInGivenSingleOutRequest) -> QuoteResponse:
    shares = calc_pool_in_given_single_out(
        to_bfp(request.balance),
        to_bfp(request.weight),
        to_bfp(request.pool_supply),
        to_bfp(request.total_weight),
        to_bfp(request.amount_out),
        to_bfp(request.fee),
    )
    return QuoteResponse(amount=from_bfp(shares))


@router.post("/guard/ceilings")
async def guard_ceilings(
    request: CeilingRequest,
    guard: PoolGuard = Depends(get_guard),
) -> CeilingResponse:
    """Largest single deposit and withdrawal the guard admits for a reserve."""
    reserve = to_bfp(request.reserve)
    return CeilingResponse(
        max_in=from_bfp(guard.max_in(reserve)),
        max_out=from_bfp(guard.max_out(reserve)),
    )


@router.post("/dispenser/is-dispensable")
async def dispenser_is_dispensable(request: DispensableRequest) -> DispensableResponse:
    status = DispenserStatus(
        active=request.active,
        max_tokens=request.max_tokens,
        max_balance=request.max_balance,
        balance=request.balance,
        is_minter=request.is_minter,
    )
    return DispensableResponse(
        dispensable=is_dispensable(status, request.recipient_balance, request.amount)
    )
