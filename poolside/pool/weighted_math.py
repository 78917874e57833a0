"""Weighted pool math.

Core math functions for two-asset weighted product pools: swaps in both
directions, spot price, and the four corners of single-asset join/exit.
Formulas follow the pool engine's BMath with a zero exit fee.

Every result is rounded in the pool's favour: amounts paid out round down,
amounts required in round up.
"""

from poolside.math.fixed_point import Bfp, FixedPointError

from .errors import InvalidParameter, InvalidQuote
from .scaling import add_swap_fee_amount, subtract_swap_fee_amount, validate_fee


def _require_positive(**values: Bfp) -> None:
    for name, value in values.items():
        if value.value <= 0:
            raise InvalidQuote(f"{name} must be positive, got {value}")


def _require_non_negative(name: str, value: Bfp) -> None:
    if value.value < 0:
        raise InvalidParameter(f"{name} must be non-negative, got {value}")


def _pow_up(base: Bfp, exp: Bfp) -> Bfp:
    try:
        return base.pow_up(exp)
    except FixedPointError as err:
        raise InvalidQuote(f"Power base {base} out of bounds") from err


def _pow_down(base: Bfp, exp: Bfp) -> Bfp:
    try:
        return base.pow_down(exp)
    except FixedPointError as err:
        raise InvalidQuote(f"Power base {base} out of bounds") from err


def _inverse_pow_up(ratio: Bfp, exp: Bfp) -> Bfp:
    """(1 / ratio)^exp for ratio in (0, 1], rounded up.

    The engine's power only accepts bases below 2, so a growth factor is
    raised through its reciprocal instead.
    """
    denom = _pow_down(ratio, exp)
    if denom.is_zero():
        raise InvalidQuote(f"Power of ratio {ratio} underflows")
    return Bfp.one().div_up(denom)


def _inverse_pow_down(ratio: Bfp, exp: Bfp) -> Bfp:
    """(1 / ratio)^exp for ratio in (0, 1], rounded down."""
    return Bfp.one().div_down(_pow_up(ratio, exp))


def calc_spot_price(
    balance_in: Bfp,
    weight_in: Bfp,
    balance_out: Bfp,
    weight_out: Bfp,
    fee: Bfp,
) -> Bfp:
    """Calculate the marginal price of the output token in input tokens.

    Formula:
        spot = (balance_in / weight_in) / (balance_out / weight_out) / (1 - fee)
    """
    _require_positive(
        balance_in=balance_in, weight_in=weight_in, balance_out=balance_out, weight_out=weight_out
    )
    numer = balance_in.div_up(weight_in)
    denom = balance_out.div_down(weight_out)
    ratio = numer.div_up(denom)
    return add_swap_fee_amount(ratio, fee)


def calc_out_given_in(
    balance_in: Bfp,
    weight_in: Bfp,
    balance_out: Bfp,
    weight_out: Bfp,
    amount_in: Bfp,
    fee: Bfp,
) -> Bfp:
    """Calculate output amount for a given input (sell order).

    Formula:
        amount_out = balance_out * (1 - (balance_in / (balance_in + amount_in * (1 - fee)))^(weight_in / weight_out))

    Args:
        balance_in: Balance of input token (must be positive)
        weight_in: Weight of input token (must be positive)
        balance_out: Balance of output token (must be positive)
        weight_out: Weight of output token (must be positive)
        amount_in: Input amount, fee is charged on this leg
        fee: Swap fee as a fraction in [0, 1)

    Returns:
        Output amount (rounded down)

    Raises:
        InvalidQuote: If any balance or weight is not positive
        InvalidParameter: If fee is out of range or amount_in is negative
    """
    _require_positive(
        balance_in=balance_in, weight_in=weight_in, balance_out=balance_out, weight_out=weight_out
    )
    _require_non_negative("amount_in", amount_in)
    validate_fee(fee)
    if amount_in.is_zero():
        return Bfp.zero()

    adjusted_in = subtract_swap_fee_amount(amount_in, fee)

    # base = balance_in / (balance_in + adjusted_in), rounded up so less goes out
    base = balance_in.div_up(balance_in.add(adjusted_in))

    # exponent rounded down: base < 1, so a smaller exponent gives a larger power
    exponent = weight_in.div_down(weight_out)
    power = _pow_up(base, exponent)

    return balance_out.mul_down(power.complement())


def calc_in_given_out(
    balance_in: Bfp,
    weight_in: Bfp,
    balance_out: Bfp,
    weight_out: Bfp,
    amount_out: Bfp,
    fee: Bfp,
) -> Bfp:
    """Calculate input amount for a given output (buy order).

    Formula:
        amount_in = balance_in * ((balance_out / (balance_out - amount_out))^(weight_out / weight_in) - 1) / (1 - fee)

    Args:
        balance_in: Balance of input token (must be positive)
        weight_in: Weight of input token (must be positive)
        balance_out: Balance of output token (must be positive)
        weight_out: Weight of output token (must be positive)
        amount_out: Desired output amount
        fee: Swap fee as a fraction in [0, 1)

    Returns:
        Input amount including the fee (rounded up)

    Raises:
        InvalidQuote: If any balance or weight is not positive, if
            amount_out >= balance_out
        InvalidParameter: If fee is out of range or amount_out is negative
    """
    _require_positive(
        balance_in=balance_in, weight_in=weight_in, balance_out=balance_out, weight_out=weight_out
    )
    _require_non_negative("amount_out", amount_out)
    validate_fee(fee)
    if amount_out >= balance_out:
        raise InvalidQuote(f"amount_out {amount_out} must be less than balance_out {balance_out}")
    if amount_out.is_zero():
        return Bfp.zero()

    # balance_out / (balance_out - amount_out), taken as the reciprocal of a
    # ratio below 1; that ratio rounded down so the power rounds up
    remaining_ratio = balance_out.sub(amount_out).div_down(balance_out)

    # exponent rounded up for buy orders (differs from calc_out!)
    exponent = weight_out.div_up(weight_in)
    power = _inverse_pow_up(remaining_ratio, exponent)

    ratio = power.sub(Bfp.one())
    raw_in = balance_in.mul_up(ratio)
    return add_swap_fee_amount(raw_in, fee)


def calc_pool_out_given_single_in(
    balance_in: Bfp,
    weight_in: Bfp,
    pool_supply: Bfp,
    total_weight: Bfp,
    amount_in: Bfp,
    fee: Bfp,
) -> Bfp:
    """Calculate pool shares minted for a single-asset deposit.

    Only the part of the deposit that implicitly swaps into the other asset,
    (1 - normalized_weight), pays the swap fee.

    Formula:
        nw = weight_in / total_weight
        in_after_fee = amount_in * (1 - (1 - nw) * fee)
        shares_out = pool_supply * ((balance_in + in_after_fee) / balance_in)^nw - pool_supply
    """
    _require_positive(
        balance_in=balance_in,
        weight_in=weight_in,
        pool_supply=pool_supply,
        total_weight=total_weight,
    )
    _require_non_negative("amount_in", amount_in)
    validate_fee(fee)
    if amount_in.is_zero():
        return Bfp.zero()

    normalized_weight = weight_in.div_down(total_weight)
    zaz = normalized_weight.complement().mul_up(fee)
    in_after_fee = amount_in.mul_down(zaz.complement())

    # (balance_in + in_after_fee) / balance_in through its reciprocal, rounded
    # up so the minted share ratio rounds down
    new_balance_in = balance_in.add(in_after_fee)
    balance_ratio = balance_in.div_up(new_balance_in)

    pool_ratio = _inverse_pow_down(balance_ratio, normalized_weight)
    new_pool_supply = pool_ratio.mul_down(pool_supply)
    return new_pool_supply.sub(pool_supply)


def calc_single_in_given_pool_out(
    balance_in: Bfp,
    weight_in: Bfp,
    pool_supply: Bfp,
    total_weight: Bfp,
    pool_amount_out: Bfp,
    fee: Bfp,
) -> Bfp:
    """Calculate the single-asset deposit required to mint pool_amount_out shares.

    Formula:
        nw = weight_in / total_weight
        token_in_ratio = ((pool_supply + pool_amount_out) / pool_supply)^(1 / nw)
        amount_in = balance_in * (token_in_ratio - 1) / (1 - (1 - nw) * fee)
    """
    _require_positive(
        balance_in=balance_in,
        weight_in=weight_in,
        pool_supply=pool_supply,
        total_weight=total_weight,
    )
    _require_non_negative("pool_amount_out", pool_amount_out)
    validate_fee(fee)
    if pool_amount_out.is_zero():
        return Bfp.zero()

    normalized_weight = weight_in.div_down(total_weight)
    new_pool_supply = pool_supply.add(pool_amount_out)
    supply_ratio = pool_supply.div_down(new_pool_supply)

    boo = Bfp.one().div_up(normalized_weight)
    token_in_ratio = _inverse_pow_up(supply_ratio, boo)
    new_balance_in = token_in_ratio.mul_up(balance_in)
    in_after_fee = new_balance_in.sub(balance_in)

    zar = normalized_weight.complement().mul_up(fee)
    return in_after_fee.div_up(zar.complement())


def calc_single_out_given_pool_in(
    balance_out: Bfp,
    weight_out: Bfp,
    pool_supply: Bfp,
    total_weight: Bfp,
    pool_amount_in: Bfp,
    fee: Bfp,
) -> Bfp:
    """Calculate the single asset paid out for redeeming pool_amount_in shares.

    Formula:
        nw = weight_out / total_weight
        token_out_ratio = ((pool_supply - pool_amount_in) / pool_supply)^(1 / nw)
        amount_out = balance_out * (1 - token_out_ratio) * (1 - (1 - nw) * fee)

    Raises:
        InvalidQuote: If pool_amount_in would take the share supply to zero
    """
    _require_positive(
        balance_out=balance_out,
        weight_out=weight_out,
        pool_supply=pool_supply,
        total_weight=total_weight,
    )
    _require_non_negative("pool_amount_in", pool_amount_in)
    validate_fee(fee)
    if pool_amount_in >= pool_supply:
        raise InvalidQuote(
            f"pool_amount_in {pool_amount_in} must be less than pool supply {pool_supply}"
        )
    if pool_amount_in.is_zero():
        return Bfp.zero()

    # A larger normalized weight shrinks the exponent and so the payout
    normalized_weight_up = weight_out.div_up(total_weight)
    normalized_weight_down = weight_out.div_down(total_weight)

    new_pool_supply = pool_supply.sub(pool_amount_in)
    pool_ratio = new_pool_supply.div_up(pool_supply)

    exponent = Bfp.one().div_down(normalized_weight_up)
    token_out_ratio = _pow_up(pool_ratio, exponent)
    new_balance_out = token_out_ratio.mul_up(balance_out)
    out_before_fee = balance_out.sub(new_balance_out)

    zaz = normalized_weight_down.complement().mul_up(fee)
    return out_before_fee.mul_down(zaz.complement())


def calc_pool_in_given_single_out(
    balance_out: Bfp,
    weight_out: Bfp,
    pool_supply: Bfp,
    total_weight: Bfp,
    amount_out: Bfp,
    fee: Bfp,
) -> Bfp:
    """Calculate the pool shares that must be redeemed to withdraw amount_out.

    Formula:
        nw = weight_out / total_weight
        out_before_fee = amount_out / (1 - (1 - nw) * fee)
        pool_ratio = ((balance_out - out_before_fee) / balance_out)^nw
        shares_in = pool_supply - pool_supply * pool_ratio

    Raises:
        InvalidQuote: If the withdrawal (grossed up by the fee) would drain
            the whole reserve
    """
    _require_positive(
        balance_out=balance_out,
        weight_out=weight_out,
        pool_supply=pool_supply,
        total_weight=total_weight,
    )
    _require_non_negative("amount_out", amount_out)
    validate_fee(fee)
    if amount_out.is_zero():
        return Bfp.zero()

    normalized_weight_up = weight_out.div_up(total_weight)
    normalized_weight_down = weight_out.div_down(total_weight)

    zar = normalized_weight_down.complement().mul_up(fee)
    out_before_fee = amount_out.div_up(zar.complement())
    if out_before_fee >= balance_out:
        raise InvalidQuote(
            f"Withdrawal {out_before_fee} (including fee) must be less than balance {balance_out}"
        )

    new_balance_out = balance_out.sub(out_before_fee)
    token_out_ratio = new_balance_out.div_down(balance_out)

    pool_ratio = _pow_down(token_out_ratio, normalized_weight_up)
    new_pool_supply = pool_ratio.mul_down(pool_supply)
    return pool_supply.sub(new_pool_supply)
