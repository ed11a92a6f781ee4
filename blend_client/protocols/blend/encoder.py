"""Encode fund requests into the pool contract's ``submit`` arguments."""
from __future__ import annotations

from decimal import Decimal, localcontext
from typing import Any, Mapping, Sequence

from ...errors import ValidationError
from ...models import FundOperationRequest
from .parser import SCALAR_DECIMALS


def to_fixed(amount: Decimal, decimals: int) -> int:
    """Scale a Decimal amount to the asset's integer base units.

    Amounts carrying more fractional digits than the asset supports are
    rejected rather than rounded.
    """
    if not amount.is_finite():
        raise ValidationError(f"amount {amount} is not a finite number")

    # scaleb rounds to the context precision, so widen it to fit every digit
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(amount.as_tuple().digits))
        scaled = amount.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValidationError(
                f"amount {amount} has more than {decimals} decimal places"
            )
        return int(scaled)


def encode_request(
    request: FundOperationRequest, token_decimals: Mapping[str, int]
) -> dict[str, Any]:
    """``token_decimals`` is keyed by asset contract id; unknown assets use 7."""
    decimals = token_decimals.get(request.address, SCALAR_DECIMALS)
    return {
        "request_type": int(request.request_type),
        "address": request.address,
        "amount": to_fixed(request.amount, decimals),
    }


def encode_submit_args(
    requests: Sequence[FundOperationRequest], token_decimals: Mapping[str, int]
) -> list[Any]:
    """Arguments for ``submit(requests, spender, from, to)``.

    The first request's account authorises the whole batch.
    """
    account = requests[0].account_id
    return [
        [encode_request(r, token_decimals) for r in requests],
        account,
        account,
        account,
    ]
