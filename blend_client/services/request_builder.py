"""Construction and validation of fund operation requests."""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Union

from ..cache import CachePolicy
from ..errors import ValidationError
from ..models import FundOperationRequest, RequestType
from .pool_validator import PoolStateValidator

logger = logging.getLogger(__name__)

Amount = Union[Decimal, int, str]


def normalize_amount(amount: Amount) -> Decimal:
    """Coerce to Decimal without passing through binary floats."""
    if isinstance(amount, bool) or isinstance(amount, float):
        raise ValidationError(
            f"amount must be a Decimal, int or numeric string, got {amount!r}"
        )
    if isinstance(amount, Decimal):
        value = amount
    else:
        try:
            value = Decimal(amount)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise ValidationError(f"invalid amount {amount!r}") from e

    if not value.is_finite():
        raise ValidationError(f"amount must be finite, got {value}")
    if value <= 0:
        raise ValidationError(f"amount must be greater than zero, got {value}")
    return value


class RequestBuilder:
    """Build immutable requests after local checks and pool admission."""

    def __init__(self, validator: PoolStateValidator) -> None:
        self._validator = validator

    async def build(
        self,
        request_type: RequestType,
        account_id: str,
        pool_id: str,
        address: str,
        amount: Amount,
        memo: str | None = None,
        status_policy: CachePolicy | None = None,
    ) -> FundOperationRequest:
        if not isinstance(request_type, RequestType):
            try:
                request_type = RequestType(request_type)
            except ValueError as e:
                raise ValidationError(f"unknown request type {request_type!r}") from e

        value = normalize_amount(amount)
        if not account_id:
            raise ValidationError("account id is required")
        if not address:
            raise ValidationError("asset address is required")
        # unknown pools fail here, before any network call
        self._validator.contract_id(pool_id)

        await self._validator.validate(pool_id, request_type, status_policy)

        request = FundOperationRequest(
            request_type=request_type,
            address=address,
            amount=value,
            account_id=account_id,
            pool_id=pool_id,
            memo=memo,
        )
        logger.debug("Built %s request for %s in pool %s", request_type.label, address, pool_id)
        return request
