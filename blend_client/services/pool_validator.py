"""Pool-status admission checks for fund operations."""
from __future__ import annotations

import logging

from ..cache import CachePolicy, CachePolicyExecutor, UseCache
from ..errors import (
    BlendError,
    PoolStatusError,
    PoolStatusUnknownError,
    ValidationError,
)
from ..interfaces.contract import ContractClient
from ..models import PoolStatus, RequestType
from ..protocols.blend import parser

logger = logging.getLogger(__name__)


def check_admission(pool_id: str, status: int, request_type: RequestType) -> None:
    """Raise PoolStatusError when ``status`` does not admit ``request_type``.

    Statuses are compared by ordinal threshold so that reserved ordinals
    (2, 4, 5) and future values are classified rather than ignored:

    * ``status >= SETUP`` rejects every operation;
    * deposits are rejected from ``FROZEN`` upwards;
    * borrows are rejected from ``ON_ICE`` upwards;
    * withdrawals and repayments are always admitted.
    """
    if status >= PoolStatus.SETUP:
        raise PoolStatusError(pool_id, status, request_type)

    if request_type in (RequestType.DEPOSIT, RequestType.DEPOSIT_COLLATERAL):
        if status >= PoolStatus.FROZEN:
            raise PoolStatusError(pool_id, status, request_type)
    elif request_type is RequestType.BORROW:
        if status >= PoolStatus.ON_ICE:
            raise PoolStatusError(pool_id, status, request_type)
    elif request_type in (
        RequestType.WITHDRAW,
        RequestType.WITHDRAW_COLLATERAL,
        RequestType.REPAY,
    ):
        return
    else:
        raise ValidationError(f"Unsupported request type {request_type!r}")


class PoolStateValidator:
    """Admit or reject an operation based on the pool's current status."""

    def __init__(
        self,
        contract_client: ContractClient,
        executor: CachePolicyExecutor,
        contract_ids: dict[str, str],
        status_ttl: float = 30.0,
    ) -> None:
        self._client = contract_client
        self._executor = executor
        self._contract_ids = contract_ids
        self._status_ttl = status_ttl

    def contract_id(self, pool_id: str) -> str:
        contract_id = self._contract_ids.get(pool_id)
        if not contract_id:
            raise ValidationError(f"Unknown pool id '{pool_id}'")
        return contract_id

    async def fetch_status(
        self, pool_id: str, policy: CachePolicy | None = None
    ) -> int:
        """Current status ordinal. Any read failure becomes PoolStatusUnknownError."""
        contract_id = self.contract_id(pool_id)
        if policy is None:
            policy = UseCache(ttl=self._status_ttl)

        async def fetch() -> int:
            raw = await self._client.get_contract_data(
                contract_id, parser.POOL_DATA_KEY
            )
            if raw is None:
                raise PoolStatusUnknownError(pool_id, "pool data not found")
            return parser.parse_pool_status(raw)

        try:
            return await self._executor.execute(f"pool_status:{pool_id}", fetch, policy)
        except ValidationError:
            raise
        except BlendError as e:
            logger.error("Status read for pool %s failed: %s", pool_id, e)
            raise PoolStatusUnknownError(pool_id, str(e)) from e
        except Exception as e:
            # includes collaborator timeouts
            logger.error("Status read for pool %s failed: %s", pool_id, e)
            raise PoolStatusUnknownError(pool_id, str(e) or type(e).__name__) from e

    async def validate(
        self,
        pool_id: str,
        request_type: RequestType,
        policy: CachePolicy | None = None,
    ) -> int:
        """Raise unless the pool admits ``request_type``; returns the status seen."""
        status = await self.fetch_status(pool_id, policy)
        try:
            check_admission(pool_id, status, request_type)
        except PoolStatusError:
            logger.warning(
                "Pool %s (status %d) rejected %s", pool_id, status, request_type.label
            )
            raise
        return status
