"""Atomic submission of fund request batches to the pool contract."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Sequence

from ..errors import BlendError, NotFoundError, ValidationError, map_error
from ..interfaces.contract import ContractClient
from ..interfaces.ledger import LedgerClient
from ..models import FundOperationRequest, OperationOutcome, PoolSnapshot
from ..protocols.blend import encoder

logger = logging.getLogger(__name__)

SUBMIT_METHOD = "submit"

PoolReader = Callable[[str], Awaitable[PoolSnapshot]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BatchSubmitter:
    """Submit one or more requests as a single contract invocation.

    Precondition: every request in a batch belongs to the same account.
    The first request's account is used as spender, from and to; mixing
    accounts is a caller error and is not checked here.

    Amounts are scaled by the decimals each asset declares in the pool's
    own data, read through ``pool_reader``. Entries in ``token_decimals``
    (keyed by asset contract id) override the declared value.
    """

    def __init__(
        self,
        contract_client: ContractClient,
        contract_ids: dict[str, str],
        token_decimals: dict[str, int] | None = None,
        ledger_client: LedgerClient | None = None,
        pool_reader: PoolReader | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = contract_client
        self._contract_ids = contract_ids
        self._token_decimals = dict(token_decimals or {})
        self._ledger = ledger_client
        self._pool_reader = pool_reader
        self._clock = clock

    def _resolve_contract(self, requests: Sequence[FundOperationRequest]) -> str:
        pool_ids = {r.pool_id for r in requests}
        if len(pool_ids) > 1:
            raise ValidationError(
                f"a batch must target a single pool, got {sorted(pool_ids)}"
            )
        pool_id = requests[0].pool_id
        contract_id = self._contract_ids.get(pool_id)
        if not contract_id:
            raise ValidationError(f"Unknown pool id '{pool_id}'")
        return contract_id

    async def _asset_decimals(
        self, requests: Sequence[FundOperationRequest]
    ) -> dict[str, int]:
        if self._pool_reader is None:
            return dict(self._token_decimals)

        pool_id = requests[0].pool_id
        pool = await self._pool_reader(pool_id)
        decimals = {asset.asset_id: asset.decimals for asset in pool.assets}
        decimals.update(self._token_decimals)

        for r in requests:
            if r.address not in decimals:
                raise ValidationError(f"asset {r.address} is not listed in pool {pool_id}")
        return decimals

    async def submit(self, requests: Sequence[FundOperationRequest]) -> OperationOutcome:
        if not requests:
            raise ValidationError("cannot submit an empty batch")

        contract_id = self._resolve_contract(requests)
        spender = requests[0].account_id

        logger.info(
            "Submitting %d request(s) for %s to pool contract %s",
            len(requests), spender, contract_id,
        )

        try:
            decimals = await self._asset_decimals(requests)
            args = encoder.encode_submit_args(requests, decimals)
            if self._ledger is not None and not await self._ledger.account_exists(spender):
                raise NotFoundError(f"account {spender} does not exist")
            result = await self._client.invoke_contract(contract_id, SUBMIT_METHOD, args)
        except BlendError as e:
            logger.error("Batch submission failed: %s", e)
            raise
        except Exception as e:
            mapped = map_error(e)
            logger.error("Batch submission failed: %s", mapped)
            raise mapped from e

        outcome = OperationOutcome(
            success=True,
            transaction_hash=result.transaction_hash,
            ledger=result.ledger,
            created_at=self._clock(),
            raw_result=result.raw_result,
            error_message=None,
        )
        logger.info(
            "Batch applied in ledger %d (tx %s)", outcome.ledger, outcome.transaction_hash
        )
        return outcome
