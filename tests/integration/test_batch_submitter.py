"""Integration tests for batch submission."""
from __future__ import annotations

import asyncio
import dataclasses
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from blend_client.errors import (
    ContractError,
    NetworkError,
    NotFoundError,
    RpcError,
    ValidationError,
)
from blend_client.models import (
    FundOperationRequest,
    InvocationResult,
    PoolSnapshot,
    RequestType,
)
from blend_client.services.batch_submitter import SUBMIT_METHOD, BatchSubmitter
from conftest import ACCOUNT, POOL_CONTRACT, POOL_ID

CREATED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _request(
    request_type: RequestType,
    address: str,
    amount: str,
    pool_id: str = POOL_ID,
) -> FundOperationRequest:
    return FundOperationRequest(
        request_type=request_type,
        address=address,
        amount=Decimal(amount),
        account_id=ACCOUNT,
        pool_id=pool_id,
    )


def _contract_client(result: object = None, error: BaseException | None = None) -> MagicMock:
    client = MagicMock()
    if error is not None:
        client.invoke_contract = AsyncMock(side_effect=error)
    else:
        client.invoke_contract = AsyncMock(
            return_value=result
            or InvocationResult(
                return_value=None,
                transaction_hash="txhash",
                ledger=777,
                raw_result="AAAA",
            )
        )
    return client


def _submitter(client: MagicMock, ledger: MagicMock | None = None) -> BatchSubmitter:
    return BatchSubmitter(
        client,
        {POOL_ID: POOL_CONTRACT, "other": "COTHER"},
        token_decimals={"CUSDC": 6, "CXLM": 7},
        ledger_client=ledger,
        clock=lambda: CREATED_AT,
    )


class TestSubmit:
    @pytest.mark.asyncio
    async def test_two_requests_make_one_invocation(self) -> None:
        client = _contract_client()
        submitter = _submitter(client)

        outcome = await submitter.submit(
            [
                _request(RequestType.DEPOSIT_COLLATERAL, "CUSDC", "100"),
                _request(RequestType.BORROW, "CXLM", "500"),
            ]
        )

        client.invoke_contract.assert_awaited_once()
        contract_id, method, args = client.invoke_contract.call_args.args
        assert contract_id == POOL_CONTRACT
        assert method == SUBMIT_METHOD == "submit"
        assert args[0] == [
            {"request_type": 2, "address": "CUSDC", "amount": 100_000_000},
            {"request_type": 4, "address": "CXLM", "amount": 5_000_000_000},
        ]
        assert args[1:] == [ACCOUNT, ACCOUNT, ACCOUNT]

        assert outcome.success is True
        assert outcome.transaction_hash == "txhash"
        assert outcome.ledger == 777
        assert outcome.created_at == CREATED_AT
        assert outcome.raw_result == "AAAA"
        assert outcome.error_message is None

    @pytest.mark.asyncio
    async def test_single_request(self) -> None:
        client = _contract_client()
        await _submitter(client).submit([_request(RequestType.REPAY, "CXLM", "1")])

        args = client.invoke_contract.call_args.args[2]
        assert len(args[0]) == 1

    @pytest.mark.asyncio
    async def test_empty_batch_rejected(self) -> None:
        client = _contract_client()
        with pytest.raises(ValidationError, match="empty batch"):
            await _submitter(client).submit([])
        client.invoke_contract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_mixed_pools_rejected(self) -> None:
        client = _contract_client()
        with pytest.raises(ValidationError, match="single pool"):
            await _submitter(client).submit(
                [
                    _request(RequestType.DEPOSIT, "CUSDC", "1"),
                    _request(RequestType.DEPOSIT, "CUSDC", "1", pool_id="other"),
                ]
            )
        client.invoke_contract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_pool_rejected(self) -> None:
        client = _contract_client()
        with pytest.raises(ValidationError, match="Unknown pool id"):
            await _submitter(client).submit(
                [_request(RequestType.DEPOSIT, "CUSDC", "1", pool_id="missing")]
            )

    @pytest.mark.asyncio
    async def test_excess_precision_rejected_before_invocation(self) -> None:
        client = _contract_client()
        with pytest.raises(ValidationError, match="decimal places"):
            await _submitter(client).submit(
                [_request(RequestType.DEPOSIT, "CUSDC", "0.0000001")]
            )
        client.invoke_contract.assert_not_awaited()


class TestFailures:
    @pytest.mark.asyncio
    async def test_contract_rejection_maps_to_contract_error(self) -> None:
        client = _contract_client(error=RpcError(-32000, "health factor too low"))
        with pytest.raises(ContractError, match="health factor too low"):
            await _submitter(client).submit([_request(RequestType.BORROW, "CXLM", "1")])

    @pytest.mark.asyncio
    async def test_transport_failure_maps_to_network_error(self) -> None:
        client = _contract_client(error=aiohttp.ClientConnectionError("reset"))
        with pytest.raises(NetworkError):
            await _submitter(client).submit([_request(RequestType.DEPOSIT, "CUSDC", "1")])

    @pytest.mark.asyncio
    async def test_timeout_maps_to_network_error(self) -> None:
        client = _contract_client(error=asyncio.TimeoutError())
        with pytest.raises(NetworkError, match="timed out"):
            await _submitter(client).submit([_request(RequestType.DEPOSIT, "CUSDC", "1")])

    @pytest.mark.asyncio
    async def test_blend_errors_pass_through(self) -> None:
        original = ContractError("reverted")
        client = _contract_client(error=original)
        with pytest.raises(ContractError) as exc_info:
            await _submitter(client).submit([_request(RequestType.DEPOSIT, "CUSDC", "1")])
        assert exc_info.value is original


class TestLedgerCheck:
    @pytest.mark.asyncio
    async def test_missing_account_is_not_submitted(self) -> None:
        client = _contract_client()
        ledger = MagicMock()
        ledger.account_exists = AsyncMock(return_value=False)

        with pytest.raises(NotFoundError, match=ACCOUNT):
            await _submitter(client, ledger).submit(
                [_request(RequestType.DEPOSIT, "CUSDC", "1")]
            )
        client.invoke_contract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_existing_account_is_submitted(self) -> None:
        client = _contract_client()
        ledger = MagicMock()
        ledger.account_exists = AsyncMock(return_value=True)

        await _submitter(client, ledger).submit([_request(RequestType.DEPOSIT, "CUSDC", "1")])

        ledger.account_exists.assert_awaited_once_with(ACCOUNT)
        client.invoke_contract.assert_awaited_once()


class TestAssetDecimals:
    @staticmethod
    def _pool_reader(pool: PoolSnapshot, usdc_decimals: int) -> AsyncMock:
        assets = tuple(
            dataclasses.replace(a, decimals=usdc_decimals) if a.asset_id == "CUSDC" else a
            for a in pool.assets
        )
        return AsyncMock(return_value=dataclasses.replace(pool, assets=assets))

    @pytest.mark.asyncio
    async def test_declared_decimals_scale_the_amount(
        self, sample_pool: PoolSnapshot
    ) -> None:
        client = _contract_client()
        reader = self._pool_reader(sample_pool, 6)
        submitter = BatchSubmitter(client, {POOL_ID: POOL_CONTRACT}, pool_reader=reader)

        await submitter.submit([_request(RequestType.DEPOSIT, "CUSDC", "100")])

        reader.assert_awaited_once_with(POOL_ID)
        records = client.invoke_contract.call_args.args[2][0]
        assert records[0]["amount"] == 100_000_000

    @pytest.mark.asyncio
    async def test_configured_decimals_override_declared(
        self, sample_pool: PoolSnapshot
    ) -> None:
        client = _contract_client()
        submitter = BatchSubmitter(
            client,
            {POOL_ID: POOL_CONTRACT},
            token_decimals={"CUSDC": 7},
            pool_reader=self._pool_reader(sample_pool, 6),
        )

        await submitter.submit([_request(RequestType.DEPOSIT, "CUSDC", "100")])

        records = client.invoke_contract.call_args.args[2][0]
        assert records[0]["amount"] == 1_000_000_000

    @pytest.mark.asyncio
    async def test_asset_outside_pool_rejected(self, sample_pool: PoolSnapshot) -> None:
        client = _contract_client()
        submitter = BatchSubmitter(
            client,
            {POOL_ID: POOL_CONTRACT},
            pool_reader=self._pool_reader(sample_pool, 7),
        )

        with pytest.raises(ValidationError, match="CEURC"):
            await submitter.submit([_request(RequestType.DEPOSIT, "CEURC", "1")])
        client.invoke_contract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pool_read_failure_is_mapped(self) -> None:
        client = _contract_client()
        reader = AsyncMock(side_effect=aiohttp.ClientConnectionError("reset"))
        submitter = BatchSubmitter(client, {POOL_ID: POOL_CONTRACT}, pool_reader=reader)

        with pytest.raises(NetworkError):
            await submitter.submit([_request(RequestType.DEPOSIT, "CUSDC", "1")])
        client.invoke_contract.assert_not_awaited()
