"""Error taxonomy. Every public coroutine resolves to a value or a BlendError."""
from __future__ import annotations

import asyncio
import functools
import json
import logging
from typing import Any, Awaitable, Callable, TypeVar

import aiohttp

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BlendError(Exception):
    """Base class for all errors raised by the client."""

    prefix = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.prefix}: {self.message}"


class NetworkError(BlendError):
    prefix = "Network error"


class ContractError(BlendError):
    """The operation was reverted or rejected on-chain."""

    prefix = "Contract error"


class SerializationError(BlendError):
    """A contract or RPC response could not be decoded."""

    prefix = "Serialization error"


class ValidationError(BlendError):
    prefix = "Validation error"


class UnauthorizedError(BlendError):
    prefix = "Unauthorized"


class NotFoundError(BlendError):
    prefix = "Not found"


class UnknownError(BlendError):
    prefix = "Unknown error"


class PoolStatusError(ValidationError):
    """The pool's current status does not admit the requested operation."""

    def __init__(self, pool_id: str, status: int, request_type: Any) -> None:
        self.pool_id = pool_id
        self.status = status
        self.request_type = request_type
        label = getattr(request_type, "label", str(request_type))
        super().__init__(
            f"pool {pool_id} with status {status} does not admit {label}"
        )


class PoolStatusUnknownError(ValidationError):
    """The pool status could not be read, so nothing is admitted."""

    def __init__(self, pool_id: str, reason: str) -> None:
        self.pool_id = pool_id
        super().__init__(f"status of pool {pool_id} is unknown: {reason}")


class RpcError(Exception):
    """JSON-RPC error object returned by an endpoint."""

    def __init__(self, code: Any, message: str) -> None:
        super().__init__(f"RPC Error {code}: {message}")
        self.code = code
        self.rpc_message = message


def map_error(exc: BaseException) -> BlendError:
    """Translate a collaborator failure into the client's error taxonomy."""
    if isinstance(exc, BlendError):
        return exc
    if isinstance(exc, RpcError):
        return ContractError(exc.rpc_message)
    if isinstance(exc, aiohttp.ClientResponseError):
        if exc.status in (401, 403):
            return UnauthorizedError(f"HTTP {exc.status}: {exc.message}")
        if exc.status == 404:
            return NotFoundError(f"HTTP 404: {exc.message}")
        return NetworkError(f"HTTP {exc.status}: {exc.message}")
    if isinstance(exc, asyncio.TimeoutError):
        return NetworkError("request timed out")
    if isinstance(exc, (aiohttp.ClientError, OSError)):
        return NetworkError(str(exc) or type(exc).__name__)
    if isinstance(exc, json.JSONDecodeError):
        return SerializationError(str(exc))
    return UnknownError(str(exc) or type(exc).__name__)


def mapped_errors(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """Decorate a coroutine so that only BlendError subclasses escape it."""

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except BlendError:
            raise
        except Exception as e:
            mapped = map_error(e)
            logger.error("%s failed: %s", func.__name__, mapped)
            raise mapped from e

    return wrapper
