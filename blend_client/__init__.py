"""Client SDK for Blend lending pools."""
from .cache import NoCache, RefreshCache, UseCache
from .config import BlendConfig, load_config
from .errors import (
    BlendError,
    ContractError,
    NetworkError,
    NotFoundError,
    SerializationError,
    UnauthorizedError,
    UnknownError,
    ValidationError,
)
from .models import (
    FundOperationRequest,
    OperationOutcome,
    PoolSnapshot,
    PoolStatus,
    PositionSnapshot,
    RequestType,
)
from .services import BlendClient

__all__ = [
    "BlendClient",
    "BlendConfig",
    "BlendError",
    "ContractError",
    "FundOperationRequest",
    "NetworkError",
    "NoCache",
    "NotFoundError",
    "OperationOutcome",
    "PoolSnapshot",
    "PoolStatus",
    "PositionSnapshot",
    "RefreshCache",
    "RequestType",
    "SerializationError",
    "UnauthorizedError",
    "UnknownError",
    "UseCache",
    "ValidationError",
    "load_config",
]
