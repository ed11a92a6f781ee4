"""Service modules"""
from .account import AccountService
from .batch_submitter import BatchSubmitter
from .client import BlendClient
from .pool_stats import PoolStatsService
from .pool_validator import PoolStateValidator, check_admission
from .request_builder import RequestBuilder

__all__ = [
    "AccountService",
    "BatchSubmitter",
    "BlendClient",
    "PoolStatsService",
    "PoolStateValidator",
    "RequestBuilder",
    "check_admission",
]
