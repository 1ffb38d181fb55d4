"""Upstream collection API access."""

from .client import (
    CollectionGateway,
    CollectionMissingError,
    UpstreamUnavailableError,
    WriteFailure,
    WriteResult,
)

__all__ = [
    "CollectionGateway",
    "CollectionMissingError",
    "UpstreamUnavailableError",
    "WriteFailure",
    "WriteResult",
]
