"""DFlow prediction market REST API client."""

from .rest_client import ApiError, DFlowRestClient

__all__ = ["ApiError", "DFlowRestClient"]
