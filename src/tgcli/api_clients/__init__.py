"""API Client Abstractions for TigerGraph REST endpoints.

All REST calls made by the CLI live in dedicated client classes.
"""

from .base_client import (
    BaseAPIClient,
    APIClientError,
    AuthenticationError,
    NetworkError,
)
from .cloud_client import CloudAPIClient
from .server_client import ServerAdminClient, BackupPlan

__all__ = [
    # Base client
    "BaseAPIClient",
    "APIClientError",
    "AuthenticationError",
    "NetworkError",
    # tgcloud.io
    "CloudAPIClient",
    # Server admin portal
    "ServerAdminClient",
    "BackupPlan",
]
