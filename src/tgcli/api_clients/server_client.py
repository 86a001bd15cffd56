"""TigerGraph Server Admin API Client.

Provides service start/stop and backup preparation through the admin
portal REST API served on the GSQL port.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from ..config import ServerCredentials
from .base_client import APIClientError, AuthenticationError, BaseAPIClient

logger = logging.getLogger(__name__)

SERVICE_NAMES = ("gpe", "gse", "restpp")
SERVICE_OPERATIONS = ("start", "stop")
BACKUP_OPTIONS: Dict[str, str] = {"ALL": "", "DATA": "-D", "SCHEMA": "-S"}
DEFAULT_TIGERGRAPH_PATH = "/home/tigergraph"


@dataclass
class BackupPlan:
    """Resolved parameters for a server backup."""

    backup_type: str
    option: str
    tigergraph_path: str


class ServerAdminClient(BaseAPIClient):
    """API client for server administration operations.

    Authenticates against ``/api/auth/login`` and replays the returned
    session cookie on subsequent calls.
    """

    def __init__(
        self,
        credentials: ServerCredentials,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(
            base_url=credentials.gsql_endpoint, timeout=timeout, transport=transport
        )
        self.credentials = credentials
        self._session_cookie: Optional[str] = None
        self._logged_in = False

    def login(self) -> None:
        """Authenticate and keep the portal session cookie.

        Raises:
            AuthenticationError: If the server does not answer 200
            NetworkError: If the server cannot be reached
        """
        response = self._request(
            "POST",
            "/api/auth/login",
            json={
                "username": self.credentials.user,
                "password": self.credentials.password,
            },
        )

        if response.status_code != 200:
            raise AuthenticationError(
                f"Authentication failed with status: {response.status_code}",
                status_code=response.status_code,
            )

        set_cookie = response.headers.get("set-cookie", "")
        self._session_cookie = set_cookie.split(";")[0] if set_cookie else None
        self._logged_in = True
        logger.debug("Admin portal login succeeded")

    def _session_headers(self) -> Dict[str, str]:
        if not self._logged_in:
            self.login()
        headers = {"Content-Type": "application/json"}
        if self._session_cookie:
            headers["Cookie"] = self._session_cookie
        return headers

    def services(self, ops: str) -> str:
        """Start or stop the GPE, GSE and RESTPP services.

        Returns:
            The server's response message

        Raises:
            ValueError: If ``ops`` is not start or stop
            APIClientError: If the operation fails
        """
        if ops not in SERVICE_OPERATIONS:
            raise ValueError(f"Unknown service operation: {ops}")

        headers = self._session_headers()
        response = self._request(
            "POST",
            f"/api/service/{ops}",
            params=[("serviceName", name) for name in SERVICE_NAMES],
            headers=headers,
        )

        if response.status_code != 200:
            raise APIClientError(
                f"Service operation failed with status: {response.status_code}",
                status_code=response.status_code,
            )

        return str(self._json(response).get("message", ""))

    def tigergraph_path(self) -> str:
        """Return the TigerGraph installation root.

        Derived from the first log path reported by ``/api/log``; falls back
        to ``/home/tigergraph`` when the server does not report one.
        """
        headers = self._session_headers()
        response = self._request("GET", "/api/log", headers=headers)

        if response.status_code != 200:
            logger.debug(f"/api/log answered {response.status_code}")
            return DEFAULT_TIGERGRAPH_PATH

        try:
            data = self._json(response)
        except APIClientError as e:
            logger.warning(f"Unreadable /api/log response: {e}")
            return DEFAULT_TIGERGRAPH_PATH

        results = data.get("results") or []
        if data.get("error") or not results or not isinstance(results[0], dict):
            return DEFAULT_TIGERGRAPH_PATH

        path = str(results[0].get("path", ""))
        root = path.split("/log/")[0]
        return root or DEFAULT_TIGERGRAPH_PATH

    def backup_plan(self, backup_type: str = "ALL") -> BackupPlan:
        """Resolve the gadmin backup option and installation path.

        Raises:
            ValueError: If ``backup_type`` is not ALL, DATA or SCHEMA
        """
        backup_type = backup_type.upper()
        if backup_type not in BACKUP_OPTIONS:
            raise ValueError(f"Unknown backup type: {backup_type}")

        return BackupPlan(
            backup_type=backup_type,
            option=BACKUP_OPTIONS[backup_type],
            tigergraph_path=self.tigergraph_path(),
        )
