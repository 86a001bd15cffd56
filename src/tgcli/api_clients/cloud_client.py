"""TigerGraph Cloud API Client.

Provides tgcloud.io account login and instance lifecycle operations
(start, stop, terminate, archive, list) authenticated with the bearer
token stored in ``creds.bank``.
"""

import logging
from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..config import TokenStore
from ..constants import TGCLOUD_BASE_URL, TIGERTOOL_URL
from ..models import Machine, TGCloudResponse
from .base_client import APIClientError, AuthenticationError, BaseAPIClient

logger = logging.getLogger(__name__)

MACHINE_ACTIONS = ("start", "stop", "terminate", "archive")


class CloudAPIClient(BaseAPIClient):
    """API client for tgcloud.io operations."""

    def __init__(
        self,
        token_store: TokenStore,
        base_url: str = TGCLOUD_BASE_URL,
        auth_url: str = TIGERTOOL_URL,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        super().__init__(base_url=base_url, timeout=30.0, transport=transport)
        self.auth_url = auth_url.rstrip("/")
        self.token_store = token_store

    def login(self, email: str, password: str) -> str:
        """Log into tgcloud.io and store the bearer token.

        Args:
            email: tgcloud account email
            password: tgcloud account password

        Returns:
            The bearer token (without the ``Bearer`` prefix)

        Raises:
            AuthenticationError: If the credentials are rejected
            NetworkError: If tigertool cannot be reached
        """
        response = self._request(
            "POST",
            "/login",
            base_url=self.auth_url,
            json={"username": email, "password": password},
        )

        if response.status_code != 200:
            raise AuthenticationError(
                f"Error logging in: {response.text}", status_code=response.status_code
            )

        try:
            login_response = TGCloudResponse.model_validate(self._json(response))
        except ValidationError as e:
            raise APIClientError(f"Error parsing response: {e}")

        token_parts = (login_response.token or "").split(" ")
        if len(token_parts) < 2 or not token_parts[1]:
            raise AuthenticationError(
                login_response.message or "No bearer token in login response"
            )

        bearer_token = token_parts[1]
        self.token_store.write(bearer_token)
        logger.debug("Bearer token saved")
        return bearer_token

    def _auth_headers(self) -> Dict[str, str]:
        token = self.token_store.read()
        if not token:
            raise AuthenticationError("bearer token not found, please login first")
        return {"Authorization": f"Bearer {token}", "Accept": "application/json"}

    def list_machines(self, active_only: bool = True) -> List[Machine]:
        """List tgcloud solutions.

        Args:
            active_only: Hide terminated machines

        Raises:
            AuthenticationError: If the token is missing or expired
        """
        response = self._request("GET", "/solution", headers=self._auth_headers())

        if response.status_code == 401:
            raise AuthenticationError(
                "You should re-login using 'tg cloud login'", status_code=401
            )
        if response.status_code != 200:
            raise APIClientError(
                f"Failed to list machines: {response.text}",
                status_code=response.status_code,
            )

        data = self._json(response)
        if data.get("Error"):
            raise APIClientError(data.get("Message") or "tgcloud returned an error")

        machines = [Machine.model_validate(item) for item in data.get("Result") or []]
        if active_only:
            machines = [m for m in machines if m.state != "terminated"]
        return machines

    def machine_operation(self, action: str, machine_id: str) -> str:
        """Run a lifecycle action on a machine.

        Returns:
            tgcloud's response message

        Raises:
            ValueError: If ``action`` is unknown
            AuthenticationError: If the token is missing or expired
            APIClientError: If tgcloud rejects the operation
        """
        if action not in MACHINE_ACTIONS:
            raise ValueError(f"Unknown machine action: {action}")

        headers = self._auth_headers()
        if action == "terminate":
            response = self._request(
                "DELETE", f"/solution/destroy/{machine_id}", headers=headers
            )
        else:
            response = self._request(
                "POST", f"/solution/{action}/{machine_id}", headers=headers
            )

        if response.status_code == 401:
            raise AuthenticationError("Please re-login", status_code=401)
        if response.status_code != 200:
            raise APIClientError(response.text, status_code=response.status_code)

        data = self._json(response)
        return str(data.get("Message", ""))

    def start(self, machine_id: str) -> str:
        return self.machine_operation("start", machine_id)

    def stop(self, machine_id: str) -> str:
        return self.machine_operation("stop", machine_id)

    def terminate(self, machine_id: str) -> str:
        return self.machine_operation("terminate", machine_id)

    def archive(self, machine_id: str) -> str:
        return self.machine_operation("archive", machine_id)
