"""
Data models for tgcli.

Pydantic models for the local configuration file, the GSQL session cookie
and the JSON payloads returned by TigerGraph Cloud and the GSQL server.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import (
    DEFAULT_GS_PORT,
    DEFAULT_HOST,
    DEFAULT_PASSWORD,
    DEFAULT_REST_PORT,
    DEFAULT_TGCLOUD_USER,
    DEFAULT_USER,
)


class TGCloudConfig(BaseModel):
    """tgcloud.io account stored in the configuration file."""

    user: str = Field(default=DEFAULT_TGCLOUD_USER, description="tgcloud email")
    password: str = Field(default="", description="tgcloud password")

    @property
    def is_configured(self) -> bool:
        return bool(self.user) and self.user != DEFAULT_TGCLOUD_USER


class MachineConfig(BaseModel):
    """Connection settings for one TigerGraph server alias."""

    model_config = ConfigDict(populate_by_name=True)

    host: str = Field(default=DEFAULT_HOST, description="Server address with scheme")
    user: str = Field(default=DEFAULT_USER, description="TigerGraph user")
    password: str = Field(default=DEFAULT_PASSWORD, description="TigerGraph password")
    gs_port: str = Field(default=DEFAULT_GS_PORT, alias="gsPort")
    rest_port: str = Field(default=DEFAULT_REST_PORT, alias="restPort")

    @field_validator("gs_port", "rest_port", mode="before")
    @classmethod
    def _port_as_string(cls, value: Any) -> Any:
        # Hand-edited YAML yields integers for bare port numbers
        if isinstance(value, int):
            return str(value)
        return value


class AppConfig(BaseModel):
    """Top level layout of ``config.yml``."""

    tgcloud: TGCloudConfig = Field(default_factory=TGCloudConfig)
    machines: Dict[str, MachineConfig] = Field(default_factory=dict)
    default: str = Field(default="", description="Default server alias")

    @field_validator("machines", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value or {}

    @field_validator("default", mode="before")
    @classmethod
    def _default_none_as_empty(cls, value: Any) -> Any:
        return value or ""


class GSQLCookie(BaseModel):
    """Session metadata the GSQL server expects in the ``Cookie`` header.

    The server exchanges this record as raw JSON, not as RFC 6265 cookie
    pairs. The two affinity tokens are set by Azure application gateways in
    front of some deployments and are only ever echoed back.
    """

    model_config = ConfigDict(populate_by_name=True)

    client_commit: str = Field(default="", alias="clientCommit")
    from_gsql_client: bool = Field(default=False, alias="fromGsqlClient")
    from_graph_studio: bool = Field(default=False, alias="fromGraphStudio")
    gshell_test: bool = Field(default=False, alias="gShellTest")
    from_gsql_server: bool = Field(default=False, alias="fromGsqlServer")
    application_gateway_affinity: Optional[str] = Field(
        default=None, alias="ApplicationGatewayAffinity"
    )
    application_gateway_affinity_cors: Optional[str] = Field(
        default=None, alias="ApplicationGatewayAffinityCORS"
    )

    @classmethod
    def for_login(cls, client_commit: str) -> "GSQLCookie":
        """Initial cookie sent with a login attempt for one client version."""
        return cls(
            client_commit=client_commit,
            from_gsql_client=False,
            from_graph_studio=False,
            gshell_test=True,
            from_gsql_server=False,
        )

    @classmethod
    def from_header(cls, raw: str) -> "GSQLCookie":
        """Parse a cookie sent by the server as raw JSON.

        Raises:
            pydantic.ValidationError: If the value is not a JSON object of the
                expected shape
        """
        return cls.model_validate_json(raw.strip())

    def to_header(self) -> str:
        """Serialize to the compact JSON value of the ``Cookie`` header."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class GSQLLoginResponse(BaseModel):
    """Body of ``POST /gsqlserver/gsql/login``."""

    model_config = ConfigDict(populate_by_name=True)

    is_client_compatible: bool = Field(default=False, alias="isClientCompatible")
    error: bool = False
    message: str = ""
    welcome_message: str = Field(default="", alias="welcomeMessage")

    @field_validator("message", "welcome_message", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class TGCloudResponse(BaseModel):
    """Generic tigertool/tgcloud JSON envelope."""

    error: bool = False
    message: Optional[str] = None
    result: Any = None
    token: Optional[str] = None


class Machine(BaseModel):
    """A tgcloud.io solution as returned by ``GET /solution``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="", alias="ID")
    name: str = Field(default="", alias="Name")
    tag: str = Field(default="", alias="Tag")
    state: str = Field(default="", alias="State")
    created_at: str = Field(default="", alias="CreatedAt")

    def to_dict(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True)
