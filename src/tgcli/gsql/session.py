"""GSQL server session: version negotiation and streamed command execution.

The GSQL server speaks a small HTTP protocol of its own:

- ``POST /gsqlserver/gsql/login`` checks the client build fingerprint sent in
  a JSON ``Cookie`` header and answers with ``isClientCompatible``. Clients
  probe a fixed list of known builds until one is accepted.
- ``POST /gsqlserver/gsql/file`` runs a command and streams its output. Control
  records are embedded in the body behind the ``__GSQL__`` marker; the only
  one acted upon is ``__GSQL__COOKIES__,<json>`` which replaces the session
  cookie for subsequent requests.
"""

import base64
import logging
import re
from enum import Enum
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import List, Optional, Sequence, TextIO, Tuple

import click
import httpx
from pydantic import ValidationError

from ..config import ServerCredentials
from ..constants import (
    FILE_ENDPOINT,
    GSQL_CONTENT_LANGUAGE,
    GSQL_CONTENT_TYPE,
    GSQL_COOKIES,
    GSQL_COOKIES_DELIMITER,
    GSQL_PATH,
    GSQL_SECRET_USER,
    GSQL_SEPARATOR,
    GSQL_TIMEOUT_SECONDS,
    GSQL_USER_AGENT,
    LOGIN_ENDPOINT,
    VERSION_COMMITS,
)
from ..models import GSQLCookie, GSQLLoginResponse
from .exceptions import (
    CredentialRejectedError,
    GSQLTransportError,
    IncompatibleVersionError,
    MalformedResponseError,
    StreamReadError,
)

logger = logging.getLogger(__name__)

# "[=====     ] 50% (1/2)" as drawn by the server while loading data
PROGRESS_PATTERN = re.compile(r"\[.*?\]\s*\d+%.*?\((\d+)/(\d+)\)")

# The server's Set-Cookie value is raw JSON; keep it out of httpx's cookie jar.
_NO_COOKIES_POLICY = DefaultCookiePolicy(allowed_domains=[])


class ChunkKind(Enum):
    """Classification of one piece of streamed command output."""

    TEXT = "text"
    PROGRESS = "progress"
    COOKIE = "cookie"
    CONTROL = "control"


def classify_chunk(chunk: str) -> ChunkKind:
    """Classify a chunk of the ``file`` endpoint's response body."""
    if GSQL_SEPARATOR not in chunk:
        if PROGRESS_PATTERN.search(chunk):
            return ChunkKind.PROGRESS
        return ChunkKind.TEXT
    if GSQL_COOKIES in chunk:
        return ChunkKind.COOKIE
    return ChunkKind.CONTROL


def accept_server_cookie(
    cookie: GSQLCookie, from_graph_studio: bool = False, gshell_test: bool = True
) -> GSQLCookie:
    """Adopt a cookie issued by the server.

    The server's record replaces the local one wholesale, then the client
    re-asserts its own provenance flags on top of it.
    """
    return cookie.model_copy(
        update={
            "from_gsql_client": True,
            "from_gsql_server": True,
            "from_graph_studio": from_graph_studio,
            "gshell_test": gshell_test,
        }
    )


class GSQLSession:
    """One authenticated connection to a GSQL server.

    A session is unestablished until :meth:`login` succeeds; afterwards
    :attr:`version` holds the negotiated client version and :attr:`cookie`
    the most recent server-acknowledged session cookie.
    """

    def __init__(
        self,
        credentials: ServerCredentials,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = GSQL_TIMEOUT_SECONDS,
        out: Optional[TextIO] = None,
        version_table: Sequence[Tuple[str, str]] = VERSION_COMMITS,
    ):
        """Initialize an unestablished session.

        Args:
            credentials: Resolved server address and user credentials
            transport: Optional httpx transport (tests inject a MockTransport)
            timeout: Overall per-request timeout in seconds
            out: Stream receiving command output (defaults to stdout)
            version_table: Ordered (version, client commit) pairs to probe
        """
        self.endpoint = credentials.gsql_endpoint
        self.user = credentials.user
        self.password = credentials.password
        self.out = out
        self.version_table: List[Tuple[str, str]] = list(version_table)
        self.version: Optional[str] = None
        self.cookie = GSQLCookie()
        self.client = httpx.Client(
            timeout=timeout,
            transport=transport,
            cookies=CookieJar(policy=_NO_COOKIES_POLICY),
        )

    @property
    def is_established(self) -> bool:
        return self.version is not None

    def _url(self, endpoint: str) -> str:
        return f"{self.endpoint}{GSQL_PATH}{endpoint}"

    def _basic_token(self) -> str:
        user_pass = f"{self.user}:{self.password}"
        return base64.b64encode(user_pass.encode("utf-8")).decode("ascii")

    def _headers(self, cookie: GSQLCookie) -> dict:
        return {
            "Content-Language": GSQL_CONTENT_LANGUAGE,
            "Authorization": f"Basic {self._basic_token()}",
            "Content-Type": GSQL_CONTENT_TYPE,
            "Cookie": cookie.to_header(),
            "User-Agent": GSQL_USER_AGENT,
        }

    def _write(self, text: str) -> None:
        click.echo(text, nl=False, file=self.out)

    def _replace_cookie(self, raw: str) -> None:
        try:
            server_cookie = GSQLCookie.from_header(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable session cookie from server: {e}")
            return
        self.cookie = accept_server_cookie(server_cookie)
        logger.debug("Session cookie replaced by server")

    def _adopt_login_cookie(self, set_cookies: List[str]) -> None:
        """Adopt the first ``Set-Cookie`` value that is a GSQL JSON cookie.

        Gateways in front of the server may add ordinary cookies alongside it.
        """
        for raw in set_cookies:
            try:
                server_cookie = GSQLCookie.from_header(raw)
            except ValidationError:
                logger.debug(f"Skipping non-GSQL Set-Cookie value: {raw!r}")
                continue
            self.cookie = accept_server_cookie(server_cookie)
            logger.debug("Session cookie replaced by server")
            return

        logger.warning("Ignoring login Set-Cookie headers: no readable GSQL cookie")

    def login(self) -> str:
        """Negotiate a client version and authenticate.

        Versions are tried strictly in table order and probing stops at the
        first one the server accepts.

        Returns:
            The accepted client version

        Raises:
            CredentialRejectedError: If a compatible server rejects the user
            GSQLTransportError: If the server cannot be reached
            MalformedResponseError: If no attempt produced a readable response
            IncompatibleVersionError: If every version was rejected
        """
        malformed = 0

        for version, commit in self.version_table:
            cookie = GSQLCookie.for_login(commit)
            logger.debug(f"Trying GSQL client version {version}")

            try:
                login_response, set_cookies = self._attempt_login(cookie)
            except MalformedResponseError as e:
                malformed += 1
                logger.warning(f"Unreadable login response for version {version}: {e}")
                continue

            if not login_response.is_client_compatible:
                logger.debug(f"Server rejected client version {version}")
                continue

            if login_response.error and self.user != GSQL_SECRET_USER:
                raise CredentialRejectedError(
                    login_response.message or "Authentication failed"
                )

            self.cookie = cookie
            if set_cookies:
                self._adopt_login_cookie(set_cookies)
            self.version = version
            logger.info(f"Connected with GSQL client version {version}")

            if login_response.welcome_message:
                self._write(login_response.welcome_message.rstrip("\n") + "\n")
            return version

        if malformed and malformed == len(self.version_table):
            raise MalformedResponseError(
                "GSQL server returned no readable login response",
                details=f"{malformed} attempts",
            )
        raise IncompatibleVersionError(
            "Unable to establish compatible connection",
            details=f"none of {len(self.version_table)} client versions accepted",
        )

    def _attempt_login(
        self, cookie: GSQLCookie
    ) -> Tuple[GSQLLoginResponse, List[str]]:
        """Send one login request with ``cookie``.

        Returns:
            Parsed login response and the raw ``Set-Cookie`` values in order
        """
        try:
            response = self.client.post(
                self._url(LOGIN_ENDPOINT),
                content=self._basic_token(),
                headers=self._headers(cookie),
            )
        except httpx.TimeoutException as e:
            raise GSQLTransportError(
                "Timed out connecting to GSQL server", details=str(e)
            )
        except httpx.TransportError as e:
            raise GSQLTransportError("Cannot connect to GSQL server", details=str(e))
        except httpx.InvalidURL as e:
            raise GSQLTransportError("Invalid GSQL server address", details=str(e))

        try:
            login_response = GSQLLoginResponse.model_validate_json(response.content)
        except ValidationError:
            raise MalformedResponseError(
                f"Invalid login response (HTTP {response.status_code})",
                details=response.text[:200] if response.text else "empty body",
            )

        return login_response, response.headers.get_list("set-cookie")

    def execute_command(self, command: str) -> None:
        """Run one command and stream its output.

        Output is written as it arrives. Progress bars are passed through
        untouched so carriage-return redraws work; other text is trimmed
        and newline terminated. A cookie record replaces the session cookie
        and is not displayed.

        Raises:
            GSQLTransportError: If the request cannot be sent
            StreamReadError: If the connection fails while reading output
        """
        try:
            with self.client.stream(
                "POST",
                self._url(FILE_ENDPOINT),
                content=command.encode("utf-8"),
                headers=self._headers(self.cookie),
            ) as response:
                try:
                    for chunk in response.iter_text():
                        self._handle_chunk(chunk)
                except httpx.TransportError as e:
                    raise StreamReadError(
                        "Lost connection while reading command output", details=str(e)
                    )
        except httpx.TimeoutException as e:
            raise GSQLTransportError("Timed out sending command", details=str(e))
        except httpx.TransportError as e:
            raise GSQLTransportError("Cannot connect to GSQL server", details=str(e))

    def _handle_chunk(self, chunk: str) -> None:
        kind = classify_chunk(chunk)

        if kind is ChunkKind.PROGRESS:
            self._write(chunk)
        elif kind is ChunkKind.TEXT:
            self._write(chunk.strip() + "\n")
        elif kind is ChunkKind.COOKIE:
            _, _, payload = chunk.partition(GSQL_COOKIES_DELIMITER)
            self._replace_cookie(payload)
        else:
            logger.debug(f"Skipping GSQL control record: {chunk!r}")

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
