"""
Shared pytest fixtures for tgcli tests.

Provides isolated configuration directories, a reset exception logger and
helpers for faking TigerGraph HTTP servers with httpx.MockTransport.
"""

import json
from pathlib import Path
from typing import Callable, Iterable, Iterator, List

import httpx
import pytest

from tgcli.config import ServerCredentials
from tgcli.utils.exception_logger import ExceptionLogger


class ChunkedStream(httpx.SyncByteStream):
    """Response body delivered as separate reads, like a flushing server."""

    def __init__(self, chunks: Iterable[bytes], fail_after: bool = False):
        self.chunks = list(chunks)
        self.fail_after = fail_after

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self.chunks:
            yield chunk
        if self.fail_after:
            raise httpx.ReadError("connection reset by peer")


@pytest.fixture(autouse=True)
def reset_exception_logger():
    """Give every test a fresh ExceptionLogger singleton."""
    ExceptionLogger._instance = None
    yield
    ExceptionLogger._instance = None


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Empty tgcli configuration directory."""
    path = tmp_path / ".tgcli"
    path.mkdir()
    return path


@pytest.fixture
def server_credentials() -> ServerCredentials:
    return ServerCredentials(
        host="http://tg.example.com", user="tigergraph", password="secret"
    )


@pytest.fixture
def chunked_stream() -> Callable[..., ChunkedStream]:
    return ChunkedStream


@pytest.fixture
def login_reply() -> Callable[..., httpx.Response]:
    """Build a GSQL login response."""

    def _reply(
        compatible: bool,
        error: bool = False,
        message: str = "",
        welcome: str = "",
        set_cookie: str = "",
    ) -> httpx.Response:
        headers = {"Set-Cookie": set_cookie} if set_cookie else {}
        body = {
            "isClientCompatible": compatible,
            "error": error,
            "message": message,
            "welcomeMessage": welcome,
        }
        return httpx.Response(200, content=json.dumps(body), headers=headers)

    return _reply


@pytest.fixture
def recorded_requests() -> List[httpx.Request]:
    return []
