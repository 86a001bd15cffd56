"""Interactive GSQL shell support.

Version negotiation, command streaming and the read-eval loop used by
``tg server gsql``.
"""

from .exceptions import (
    GSQLError,
    GSQLTransportError,
    MalformedResponseError,
    IncompatibleVersionError,
    CredentialRejectedError,
    StreamReadError,
)
from .session import GSQLSession, ChunkKind, classify_chunk, accept_server_cookie
from .shell import GSQLShell

__all__ = [
    "GSQLError",
    "GSQLTransportError",
    "MalformedResponseError",
    "IncompatibleVersionError",
    "CredentialRejectedError",
    "StreamReadError",
    "GSQLSession",
    "ChunkKind",
    "classify_chunk",
    "accept_server_cookie",
    "GSQLShell",
]
