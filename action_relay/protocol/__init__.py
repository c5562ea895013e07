"""Tool-protocol (MCP) sessions over newline-delimited JSON-RPC."""

from .framing import MessageFramer, encode_message
from .manager import ProtocolSessionManager
from .results import ParsedToolResult, parse_tool_result
from .session import ProtocolSession
from .transport import ByteStreamTransport, SubprocessTransport, TcpTransport, build_transport

__all__ = [
    "ByteStreamTransport",
    "MessageFramer",
    "ParsedToolResult",
    "ProtocolSession",
    "ProtocolSessionManager",
    "SubprocessTransport",
    "TcpTransport",
    "build_transport",
    "encode_message",
    "parse_tool_result",
]
