"""
Byte-stream transports for tool-protocol sessions.

- ``SubprocessTransport``: spawns the tool server and talks over stdin/stdout
- ``TcpTransport``: connects to ``tcp://host:port``

Both expose the same minimal interface so a session never knows which one it
is using.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable
from urllib.parse import urlsplit

from action_relay.core.errors import ProtocolConnectionError, UnsupportedTransportError
from action_relay.core.models import CapabilitySource, TransportKind

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


@runtime_checkable
class ByteStreamTransport(Protocol):
    """Minimal duplex byte stream."""

    async def open(self) -> None: ...

    async def write(self, data: bytes) -> None: ...

    async def read(self) -> bytes:
        """Return the next chunk, or ``b""`` at end of stream."""
        ...

    async def close(self) -> None: ...


class SubprocessTransport:
    """Talk to a tool server over the standard streams of a child process."""

    def __init__(self, argv: Sequence[str], env: Optional[Mapping[str, str]] = None, *, kill_timeout: float = 5.0):
        if not argv:
            raise ValueError("argv must not be empty")
        self._argv = list(argv)
        self._env = dict(env or {})
        self._kill_timeout = kill_timeout
        self._process: Optional[asyncio.subprocess.Process] = None
        self._stderr_task: Optional[asyncio.Task[None]] = None

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    async def open(self) -> None:
        logger.debug("Spawning tool server: %s", self._argv[0])
        self._process = await asyncio.create_subprocess_exec(
            *self._argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env={**os.environ, **self._env},
        )
        self._stderr_task = asyncio.create_task(self._drain_stderr())

    async def _drain_stderr(self) -> None:
        stderr = self._process.stderr if self._process is not None else None
        if stderr is None:
            return
        while True:
            line = await stderr.readline()
            if not line:
                return
            logger.debug("[%s stderr] %s", self._argv[0], line.decode("utf-8", "replace").rstrip())

    async def write(self, data: bytes) -> None:
        if self._process is None or self._process.stdin is None:
            raise ConnectionError("process not started")
        self._process.stdin.write(data)
        await self._process.stdin.drain()

    async def read(self) -> bytes:
        if self._process is None or self._process.stdout is None:
            return b""
        return await self._process.stdout.read(READ_CHUNK_SIZE)

    async def close(self) -> None:
        process, self._process = self._process, None
        if process is None:
            return
        if process.stdin is not None and not process.stdin.is_closing():
            process.stdin.close()
        if process.returncode is None:
            try:
                process.terminate()
                await asyncio.wait_for(process.wait(), timeout=self._kill_timeout)
            except ProcessLookupError:
                pass
            except asyncio.TimeoutError:
                logger.warning("Tool server %s did not exit; killing", self._argv[0])
                process.kill()
                await process.wait()
        if self._stderr_task is not None:
            self._stderr_task.cancel()
            self._stderr_task = None


class TcpTransport:
    """Talk to a tool server over a plain TCP connection."""

    def __init__(self, host: str, port: int):
        self._host = host
        self._port = port
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    async def open(self) -> None:
        self._reader, self._writer = await asyncio.open_connection(self._host, self._port)

    async def write(self, data: bytes) -> None:
        if self._writer is None:
            raise ConnectionError("connection not open")
        self._writer.write(data)
        await self._writer.drain()

    async def read(self) -> bytes:
        if self._reader is None:
            return b""
        return await self._reader.read(READ_CHUNK_SIZE)

    async def close(self) -> None:
        writer, self._writer = self._writer, None
        self._reader = None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            pass


def parse_network_address(address: str) -> tuple[str, int]:
    parts = urlsplit(address if "://" in address else f"tcp://{address}")
    if parts.scheme != "tcp" or not parts.hostname or parts.port is None:
        raise ValueError(f"expected tcp://host:port, got '{address}'")
    return parts.hostname, parts.port


def build_transport(source: CapabilitySource, env: Optional[Mapping[str, Any]] = None) -> ByteStreamTransport:
    """Create the transport described by a protocol source.

    Args:
        source: A protocol-process or protocol-network source
        env: Extra environment for spawned servers (credentials)
    """
    if source.transport is TransportKind.protocol_process:
        argv = shlex.split(source.base_address)
        if not argv:
            raise ProtocolConnectionError(source.id, "no command configured")
        merged = {**source.protocol_env, **{k: str(v) for k, v in (env or {}).items()}}
        return SubprocessTransport(argv, merged)
    if source.transport is TransportKind.protocol_network:
        try:
            host, port = parse_network_address(source.base_address)
        except ValueError as e:
            raise ProtocolConnectionError(source.id, str(e)) from e
        return TcpTransport(host, port)
    raise UnsupportedTransportError(source.transport.value, "protocol sessions")
