"""
Action executor.

Runs one tool invocation against its target: HTTP sources through a shared
``httpx.AsyncClient``, protocol sources through the session manager. Ordinary
failures (bad credentials, network errors, non-success statuses, protocol
errors) never propagate; they come back as an ExecutionResult with
``error_message`` set.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Mapping, Optional

import httpx

from action_relay.core.errors import ActionRelayError, HttpError, UnsupportedTransportError
from action_relay.core.models import BodyEncoding, CapabilitySource, ExecutionResult, Tool
from action_relay.protocol.manager import ProtocolSessionManager
from action_relay.protocol.results import parse_tool_result, summarize_arguments
from action_relay.request_builder import build_auth_headers, build_request, build_url, clean_arguments, encode_form_body

from .formatting import format_tool_result

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class ActionExecutor:
    """Execute catalog tools against HTTP and tool-protocol sources."""

    def __init__(
        self,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        protocol_sessions: Optional[ProtocolSessionManager] = None,
        timeout: float = 30.0,
        max_summary_chars: int = 500,
        max_error_chars: int = 2048,
    ) -> None:
        self._client = http_client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self._owns_client = http_client is None
        self._protocol_sessions = protocol_sessions
        self._max_summary_chars = max_summary_chars
        self._max_error_chars = max_error_chars

    @property
    def protocol_sessions(self) -> Optional[ProtocolSessionManager]:
        return self._protocol_sessions

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def target_url(self, tool: Tool, source: CapabilitySource, arguments: Mapping[str, Any]) -> str:
        """The URL recorded for an invocation, known before it runs."""
        if tool.is_protocol_tool or source.transport.is_protocol:
            return f"mcp://{source.name}/{tool.protocol_tool_name or tool.path}"
        return build_url(source.base_address, tool.path, arguments, tool.parameters)

    async def execute(
        self,
        tool: Tool,
        source: CapabilitySource,
        arguments: Mapping[str, Any],
        credentials: Optional[Mapping[str, Any]] = None,
        *,
        passthrough_token: Optional[str] = None,
    ) -> ExecutionResult:
        """Run ``tool`` with ``arguments`` on behalf of the credential holder.

        Args:
            tool: Catalog tool to invoke
            source: The tool's capability source
            arguments: Concrete argument values
            credentials: Credential blob for the acting principal
            passthrough_token: The principal's own token for passthrough sources

        Returns:
            The execution result; never raises for target-side failures
        """
        logger.debug("Executing %s with argument keys %s", tool.operation_key, summarize_arguments(arguments))
        if tool.is_protocol_tool or source.transport.is_protocol:
            result = await self._execute_protocol(tool, source, arguments, credentials)
        else:
            result = await self._execute_http(tool, source, arguments, credentials, passthrough_token)
        summary = format_tool_result(
            result, max_summary_chars=self._max_summary_chars, max_error_chars=self._max_error_chars
        )
        if result.error_message:
            logger.info("Tool %s failed in %dms: %s", tool.operation_key, result.duration_ms, result.error_message)
        else:
            logger.info("Tool %s returned %s in %dms", tool.operation_key, result.status, result.duration_ms)
        return result.model_copy(update={"summary": summary})

    async def _execute_http(
        self,
        tool: Tool,
        source: CapabilitySource,
        arguments: Mapping[str, Any],
        credentials: Optional[Mapping[str, Any]],
        passthrough_token: Optional[str],
    ) -> ExecutionResult:
        start = time.monotonic()
        url = self.target_url(tool, source, arguments)
        try:
            auth_headers = build_auth_headers(source, credentials, passthrough_token=passthrough_token)
            built = build_request(
                source.base_address,
                tool,
                arguments,
                auth_headers=auth_headers,
                body_encoding=source.body_encoding,
            )
            request_kwargs: Dict[str, Any] = {"headers": built.headers}
            if built.body is not None:
                if source.body_encoding is BodyEncoding.form:
                    request_kwargs["content"] = encode_form_body(built.body)
                else:
                    request_kwargs["json"] = built.body

            response = await self._client.request(built.method, built.url, **request_kwargs)
        except ActionRelayError as e:
            logger.warning("Tool %s not sent: %s", tool.operation_key, e)
            return ExecutionResult(url=url, status=0, body=None, duration_ms=_elapsed_ms(start), error_message=str(e))
        except httpx.HTTPError as e:
            logger.warning("HTTP call for %s failed: %s", tool.operation_key, e)
            message = str(e) or type(e).__name__
            return ExecutionResult(url=url, status=0, body=None, duration_ms=_elapsed_ms(start), error_message=message)
        except Exception as e:
            logger.error("Unexpected failure executing %s", tool.operation_key, exc_info=True)
            message = str(e) or type(e).__name__
            return ExecutionResult(url=url, status=0, body=None, duration_ms=_elapsed_ms(start), error_message=message)

        return ExecutionResult(
            url=url,
            status=response.status_code,
            body=self._decode_body(response),
            duration_ms=_elapsed_ms(start),
            error_message=None if response.is_success else str(HttpError(response.status_code)),
        )

    def _decode_body(self, response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            try:
                return response.json()
            except ValueError:
                logger.debug("Response declared JSON but did not decode")
        return {"text": response.text}

    async def _execute_protocol(
        self,
        tool: Tool,
        source: CapabilitySource,
        arguments: Mapping[str, Any],
        credentials: Optional[Mapping[str, Any]],
    ) -> ExecutionResult:
        start = time.monotonic()
        url = self.target_url(tool, source, arguments)
        name = tool.protocol_tool_name or tool.path
        env = credentials.get("env_vars") if credentials else None
        try:
            if self._protocol_sessions is None:
                raise UnsupportedTransportError(source.transport.value, "execution without a session manager")
            raw = await self._protocol_sessions.call_tool(source, name, clean_arguments(arguments), env=env)
        except ActionRelayError as e:
            logger.warning("Protocol call %s on %s failed: %s", name, source.name, e)
            return ExecutionResult(url=url, status=0, body=None, duration_ms=_elapsed_ms(start), error_message=str(e))
        except Exception as e:
            logger.error("Unexpected failure calling protocol tool %s", name, exc_info=True)
            message = str(e) or type(e).__name__
            return ExecutionResult(url=url, status=0, body=None, duration_ms=_elapsed_ms(start), error_message=message)

        parsed = parse_tool_result(raw)
        return ExecutionResult(
            url=url,
            status=500 if parsed.is_error else 200,
            body=parsed.body,
            duration_ms=_elapsed_ms(start),
            error_message=(parsed.text or "Tool reported an error") if parsed.is_error else None,
        )
