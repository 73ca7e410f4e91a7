"""MCP handshake probe for an acquired binary.

Spawns the server, performs `initialize` and can list its tools. Used by
`shebe-fetch verify` and the live release tests; the host runtime does
its own process management.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from shebe_fetch import __version__
from shebe_fetch.core.result import Err, Ok, Result
from shebe_fetch.core.structured import as_obj_list, as_str_dict, get_str, get_table
from shebe_fetch.platform.jsonrpc import RpcError, StdioSession

__all__ = ["EXPECTED_TOOLS", "McpProbe", "PROTOCOL_VERSION", "ServerInfo"]

PROTOCOL_VERSION = "2024-11-05"

EXPECTED_TOOLS = (
    "index_repository",
    "search_code",
    "find_references",
    "show_shebe_config",
    "get_server_info",
)


@dataclass(frozen=True, slots=True)
class ServerInfo:
    """What the server said about itself in the initialize response."""

    name: str | None
    version: str | None
    protocol_version: str | None


class McpProbe:
    """Short-lived MCP client.

    Usage:
        with McpProbe(binary) as probe:
            info = probe.initialize()
            tools = probe.list_tools()
    """

    def __init__(
        self,
        binary: Path,
        *,
        timeout: float = 10.0,
        client_name: str = "shebe-fetch",
        client_version: str = __version__,
    ) -> None:
        self._session = StdioSession([str(binary)], timeout=timeout)
        self._client_name = client_name
        self._client_version = client_version

    def initialize(self) -> Result[ServerInfo, RpcError]:
        """Run the initialize handshake and send `notifications/initialized`."""
        result = self._session.request(
            "initialize",
            {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": self._client_name, "version": self._client_version},
            },
        )
        if isinstance(result, Err):
            return result

        notified = self._session.notify("notifications/initialized")
        if isinstance(notified, Err):
            return notified

        server = get_table(result.value, "serverInfo") or {}
        return Ok(
            ServerInfo(
                name=get_str(server, "name"),
                version=get_str(server, "version"),
                protocol_version=get_str(result.value, "protocolVersion"),
            )
        )

    def list_tools(self) -> Result[list[str], RpcError]:
        """Names of the tools the server exposes."""
        result = self._session.request("tools/list", {})
        if isinstance(result, Err):
            return result

        tools = as_obj_list(result.value.get("tools"))
        if tools is None:
            return Err(RpcError(method="tools/list", detail="result.tools is not an array"))

        names: list[str] = []
        for tool in tools:
            entry = as_str_dict(tool)
            name = get_str(entry, "name") if entry is not None else None
            if name is not None:
                names.append(name)
        return Ok(names)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> McpProbe:
        self._session.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
