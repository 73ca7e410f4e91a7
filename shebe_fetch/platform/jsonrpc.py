"""Newline-delimited JSON-RPC 2.0 over a child process's stdio.

The MCP stdio transport writes one JSON object per line. A reader thread
moves stdout lines into a queue so every request can time out instead of
blocking on a silent child.

Usage:
    with StdioSession([str(binary)], timeout=10.0) as session:
        match session.request("tools/list", {}):
            case Ok(result):
                print(result)
            case Err(error):
                print(error)
"""

from __future__ import annotations

import contextlib
import json
import queue
import subprocess
import threading
from dataclasses import dataclass
from types import TracebackType
from typing import IO, Any

from shebe_fetch.core.result import Err, Ok, Result
from shebe_fetch.core.structured import as_str_dict

__all__ = ["RpcError", "StdioSession"]

_EOF = object()


@dataclass(frozen=True, slots=True)
class RpcError:
    """A failed JSON-RPC exchange.

    Attributes:
        method: Method being called
        detail: What went wrong
        code: JSON-RPC error code, when the server answered with one
    """

    method: str
    detail: str
    code: int | None = None

    def __str__(self) -> str:
        code = f" [{self.code}]" if self.code is not None else ""
        return f"{self.method}{code}: {self.detail}"


def _pump(stream: IO[str], lines: queue.Queue[object]) -> None:
    for line in stream:
        lines.put(line)
    lines.put(_EOF)


class StdioSession:
    """A JSON-RPC client speaking to a child process.

    The child is killed on close; stderr is discarded.
    """

    def __init__(self, argv: list[str], *, timeout: float = 10.0) -> None:
        self._argv = argv
        self._timeout = timeout
        self._proc: subprocess.Popen[str] | None = None
        self._lines: queue.Queue[object] = queue.Queue()
        self._next_id = 1
        self._start_error: str | None = None

    def start(self) -> None:
        """Spawn the child. A spawn failure is reported by the next request."""
        try:
            self._proc = subprocess.Popen(
                self._argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                bufsize=1,
            )
        except OSError as e:
            self._start_error = str(e)
            return

        assert self._proc.stdout is not None
        reader = threading.Thread(
            target=_pump, args=(self._proc.stdout, self._lines), daemon=True
        )
        reader.start()

    def _send(self, message: dict[str, Any]) -> str | None:
        if self._proc is None or self._proc.stdin is None:
            return self._start_error or "process not started"
        try:
            self._proc.stdin.write(json.dumps(message) + "\n")
            self._proc.stdin.flush()
        except OSError as e:
            return f"write failed: {e}"
        return None

    def notify(self, method: str, params: dict[str, Any] | None = None) -> Result[None, RpcError]:
        """Send a notification (no response expected)."""
        message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
        if params is not None:
            message["params"] = params
        failure = self._send(message)
        if failure is not None:
            return Err(RpcError(method=method, detail=failure))
        return Ok(None)

    def request(self, method: str, params: dict[str, Any]) -> Result[dict[str, Any], RpcError]:
        """Send a request and wait for the response with the same id.

        Server notifications received in between are skipped.

        Returns:
            Ok with the `result` object, or Err with RpcError
        """
        request_id = self._next_id
        self._next_id += 1

        failure = self._send(
            {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}
        )
        if failure is not None:
            return Err(RpcError(method=method, detail=failure))

        while True:
            try:
                line = self._lines.get(timeout=self._timeout)
            except queue.Empty:
                return Err(RpcError(method=method, detail=f"no response after {self._timeout}s"))
            if line is _EOF:
                return Err(RpcError(method=method, detail="process closed stdout"))

            try:
                message = as_str_dict(json.loads(str(line)))
            except json.JSONDecodeError as e:
                return Err(RpcError(method=method, detail=f"invalid JSON from server: {e}"))
            if message is None or message.get("id") != request_id:
                continue

            error = as_str_dict(message.get("error"))
            if error is not None:
                code = error.get("code")
                return Err(
                    RpcError(
                        method=method,
                        detail=str(error.get("message", "unknown error")),
                        code=code if isinstance(code, int) else None,
                    )
                )

            result = as_str_dict(message.get("result"))
            if result is None:
                return Err(RpcError(method=method, detail="response has no result object"))
            return Ok(result)

    def close(self) -> None:
        """Kill the child and reap it."""
        proc = self._proc
        if proc is None:
            return
        self._proc = None
        if proc.stdin is not None:
            with contextlib.suppress(OSError):
                proc.stdin.close()
        if proc.poll() is None:
            proc.kill()
        with contextlib.suppress(subprocess.TimeoutExpired):
            proc.wait(timeout=self._timeout)

    def __enter__(self) -> StdioSession:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
