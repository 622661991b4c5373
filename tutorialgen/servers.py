from __future__ import annotations
import os
import queue
import signal
import subprocess
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Deque, Dict, List, Optional

from .errors import ExecutionError, PreconditionError, ResourceError, StepTimeoutError

_EOF = None

# lines of server output kept for error messages
OUTPUT_TAIL = 200


@dataclass
class ServerHandle:
    key: str
    process: subprocess.Popen
    document: str
    output: Deque[str] = field(default_factory=lambda: deque(maxlen=OUTPUT_TAIL))
    banner: List[str] = field(default_factory=list)  # lines printed before it was ready
    _waiting: Optional["queue.Queue[Optional[str]]"] = field(default=None, repr=False)
    _reader: Optional[threading.Thread] = field(default=None, repr=False)

    def start_reader(self, watch: bool = False) -> None:
        """Drain the output pipe in the background. `watch` queues lines for wait_for."""
        if watch:
            self._waiting = queue.Queue()
        self._reader = threading.Thread(target=self._pump, daemon=True, name=f"server-output:{self.key}")
        self._reader.start()

    def _pump(self) -> None:
        stream = self.process.stdout
        try:
            for raw in iter(stream.readline, ""):
                line = raw.rstrip("\r\n")
                self.output.append(line)
                waiting = self._waiting
                if waiting is not None:
                    waiting.put(line)
        finally:
            stream.close()
            waiting = self._waiting
            if waiting is not None:
                waiting.put(_EOF)

    def wait_for(self, expect: str, timeout: float) -> List[str]:
        """Block until a line containing `expect` shows up; returns the lines seen."""
        waiting = self._waiting
        if waiting is None:
            raise RuntimeError(f"server `{self.key}` is not being watched")
        seen: List[str] = []
        deadline = time.monotonic() + timeout
        try:
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise StepTimeoutError(f"server `{self.key}` (waiting for {expect!r})", timeout)
                try:
                    line = waiting.get(timeout=remaining)
                except queue.Empty:
                    continue
                if line is _EOF:
                    code = self.process.wait()
                    raise ExecutionError(self.key, code, "\n".join(self.output))
                seen.append(line)
                print(f"[server] {line}")
                if expect in line:
                    return seen
        finally:
            # from here on the reader only keeps the tail
            self._waiting = None

    def _signal(self, sig: int) -> None:
        try:
            if os.name == "posix":
                # started with start_new_session, so the group id is the pid
                os.killpg(self.process.pid, sig)
            else:
                self.process.send_signal(sig)
        except ProcessLookupError:
            pass

    def terminate(self, grace: float) -> int:
        if self.process.poll() is None:
            self._signal(signal.SIGTERM)
            try:
                self.process.wait(timeout=grace)
            except subprocess.TimeoutExpired:
                print(f"[server] ⚠️ `{self.key}` ignored SIGTERM for {grace:g}s, killing")
                self._signal(getattr(signal, "SIGKILL", signal.SIGTERM))
                self.process.wait()
        if self._reader is not None:
            self._reader.join(timeout=max(grace, 1.0))
        return self.process.returncode


class ServerRegistry:
    """Running servers keyed by the command that started them."""

    def __init__(self) -> None:
        self._servers: Dict[str, ServerHandle] = {}

    def __len__(self) -> int:
        return len(self._servers)

    def __contains__(self, key: str) -> bool:
        return key in self._servers

    def keys(self, document: Optional[str] = None) -> List[str]:
        return [k for k, h in self._servers.items() if document is None or h.document == document]

    def start(
        self,
        key: str,
        *,
        cwd: Path,
        document: str,
        expect: Optional[str] = None,
        timeout: float = 60.0,
    ) -> ServerHandle:
        if key in self._servers:
            raise PreconditionError(f"server `{key}` is already running")
        if not Path(cwd).is_dir():
            raise ResourceError(f"working directory does not exist: {cwd}")

        print(f"[server] $ {key}")
        process = subprocess.Popen(
            key,
            shell=True,
            cwd=str(cwd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            start_new_session=True,
        )
        handle = ServerHandle(key=key, process=process, document=document)
        handle.start_reader(watch=bool(expect))

        if expect:
            try:
                handle.banner = handle.wait_for(expect, timeout)
            except BaseException:
                handle.terminate(grace=1.0)
                raise
        self._servers[key] = handle
        return handle

    def stop(self, key: str, *, grace: float = 10.0) -> int:
        handle = self._servers.pop(key, None)
        if handle is None:
            raise PreconditionError(f"server `{key}` is not running")
        code = handle.terminate(grace)
        print(f"[server] stopped `{key}` (exit {code})")
        return code

    def kill_all(self, keys: Optional[List[str]] = None, *, grace: float = 5.0) -> List[str]:
        victims = list(self._servers) if keys is None else [k for k in keys if k in self._servers]
        for key in victims:
            self._servers.pop(key).terminate(grace)
        return victims


class Session:
    """
    State shared by every document of one run. Use as a context manager:
    servers still running at the end are killed and reported.
    """

    def __init__(self) -> None:
        self.servers = ServerRegistry()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close(raise_on_leak=exc_type is None)

    def close(self, *, raise_on_leak: bool = True) -> None:
        orphans = self.servers.kill_all()
        if orphans:
            print(f"[server] ❌ killed orphaned servers: {', '.join(orphans)}")
            if raise_on_leak:
                raise PreconditionError(f"servers still running at end of run: {', '.join(orphans)}")
