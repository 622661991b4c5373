from __future__ import annotations
import os
import signal
import subprocess
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from .errors import ExecutionError, ResourceError, StepTimeoutError

Args = Union[str, Sequence[str]]


def _describe(args: Args) -> str:
    return args if isinstance(args, str) else " ".join(args)


def _kill_group(proc: subprocess.Popen) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


@contextmanager
def spawned(args: Args, **popen_kw) -> Iterator[subprocess.Popen]:
    """
    Popen that is always reaped; a child still running on exit is killed.
    With start_new_session=True the whole group goes, grandchildren included.
    """
    group = bool(popen_kw.get("start_new_session")) and os.name == "posix"
    try:
        proc = subprocess.Popen(args, **popen_kw)
    except (FileNotFoundError, PermissionError) as e:
        raise ResourceError(f"cannot start `{_describe(args)}`: {e}") from e
    try:
        yield proc
    finally:
        if group:
            _kill_group(proc)
        elif proc.poll() is None:
            proc.kill()
        proc.wait()
        for stream in (proc.stdin, proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()


def run_process(
    args: Args,
    *,
    cwd: Optional[Path] = None,
    stdin: Optional[str] = None,
    timeout: Optional[float] = None,
    shell: bool = False,
    new_session: bool = False,
) -> str:
    """
    Spawn, write stdin, wait, inspect the exit status.
    stdout and stderr are merged. Returns the output; raises on non-zero exit.
    """
    if cwd is not None and not Path(cwd).is_dir():
        raise ResourceError(f"working directory does not exist: {cwd}")

    with spawned(
        args,
        cwd=str(cwd) if cwd is not None else None,
        shell=shell,
        stdin=subprocess.PIPE if stdin is not None else subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
        start_new_session=new_session,
    ) as proc:
        try:
            out, _ = proc.communicate(stdin, timeout=timeout)
        except subprocess.TimeoutExpired as e:
            raise StepTimeoutError(f"`{_describe(args)}`", timeout or 0) from e
        if proc.returncode != 0:
            raise ExecutionError(_describe(args), proc.returncode, out or "")
        return out or ""


def run_shell(command: str, *, cwd: Path, stdin: Optional[str] = None, timeout: Optional[float] = None) -> str:
    print(f"[command] $ {command}")
    return run_process(command, cwd=cwd, stdin=stdin, timeout=timeout, shell=True)


def run_argv(argv: List[str], *, cwd: Path, stdin: Optional[str] = None) -> str:
    print(f"[command] $ {' '.join(argv)}")
    return run_process(argv, cwd=cwd, stdin=stdin)
