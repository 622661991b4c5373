from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from ...errors import ValidationError
from ...registry import register_directive
from ...types import CodeNode, Kind, RunnableBlock
from ..base import BaseDirective, Context
from ..parse_args import Number, ToBool, optional, parse_args


@dataclass
class StartArgs:
    cwd: Optional[str] = None
    expect: Optional[str] = None
    timeout: Optional[float] = None
    lang: str = "shell"
    hidden: bool = False
    captureOutput: bool = True


FIELDS = [
    optional("cwd"),
    optional("expect"),
    optional("timeout", Number),
    optional("lang", default="shell"),
    optional("hidden", ToBool, False),
    optional("captureOutput", ToBool, True),
]


def server_key(block: RunnableBlock) -> str:
    key = block.body.strip()
    if not key:
        raise ValidationError(f"run:{block.kind.value} needs the server command as its body")
    if "\n" in key:
        raise ValidationError(f"run:{block.kind.value} takes exactly one command, got {len(key.splitlines())}")
    return key


@register_directive
class ServerStartDirective(BaseDirective):
    """
    run:server:start expect="Serving on"
    Launches the body as a long-running process. The same command text
    identifies it for the matching run:server:stop.
    """

    KIND = Kind.SERVER_START

    def run(self, block: RunnableBlock, ctx: Context) -> Optional[CodeNode]:
        args = parse_args(block, FIELDS, StartArgs)
        key = server_key(block)
        timeout = args.timeout if args.timeout is not None else ctx.options.server_start_timeout
        if timeout <= 0:
            raise ValidationError("timeout must be positive")

        handle = ctx.session.servers.start(
            key,
            cwd=ctx.cwd(args.cwd),
            document=str(ctx.document.path),
            expect=args.expect,
            timeout=timeout,
        )
        if args.expect:
            print(f"[server] ✅ `{key}` is ready")

        if args.hidden:
            return None
        lines = [f"$ {key}"]
        if args.captureOutput:
            lines.extend(handle.banner)
        return CodeNode(lang=args.lang, value="\n".join(lines).rstrip(), position=block.position)
