from __future__ import annotations
import re
from dataclasses import dataclass
from typing import AbstractSet, List, Optional

from ..errors import ValidationError
from ..process import run_shell
from ..registry import register_directive
from ..types import CodeNode, Kind, RunnableBlock
from . import cfg as cfg_expr
from .base import BaseDirective, Context
from .parse_args import ToBool, optional, parse_args

_ANNOTATION = re.compile(r"^#\[(cfg|display)\((.*)\)\]$")


@dataclass
class CommandArgs:
    lang: str = "shell"
    hidden: bool = False
    cwd: Optional[str] = None
    captureCommand: bool = True
    captureOutput: bool = True


FIELDS = [
    optional("lang", default="shell"),
    optional("hidden", ToBool, False),
    optional("cwd"),
    optional("captureCommand", ToBool, True),
    optional("captureOutput", ToBool, True),
]


@dataclass
class Step:
    display: str
    command: Optional[str]  # None for comment lines
    enabled: bool = True


def plan(body: str, flags: AbstractSet[str]) -> List[Step]:
    """Turn the block body into steps, resolving #[cfg] and #[display] lines."""
    steps: List[Step] = []
    pending_cfg: Optional[str] = None
    pending_display: Optional[str] = None

    for raw in body.split("\n"):
        line = raw.strip()
        if not line:
            continue
        m = _ANNOTATION.match(line)
        if m:
            name, arg = m.groups()
            if name == "cfg":
                if pending_cfg is not None:
                    raise ValidationError(f"two #[cfg] annotations in a row: {line}")
                pending_cfg = arg
            else:
                if pending_display is not None:
                    raise ValidationError(f"two #[display] annotations in a row: {line}")
                pending_display = arg
            continue
        if line.startswith("#"):
            steps.append(Step(display=line, command=None))
            continue

        enabled = cfg_expr.evaluate(pending_cfg, flags) if pending_cfg is not None else True
        steps.append(Step(display=pending_display or line, command=line, enabled=enabled))
        pending_cfg = pending_display = None

    if pending_cfg is not None or pending_display is not None:
        raise ValidationError("annotation at the end of the block is not followed by a command")
    return steps


@register_directive
class CommandDirective(BaseDirective):
    """
    run:command
    Runs every line of the body as a shell command and shows the
    commands together with their real output.
    """

    KIND = Kind.COMMAND

    def run(self, block: RunnableBlock, ctx: Context) -> Optional[CodeNode]:
        args = parse_args(block, FIELDS, CommandArgs)
        steps = plan(block.body, ctx.options.cfg)
        cwd = ctx.cwd(args.cwd)

        chunks: List[str] = []
        for step in steps:
            if step.command is None:
                if args.captureCommand:
                    chunks.append(step.display)
                continue
            if not step.enabled:
                print(f"[command] skipped by cfg: {step.command}")
                continue

            output = run_shell(step.command, cwd=cwd).strip()

            lines: List[str] = []
            if args.captureCommand:
                lines.append(f"$ {step.display}")
            if args.captureOutput and output:
                lines.append(output)
            if lines:
                chunks.append("\n".join(lines))

        if args.hidden:
            return None

        return CodeNode(
            lang=args.lang,
            value="\n\n".join(chunks),
            position=block.position,
        )
