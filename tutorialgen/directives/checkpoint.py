from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from ..errors import ValidationError
from ..process import run_argv, run_shell
from ..registry import register_directive
from ..types import Kind, RunnableBlock
from .base import BaseDirective, Context
from .parse_args import optional, parse_args


@dataclass
class CheckpointArgs:
    cwd: Optional[str] = None


FIELDS = [optional("cwd")]


@register_directive
class CheckpointDirective(BaseDirective):
    """
    run:checkpoint cwd=super-rentals
    Runs the configured checks (tests, lint) and commits everything in
    the scratch project with the block body as the commit message.
    """

    KIND = Kind.CHECKPOINT

    def run(self, block: RunnableBlock, ctx: Context) -> None:
        args = parse_args(block, FIELDS, CheckpointArgs)
        message = block.body.strip()
        if not message:
            raise ValidationError("run:checkpoint needs a commit message as its body")

        cwd = ctx.cwd(args.cwd)
        for command in ctx.options.checkpoint_commands:
            run_shell(command, cwd=cwd)

        run_argv(["git", "add", "--all"], cwd=cwd)
        run_argv(["git", "commit", "--allow-empty", "--file", "-"], cwd=cwd, stdin=message + "\n")
        print(f"[checkpoint] ✅ {message.splitlines()[0]}")
        return None
