from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from ...errors import ValidationError
from ...registry import register_directive
from ...types import Kind, RunnableBlock
from ..base import BaseDirective, Context
from ..parse_args import Number, optional, parse_args
from .start import server_key


@dataclass
class StopArgs:
    cwd: Optional[str] = None
    timeout: Optional[float] = None


FIELDS = [
    optional("cwd"),
    optional("timeout", Number),
]


@register_directive
class ServerStopDirective(BaseDirective):
    KIND = Kind.SERVER_STOP

    def run(self, block: RunnableBlock, ctx: Context) -> None:
        args = parse_args(block, FIELDS, StopArgs)
        grace = args.timeout if args.timeout is not None else ctx.options.server_stop_grace
        if grace <= 0:
            raise ValidationError("timeout must be positive")
        ctx.session.servers.stop(server_key(block), grace=grace)
        return None
