from __future__ import annotations
import shutil
from dataclasses import dataclass
from typing import Optional

from ...errors import PreconditionError
from ...registry import register_directive
from ...types import Kind, RunnableBlock
from ..base import BaseDirective, Context
from ..parse_args import optional, parse_args, required
from .common import target_path


@dataclass
class CopyArgs:
    src: str
    filename: str
    cwd: Optional[str] = None


FIELDS = [
    required("src"),
    required("filename"),
    optional("cwd"),
]


@register_directive
class FileCopyDirective(BaseDirective):
    """run:file:copy src=<path under the tutorial root> filename=<path under cwd>"""

    KIND = Kind.FILE_COPY

    def run(self, block: RunnableBlock, ctx: Context) -> None:
        args = parse_args(block, FIELDS, CopyArgs)
        src = target_path(ctx.options.root, args.src)
        if not src.is_file():
            raise PreconditionError(f"{args.src} does not exist in {ctx.options.root}")

        dest = target_path(ctx.cwd(args.cwd), args.filename)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src, dest)
        print(f"[file] copied {args.src} -> {args.filename}")
        return None
