from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from ...errors import PreconditionError
from ...registry import register_directive
from ...types import CodeNode, Kind, RunnableBlock
from ...utils import write_text
from ..base import BaseDirective, Context
from ..parse_args import ToBool, optional, parse_args, required
from .common import filename_meta, lang_for, target_path


@dataclass
class CreateArgs:
    filename: str
    cwd: Optional[str] = None
    lang: Optional[str] = None
    hidden: bool = False
    overwrite: bool = False


FIELDS = [
    required("filename"),
    optional("cwd"),
    optional("lang"),
    optional("hidden", ToBool, False),
    optional("overwrite", ToBool, False),
]


@register_directive
class FileCreateDirective(BaseDirective):
    KIND = Kind.FILE_CREATE

    def run(self, block: RunnableBlock, ctx: Context) -> Optional[CodeNode]:
        args = parse_args(block, FIELDS, CreateArgs)
        path = target_path(ctx.cwd(args.cwd), args.filename)

        if path.exists() and not args.overwrite:
            raise PreconditionError(f"{args.filename} already exists (pass overwrite=true to replace it)")

        content = block.body if block.body.endswith("\n") else block.body + "\n"
        write_text(path, content)
        print(f"[file] ✅ created {args.filename}")

        if args.hidden:
            return None
        return CodeNode(
            lang=lang_for(args.filename, args.lang),
            meta=filename_meta(args.filename),
            value=block.body.rstrip("\n"),
            position=block.position,
        )
