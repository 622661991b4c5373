from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from ...errors import PreconditionError
from ...registry import register_directive
from ...types import CodeNode, Kind, RunnableBlock
from ...utils import read_text
from ..base import BaseDirective, Context
from ..parse_args import optional, parse_args, required
from .common import filename_meta, lang_for, target_path


@dataclass
class ShowArgs:
    filename: str
    cwd: Optional[str] = None
    lang: Optional[str] = None


FIELDS = [
    required("filename"),
    optional("cwd"),
    optional("lang"),
]


@register_directive
class FileShowDirective(BaseDirective):
    KIND = Kind.FILE_SHOW

    def run(self, block: RunnableBlock, ctx: Context) -> CodeNode:
        args = parse_args(block, FIELDS, ShowArgs)
        path = target_path(ctx.cwd(args.cwd), args.filename)
        if not path.is_file():
            raise PreconditionError(f"cannot show {args.filename}: no such file")

        return CodeNode(
            lang=lang_for(args.filename, args.lang),
            meta=filename_meta(args.filename),
            value=read_text(path).rstrip("\n"),
            position=block.position,
        )
