from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from ...errors import PreconditionError, ValidationError
from ...registry import register_directive
from ...types import CodeNode, Kind, RunnableBlock
from ...utils import read_text, write_text
from ..base import BaseDirective, Context
from ..parse_args import ToBool, optional, parse_args
from .common import filename_meta, lang_for, target_path
from .diff import apply_patch, diff_markers, parse_patch


@dataclass
class PatchArgs:
    filename: Optional[str] = None
    cwd: Optional[str] = None
    lang: Optional[str] = None
    hidden: bool = False


FIELDS = [
    optional("filename"),
    optional("cwd"),
    optional("lang"),
    optional("hidden", ToBool, False),
]


@register_directive
class FilePatchDirective(BaseDirective):
    """
    run:file:patch
    Applies the unified diff in the body to one file and shows the
    patched file with the changed lines marked in data-diff.
    """

    KIND = Kind.FILE_PATCH

    def run(self, block: RunnableBlock, ctx: Context) -> Optional[CodeNode]:
        args = parse_args(block, FIELDS, PatchArgs)
        patch = parse_patch(block.body)

        filename = args.filename or patch.path
        if not filename:
            raise ValidationError("run:file:patch needs filename= or a diff with ---/+++ headers")
        path = target_path(ctx.cwd(args.cwd), filename)

        if patch.creates and path.exists():
            raise PreconditionError(f"cannot patch {filename}: the diff creates it but it already exists")
        if path.is_file():
            original = read_text(path)
        elif patch.creates:
            original = ""
        else:
            raise PreconditionError(f"cannot patch {filename}: no such file")

        # nothing is written unless every hunk applies
        new_text, display = apply_patch(original, patch)
        write_text(path, new_text)
        print(f"[patch] ✅ {filename} ({len(patch.hunks)} hunk(s))")

        if args.hidden:
            return None
        return CodeNode(
            lang=lang_for(filename, args.lang),
            meta=filename_meta(filename, diff_markers(display)),
            value="\n".join(text for _, text in display),
            position=block.position,
        )
