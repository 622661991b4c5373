from ..registry import register_directive
from ..types import Kind, RunnableBlock
from .base import BaseDirective, Context


@register_directive
class PauseDirective(BaseDirective):
    """
    run:pause
    Stops the build so the author can poke at the scratch project.
    The body is printed as a reminder. Never pauses when cfg has `ci`.
    """

    KIND = Kind.PAUSE

    def run(self, block: RunnableBlock, ctx: Context) -> None:
        if "ci" in ctx.options.cfg:
            print(f"[pause] skipped (ci) at line {block.position.line}")
            return None
        if block.body.strip():
            print(block.body.rstrip())
        input(f"[pause] {ctx.document.basename}:{block.position.line} - press Enter to continue...")
        return None
