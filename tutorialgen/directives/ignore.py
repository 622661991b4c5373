from ..registry import register_directive
from ..types import Kind, RunnableBlock
from .base import BaseDirective, Context


@register_directive
class IgnoreDirective(BaseDirective):
    """run:ignore drops the block from the output without running it."""

    KIND = Kind.IGNORE

    def run(self, block: RunnableBlock, ctx: Context) -> None:
        return None
