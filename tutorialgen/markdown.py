"""
Just enough markdown: find fenced code blocks with markdown-it-py and splice
rendered replacements back into the original source by line range. Text
outside runnable blocks is passed through untouched.
"""
from __future__ import annotations
import re
from typing import List, Optional, Sequence, Tuple

from markdown_it import MarkdownIt

from .errors import ValidationError
from .types import CodeNode, HtmlNode, ImageNode, Kind, Node, Position, RunnableBlock

RUN_PREFIX = "run:"

_md = MarkdownIt("commonmark")


def _split_tag(info: str) -> Tuple[str, str]:
    parts = info.split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1].strip() if len(parts) > 1 else ""


def find_runnable_blocks(source: str) -> List[RunnableBlock]:
    blocks: List[RunnableBlock] = []
    for token in _md.parse(source):
        if token.type != "fence" or not token.info.strip().startswith(RUN_PREFIX):
            continue
        start, end = token.map
        position = Position(start, end)
        tag, meta = _split_tag(token.info)
        name = tag[len(RUN_PREFIX):]
        try:
            kind = Kind(name)
        except ValueError:
            known = ", ".join(RUN_PREFIX + k.value for k in Kind)
            raise ValidationError(f"line {position.line}: unknown directive {tag!r} (known: {known})") from None
        blocks.append(RunnableBlock(kind=kind, info=token.info.strip(), meta=meta, body=token.content, position=position))
    return blocks


def _fence_for(value: str) -> str:
    longest = max((len(m) for m in re.findall(r"`+", value)), default=0)
    return "`" * max(3, longest + 1)


def render_node(node: Node) -> List[str]:
    if isinstance(node, CodeNode):
        fence = _fence_for(node.value)
        info = " ".join(p for p in (node.lang, node.meta) if p)
        lines = [fence + info]
        if node.value:
            lines.extend(node.value.split("\n"))
        lines.append(fence)
        return lines
    if isinstance(node, ImageNode):
        alt = node.alt.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")
        url = f"<{node.url}>" if re.search(r"[\s()]", node.url) else node.url
        return [f"![{alt}]({url})"]
    if isinstance(node, HtmlNode):
        return node.value.split("\n")
    raise TypeError(f"cannot render {type(node).__name__}")


def _indent(first_line: str) -> Tuple[str, str]:
    """Prefix of the opening fence line (list marker, blockquote) and its continuation form."""
    m = re.match(r"^([ \t>]*(?:(?:[-+*]|\d+[.)])[ \t]+)?[ \t>]*)", first_line)
    prefix = m.group(1) if m else ""
    continuation = re.sub(r"[^\s>]", " ", prefix)
    return prefix, continuation


def splice(source: str, replacements: Sequence[Tuple[Position, Optional[Node]]]) -> str:
    lines = source.split("\n")
    out: List[str] = []
    cursor = 0

    for position, node in sorted(replacements, key=lambda r: r[0].start):
        out.extend(lines[cursor:position.start])
        end = min(position.end, len(lines))
        cursor = end

        if node is None:
            # drop the blank line that would otherwise double up
            if (not out or not out[-1].strip()) and cursor < len(lines) and not lines[cursor].strip():
                cursor += 1
            continue

        prefix, continuation = _indent(lines[position.start])
        rendered = render_node(node)
        out.append(prefix + rendered[0])
        out.extend((continuation + line) if line else continuation.rstrip() for line in rendered[1:])

    out.extend(lines[cursor:])
    return "\n".join(out)
