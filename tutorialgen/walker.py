from __future__ import annotations
from typing import List, Optional, Tuple

from .directives.base import Context
from .errors import PreconditionError, TutorialError
from .markdown import find_runnable_blocks, splice
from .options import Options
from .registry import create_directive
from .servers import Session
from .types import Document, Node, Position


def run_code_blocks(document: Document, options: Options, session: Session) -> str:
    """
    Run every `run:` block of the document in order and return the document
    with each block replaced by what its directive produced.
    """
    where = str(document.path)
    try:
        blocks = find_runnable_blocks(document.source)
    except TutorialError as e:
        raise e.at(where)

    ctx = Context(document=document, options=options, session=session)
    replacements: List[Tuple[Position, Optional[Node]]] = []

    for block in blocks:
        print(f"[walker] {document.basename}:{block.position.line} {block.info}")
        try:
            node = create_directive(block.kind).run(block, ctx)
        except TutorialError as e:
            raise e.at(f"{where}:{block.position.line}")
        if node is not None and node.position is None:
            node.position = block.position
        replacements.append((block.position, node))

    leaked = session.servers.keys(document=where)
    if leaked:
        session.servers.kill_all(leaked)
        names = ", ".join(f"`{k}`" for k in leaked)
        raise PreconditionError(f"server:start without server:stop: {names}").at(where)

    return splice(document.source, replacements)
