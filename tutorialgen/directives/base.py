import abc
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..options import Options
from ..servers import Session
from ..types import Document, Kind, Node, RunnableBlock


@dataclass
class Context:
    document: Document
    options: Options
    session: Session

    def cwd(self, override: Optional[str] = None) -> Path:
        return self.options.resolve_cwd(override)


class BaseDirective(abc.ABC):
    KIND: Kind  # Override

    @abc.abstractmethod
    def run(self, block: RunnableBlock, ctx: Context) -> Optional[Node]:
        """Execute the block and return the node that replaces it.

        Returning None removes the block from the output document.
        """
        raise NotImplementedError
