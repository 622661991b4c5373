from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union


class Kind(str, Enum):
    COMMAND = "command"
    FILE_CREATE = "file:create"
    FILE_COPY = "file:copy"
    FILE_PATCH = "file:patch"
    FILE_SHOW = "file:show"
    CHECKPOINT = "checkpoint"
    IGNORE = "ignore"
    PAUSE = "pause"
    SERVER_START = "server:start"
    SERVER_STOP = "server:stop"
    SCREENSHOT = "screenshot"


@dataclass(frozen=True)
class Position:
    start: int  # 0-based, first line of the opening fence
    end: int    # exclusive

    @property
    def line(self) -> int:
        return self.start + 1


@dataclass(frozen=True)
class RunnableBlock:
    kind: Kind
    info: str      # full info-string, e.g. "run:command cwd=app"
    meta: str      # everything after the tag
    body: str
    position: Position


@dataclass
class Document:
    path: Path
    source: str

    @property
    def basename(self) -> str:
        return self.path.name

    @property
    def namespace(self) -> str:
        name = self.basename
        return name[:-3] if name.endswith(".md") else name


@dataclass
class CodeNode:
    lang: Optional[str]
    value: str
    meta: Optional[str] = None
    position: Optional[Position] = None
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ImageNode:
    url: str
    alt: str
    position: Optional[Position] = None
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class HtmlNode:
    value: str
    position: Optional[Position] = None
    data: Dict[str, Any] = field(default_factory=dict)


Node = Union[CodeNode, ImageNode, HtmlNode]
