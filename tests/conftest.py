"""
Shared pytest fixtures for tutorialgen tests.

This module provides:
- A throwaway tutorial project (src/chapters, dist/...) per test
- Options/Session/Document/Context wired to that project
- A block factory for building RunnableBlocks by hand
- A fake browser that writes a real PNG instead of launching Chromium
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest
from PIL import Image

import tutorialgen.directives  # noqa: F401  registers every directive
from tutorialgen.directives.base import Context
from tutorialgen.directives.screenshot import directive as screenshot_directive
from tutorialgen.directives.screenshot.compiler import CaptureSpec
from tutorialgen.options import Options
from tutorialgen.servers import Session
from tutorialgen.types import Document, Kind, Position, RunnableBlock


# =============================================================================
# Project Fixtures
# =============================================================================


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty tutorial project with a chapters directory."""
    root = tmp_path / "tutorial"
    (root / "src" / "chapters").mkdir(parents=True)
    return root


@pytest.fixture
def options(project: Path) -> Options:
    """Options for the project with no cfg flags, whatever the environment says."""
    opts = replace(Options.for_root(project), cfg=frozenset(), repo="", checkpoint_commands=[])
    opts.cwd.mkdir(parents=True, exist_ok=True)
    return opts


@pytest.fixture
def session():
    s = Session()
    yield s
    s.close(raise_on_leak=False)


@pytest.fixture
def document(project: Path) -> Document:
    return Document(path=project / "src" / "chapters" / "01-intro.md", source="")


@pytest.fixture
def ctx(document: Document, options: Options, session: Session) -> Context:
    return Context(document=document, options=options, session=session)


@pytest.fixture
def make_block() -> Callable[..., RunnableBlock]:
    """
    Build a block the way the markdown layer would:

        make_block(Kind.COMMAND, "cwd=app", "echo hi\\n")
    """

    def _make(kind: Kind, meta: str = "", body: str = "", line: int = 1) -> RunnableBlock:
        info = f"run:{kind.value} {meta}".strip()
        lines = body.count("\n") + 2
        return RunnableBlock(
            kind=kind,
            info=info,
            meta=meta,
            body=body,
            position=Position(line - 1, line - 1 + lines),
        )

    return _make


# =============================================================================
# Browser Fixtures
# =============================================================================


@dataclass
class FakeBrowser:
    """Stands in for the Playwright program; records what it was asked to run."""
    size: Optional[Tuple[int, int]] = None
    fail: Optional[Exception] = None
    programs: List[str] = field(default_factory=list)
    specs: List[CaptureSpec] = field(default_factory=list)

    def __call__(self, program: str, spec: CaptureSpec, options: Options) -> None:
        self.programs.append(program)
        self.specs.append(spec)
        if self.fail is not None:
            raise self.fail
        width, height = self.size or (spec.width * spec.scale, (spec.height or 300) * spec.scale)
        Image.new("RGB", (width, height), "white").save(spec.path, format="PNG")

    @property
    def calls(self) -> int:
        return len(self.programs)


@pytest.fixture
def fake_browser(monkeypatch: pytest.MonkeyPatch) -> FakeBrowser:
    browser = FakeBrowser()
    monkeypatch.setattr(screenshot_directive, "run_browser_program", browser)
    return browser
