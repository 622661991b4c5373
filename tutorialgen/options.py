from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional

import yaml

from . import settings
from .errors import ValidationError

CONFIG_FILENAME = "tutorial.yaml"


@dataclass
class Options:
    """Everything a directive needs to know about the current run."""
    root: Path            # tutorial project (holds src/)
    cwd: Path             # scratch code directory commands run in
    assets: Path          # output assets root, screenshots go below it
    out_dir: Path         # rendered chapters
    cfg: FrozenSet[str] = frozenset()
    repo: str = ""
    branch: str = "master"
    chapters: str = settings.TUTORIAL_CHAPTERS
    checkpoint_commands: List[str] = field(default_factory=list)
    server_start_timeout: float = settings.SERVER_START_TIMEOUT
    server_stop_grace: float = settings.SERVER_STOP_GRACE
    screenshot_python: str = settings.SCREENSHOT_PYTHON
    screenshot_timeout: float = settings.SCREENSHOT_TIMEOUT

    @classmethod
    def for_root(cls, root: Path) -> "Options":
        root = Path(root).resolve()
        dist = root / "dist"
        cfg = _load_project_config(root)

        flags = set(cfg.get("cfg") or [])
        if settings.CI:
            flags.add("ci")

        return cls(
            root=root,
            cwd=dist / "code",
            assets=dist / "assets",
            out_dir=dist / "chapters",
            cfg=frozenset(flags),
            repo=str(cfg.get("repo") or settings.TUTORIAL_REPO),
            branch=str(cfg.get("branch") or settings.TUTORIAL_BRANCH),
            chapters=str(cfg.get("chapters") or settings.TUTORIAL_CHAPTERS),
            checkpoint_commands=list(cfg.get("checkpoint") or settings.CHECKPOINT_COMMANDS),
        )

    def resolve_cwd(self, override: Optional[str]) -> Path:
        return self.cwd / override if override else self.cwd


def _load_project_config(root: Path) -> Dict[str, Any]:
    """
    Read {root}/tutorial.yaml if present, e.g.:
      repo: ember-learn/super-rentals-tutorial
      cfg: [ci]
      chapters: src/chapters/*.md
      checkpoint:
        - yarn test
        - yarn lint
    """
    cfg_path = root / CONFIG_FILENAME
    if not cfg_path.exists():
        return {}
    try:
        data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"{cfg_path}: invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"{cfg_path}: top level must be a mapping")
    for key in ("cfg", "checkpoint"):
        if key in data and not isinstance(data[key], list):
            raise ValidationError(f"{cfg_path}: '{key}' must be a list")
    return data
