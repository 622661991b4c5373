from __future__ import annotations
from pathlib import Path
from typing import Optional

from ...errors import PreconditionError

LANGS = {
    ".css": "css",
    ".hbs": "handlebars",
    ".html": "html",
    ".js": "js",
    ".json": "json",
    ".md": "markdown",
    ".py": "python",
    ".sh": "shell",
    ".toml": "toml",
    ".ts": "ts",
    ".txt": "text",
    ".yaml": "yaml",
    ".yml": "yaml",
}


def lang_for(filename: str, explicit: Optional[str] = None) -> Optional[str]:
    if explicit:
        return explicit
    suffix = Path(filename).suffix.lower()
    return LANGS.get(suffix, suffix[1:] or None)


def target_path(cwd: Path, filename: str) -> Path:
    """Resolve filename under cwd; paths escaping cwd are refused."""
    root = cwd.resolve()
    path = (root / filename).resolve()
    if path != root and root not in path.parents:
        raise PreconditionError(f"{filename} is outside of {cwd}")
    return path


def filename_meta(filename: str, diff: Optional[str] = None) -> str:
    attrs = f'data-filename="{filename}"'
    if diff:
        attrs += f' data-diff="{diff}"'
    return "{ " + attrs + " }"
