from typing import Any

_ESCAPES = {"<": "&lt;", ">": "&gt;", '"': "&quot;"}


def attr(value: Any) -> str:
    """Quoted HTML attribute value. Only <, > and " are escaped."""
    escaped = "".join(_ESCAPES.get(c, c) for c in str(value))
    return f'"{escaped}"'


def img_tag(src: str, alt: str, width: int, height: int) -> str:
    return f"<img src={attr(src)} alt={attr(alt)} width={attr(width)} height={attr(height)}>"
