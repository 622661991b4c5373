from typing import Dict, List, Type

from .types import Kind

_registry: Dict[Kind, type] = {}


def register_directive(cls: Type) -> Type:
    kind = getattr(cls, "KIND", None)
    if not isinstance(kind, Kind):
        raise ValueError(f"{cls.__name__} must define KIND as a Kind")
    if kind in _registry:
        raise ValueError(f"Directive 'run:{kind.value}' already registered by {_registry[kind].__name__}")
    _registry[kind] = cls
    return cls


def get_directive(kind: Kind):
    return _registry.get(kind)


def create_directive(kind: Kind):
    cls = get_directive(kind)
    if cls is None:
        raise KeyError(f"No directive registered for 'run:{kind.value}'")
    return cls()


def list_directives() -> List[str]:
    return sorted(k.value for k in _registry)


def ensure_complete() -> None:
    """Every Kind must have exactly one directive."""
    missing = [k.value for k in Kind if k not in _registry]
    if missing:
        raise RuntimeError(f"No directive registered for: {', '.join(missing)}")
