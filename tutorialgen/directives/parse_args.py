"""
Decode the info-string of a runnable block into a typed Args dataclass.

    ```run:screenshot width=1024 height=768 filename=index.png alt="The index page"
    visit http://localhost:4200/
    ```

Every field is declared with `required(...)` or `optional(...)` together with a
coercion (`String`, `Number`, `ToBool`). Unknown or repeated keys are rejected
so that typos surface before anything runs.
"""
from __future__ import annotations
import math
import shlex
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence, Type, TypeVar

from dacite import Config, DaciteError, from_dict

from ..errors import ValidationError
from ..types import RunnableBlock

T = TypeVar("T")

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


def String(value: str) -> str:
    return value


def Number(value: str) -> Any:
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    number = float(text)  # ValueError propagates as "not a number"
    if not math.isfinite(number):
        raise ValueError(f"{value!r} is not a finite number")
    return int(number) if number.is_integer() else number


def ToBool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"expected one of {', '.join(sorted(_TRUE | _FALSE))}")


@dataclass(frozen=True)
class Field:
    name: str
    coerce: Callable[[str], Any]
    required: bool
    default: Any = None


def required(name: str, coerce: Callable[[str], Any] = String) -> Field:
    return Field(name, coerce, True)


def optional(name: str, coerce: Callable[[str], Any] = String, default: Any = None) -> Field:
    return Field(name, coerce, False, default)


def tokenize(block: RunnableBlock) -> Dict[str, str]:
    where = f"line {block.position.line}"
    try:
        tokens = shlex.split(block.meta)
    except ValueError as e:
        raise ValidationError(f"{where}: cannot parse arguments of run:{block.kind.value}: {e}") from e

    raw: Dict[str, str] = {}
    for token in tokens:
        key, sep, value = token.partition("=")
        if not key:
            raise ValidationError(f"{where}: malformed argument {token!r}")
        if not sep:
            value = "true"  # bare flag
        if key in raw:
            raise ValidationError(f"{where}: argument '{key}' given more than once")
        raw[key] = value
    return raw


def parse_args(block: RunnableBlock, fields: Sequence[Field], into: Type[T]) -> T:
    where = f"line {block.position.line}"
    raw = tokenize(block)

    known = {f.name for f in fields}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValidationError(
            f"{where}: unknown argument(s) for run:{block.kind.value}: {', '.join(unknown)} "
            f"(expected: {', '.join(sorted(known))})"
        )

    values: Dict[str, Any] = {}
    missing: List[str] = []
    for f in fields:
        if f.name in raw:
            try:
                values[f.name] = f.coerce(raw[f.name])
            except ValueError as e:
                raise ValidationError(f"{where}: invalid value for '{f.name}': {raw[f.name]!r} ({e})") from e
        elif f.required:
            missing.append(f.name)
        else:
            values[f.name] = f.default
    if missing:
        raise ValidationError(f"{where}: run:{block.kind.value} requires: {', '.join(missing)}")

    try:
        return from_dict(data_class=into, data=values, config=Config(cast=[float]))
    except DaciteError as e:
        raise ValidationError(f"{where}: invalid arguments for run:{block.kind.value}: {e}") from e
