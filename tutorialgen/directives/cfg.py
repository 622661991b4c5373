"""
`#[cfg(...)]` predicates used to gate individual commands, e.g.

    #[cfg(ci)]
    #[cfg(not(ci))]
    #[cfg(all(ci, any(linux, macos)))]
"""
from __future__ import annotations
import re
from typing import AbstractSet, List

from ..errors import ValidationError

_TOKEN = re.compile(r"\s*(?:([A-Za-z_][\w-]*)|([(),]))")


def _tokenize(expr: str) -> List[str]:
    tokens: List[str] = []
    pos = 0
    expr = expr.rstrip()
    while pos < len(expr):
        m = _TOKEN.match(expr, pos)
        if not m:
            raise ValidationError(f"invalid cfg expression {expr!r} at offset {pos}")
        tokens.append(m.group(1) or m.group(2))
        pos = m.end()
    return tokens


class _Parser:
    def __init__(self, expr: str, flags: AbstractSet[str]) -> None:
        self.expr = expr
        self.tokens = _tokenize(expr)
        self.flags = flags
        self.i = 0

    def _next(self) -> str:
        if self.i >= len(self.tokens):
            raise ValidationError(f"unexpected end of cfg expression {self.expr!r}")
        tok = self.tokens[self.i]
        self.i += 1
        return tok

    def _expect(self, tok: str) -> None:
        got = self._next()
        if got != tok:
            raise ValidationError(f"expected {tok!r} but found {got!r} in cfg expression {self.expr!r}")

    def parse(self) -> bool:
        value = self._expr()
        if self.i != len(self.tokens):
            raise ValidationError(f"trailing input in cfg expression {self.expr!r}")
        return value

    def _expr(self) -> bool:
        name = self._next()
        if name in ("(", ")", ","):
            raise ValidationError(f"unexpected {name!r} in cfg expression {self.expr!r}")
        if name not in ("not", "all", "any"):
            return name in self.flags

        self._expect("(")
        args: List[bool] = []
        if self.tokens[self.i:self.i + 1] != [")"]:
            args.append(self._expr())
            while self.tokens[self.i:self.i + 1] == [","]:
                self.i += 1
                args.append(self._expr())
        self._expect(")")

        if name == "not":
            if len(args) != 1:
                raise ValidationError(f"not(...) takes exactly one argument in {self.expr!r}")
            return not args[0]
        return all(args) if name == "all" else any(args)


def evaluate(expr: str, flags: AbstractSet[str]) -> bool:
    return _Parser(expr, flags).parse()
