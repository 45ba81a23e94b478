"""Static checks applied to plugin scripts before they are compiled.

This is a stability control at the call boundary, not an OS sandbox:
it keeps well-meaning scripts inside the capability surface and makes
the obvious escape hatches (dunder traversal, frame access, arbitrary
imports) fail at load time with a clear message.
"""

from __future__ import annotations

import ast
import collections
import fnmatch
import functools
import itertools
import json
import math
import posixpath
import re
import shlex
import string
import textwrap
from types import ModuleType

# Public names re-exported to scripts per importable module. Real modules
# are never handed out: their globals reach ``os`` and ``sys``.
_MODULE_EXPORTS: dict[str, tuple[ModuleType, tuple[str, ...]]] = {
    "re": (
        re,
        (
            "compile", "escape", "findall", "finditer", "fullmatch", "match",
            "search", "split", "sub", "subn", "IGNORECASE", "MULTILINE",
            "DOTALL", "VERBOSE", "ASCII", "I", "M", "S", "X", "A",
        ),
    ),
    "string": (
        string,
        (
            "ascii_letters", "ascii_lowercase", "ascii_uppercase", "capwords",
            "digits", "hexdigits", "octdigits", "punctuation", "printable",
            "whitespace", "Template",
        ),
    ),
    "fnmatch": (fnmatch, ("fnmatch", "fnmatchcase", "filter", "translate")),
    "shlex": (shlex, ("split", "quote", "join")),
    "json": (json, ("loads", "dumps", "JSONDecodeError")),
    "posixpath": (
        posixpath,
        (
            "basename", "dirname", "join", "split", "splitext", "normpath",
            "isabs", "commonpath", "sep",
        ),
    ),
    "textwrap": (textwrap, ("dedent", "indent", "wrap", "fill", "shorten")),
    "math": (math, tuple(n for n in dir(math) if not n.startswith("_"))),
    "itertools": (itertools, tuple(n for n in dir(itertools) if not n.startswith("_"))),
    "functools": (functools, ("reduce", "partial", "cmp_to_key", "lru_cache", "cache")),
    "collections": (
        collections,
        ("Counter", "OrderedDict", "defaultdict", "deque", "namedtuple", "ChainMap"),
    ),
}

ALLOWED_MODULES: frozenset[str] = frozenset(_MODULE_EXPORTS)

# Attribute names that reach interpreter internals without a leading underscore.
_FORBIDDEN_ATTRS: frozenset[str] = frozenset(
    {
        "format", "format_map",
        "gi_frame", "gi_code", "gi_yieldfrom",
        "cr_frame", "cr_code", "cr_await",
        "ag_frame", "ag_code", "ag_await",
        "f_globals", "f_locals", "f_builtins", "f_back", "f_code",
        "tb_frame", "tb_next",
        "co_code", "co_consts",
        "mro",
    }
)


class ScriptGuardViolation(Exception):
    def __init__(self, message: str, lineno: int | None = None) -> None:
        super().__init__(message if lineno is None else f"line {lineno}: {message}")
        self.lineno = lineno


class _Guard(ast.NodeVisitor):
    def visit_Import(self, node: ast.Import) -> None:
        for alias in node.names:
            _check_module(alias.name, node.lineno)
        self.generic_visit(node)

    def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
        if node.level:
            raise ScriptGuardViolation("relative imports are not allowed", node.lineno)
        _check_module(node.module or "", node.lineno)
        for alias in node.names:
            if alias.name == "*" or alias.name.startswith("_"):
                raise ScriptGuardViolation(
                    f"cannot import {alias.name!r} from {node.module!r}", node.lineno
                )
        self.generic_visit(node)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        _check_attr(node.attr, node.lineno)
        self.generic_visit(node)

    def visit_MatchClass(self, node: ast.MatchClass) -> None:
        # keyword patterns read attributes off the subject
        for attr in node.kwd_attrs:
            _check_attr(attr, node.lineno)
        self.generic_visit(node)

    def visit_MatchAs(self, node: ast.MatchAs) -> None:
        _check_name(node.name, node.lineno)
        self.generic_visit(node)

    def visit_MatchStar(self, node: ast.MatchStar) -> None:
        _check_name(node.name, node.lineno)
        self.generic_visit(node)

    def visit_MatchMapping(self, node: ast.MatchMapping) -> None:
        _check_name(node.rest, node.lineno)
        self.generic_visit(node)

    def visit_Name(self, node: ast.Name) -> None:
        _check_name(node.id, node.lineno)
        self.generic_visit(node)

    def visit_Global(self, node: ast.Global) -> None:
        for name in node.names:
            if name.startswith("__"):
                raise ScriptGuardViolation(f"name {name!r} is not allowed", node.lineno)
        self.generic_visit(node)


def _check_attr(attr: str, lineno: int) -> None:
    if attr.startswith("_") or attr in _FORBIDDEN_ATTRS:
        raise ScriptGuardViolation(f"access to attribute {attr!r} is not allowed", lineno)


def _check_name(name: str | None, lineno: int) -> None:
    if name is not None and name.startswith("__") and name != "__name__":
        raise ScriptGuardViolation(f"name {name!r} is not allowed", lineno)


def _check_module(name: str, lineno: int) -> None:
    if name not in ALLOWED_MODULES:
        raise ScriptGuardViolation(
            f"import of {name!r} is not allowed; "
            f"allowed modules: {sorted(ALLOWED_MODULES)}",
            lineno,
        )


def check_script(tree: ast.AST) -> None:
    """Raise ``ScriptGuardViolation`` for the first disallowed construct."""
    _Guard().visit(tree)


@functools.lru_cache(maxsize=None)
def _export_module(name: str) -> ModuleType:
    module, names = _MODULE_EXPORTS[name]
    proxy = ModuleType(name)
    for attr in names:
        if hasattr(module, attr):
            setattr(proxy, attr, getattr(module, attr))
    return proxy


def restricted_import(
    name: str,
    globals: object = None,
    locals: object = None,
    fromlist: tuple[str, ...] = (),
    level: int = 0,
) -> ModuleType:
    """``__import__`` replacement that only returns allow-listed proxies."""
    if level or name not in ALLOWED_MODULES:
        raise ImportError(f"import of {name!r} is not allowed")
    return _export_module(name)
