"""Variance inference for generic declarations.

Submodules:
- errors: CompileError / InternalCompilerError and source excerpts
- items: resolved item model (DefId, Generics, types, predicates, Program)
- lexer, parser, decl_ast: the declaration notation (ply lex/yacc)
- resolve: declaration syntax tree -> Program
- walk: item traversal with per-node callbacks and scoped attributes
- variance: the inference engine and its queries
- driver: command line interface

Python 3.11+
"""

from . import errors
from . import items
from . import variance
from . import walk

from .errors import CompileError, InternalCompilerError
from .items import DefId, DefKind, Program
from .resolve import parse_program
from .variance import Variance, VarianceSession

__all__ = [
    "errors",
    "items",
    "variance",
    "walk",
    "CompileError",
    "InternalCompilerError",
    "DefId",
    "DefKind",
    "Program",
    "parse_program",
    "Variance",
    "VarianceSession",
]
