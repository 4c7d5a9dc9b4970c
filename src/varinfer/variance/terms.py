"""Parameter enumeration: one inference term per generic parameter.

Every variance-bearing local item with at least one generic parameter gets
a contiguous block of `InferredTerm`s, one per parameter (inherited ones
first), starting at `inferred_starts[def_id]`. All terms of a solve live in
one `TermsArena`, which is dropped together with the contexts built on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, Union

from ..errors import span_bug
from ..items import DefId, DefKind, GenericParamKind, Program, all_params
from .lattice import Variance

logger = logging.getLogger(__name__)

# Item kinds whose variances are inferred by the fixpoint.
INFERRED_KINDS = (DefKind.STRUCT, DefKind.ENUM, DefKind.UNION, DefKind.CTOR,
                  DefKind.FN, DefKind.ASSOC_FN)

# Lang items whose type parameters are forced covariant.
LANG_ITEM_VARIANCES = {
    "phantom_data": Variance.COVARIANT,
    "owned_box": Variance.COVARIANT,
}


@dataclass(frozen=True, slots=True)
class ConstantTerm:
    variance: Variance

    def __str__(self) -> str:
        return str(self.variance)


@dataclass(frozen=True, slots=True)
class TransformTerm:
    outer: "VarianceTerm"
    inner: "VarianceTerm"

    def __str__(self) -> str:
        return f"({self.outer} × {self.inner})"


@dataclass(frozen=True, slots=True)
class InferredTerm:
    index: int

    def __str__(self) -> str:
        return f"[{self.index}]"


VarianceTerm = Union[ConstantTerm, TransformTerm, InferredTerm]


class TermsArena:
    """Owns every term allocated during one solve."""

    def __init__(self) -> None:
        self._terms: list[VarianceTerm] = []

    def alloc(self, term: VarianceTerm) -> VarianceTerm:
        self._terms.append(term)
        return term

    def __len__(self) -> int:
        return len(self._terms)


@dataclass(frozen=True, slots=True)
class InferredParam:
    item: DefId
    index: int
    kind: GenericParamKind
    name: str


@dataclass(slots=True)
class TermsContext:
    program: Program
    arena: TermsArena
    # Maps each inferred item to the index of its first term.
    inferred_starts: dict[DefId, int] = field(default_factory=dict)
    inferred_terms: list[InferredTerm] = field(default_factory=list)
    inferred_params: list[InferredParam] = field(default_factory=list)
    # Items that take part in inference but have no generics.
    empty_items: list[DefId] = field(default_factory=list)
    # Fixed starting values: (item, variance per parameter).
    lang_items: list[tuple[DefId, tuple[Variance, ...]]] = field(default_factory=list)

    def term_for(self, item: DefId, index: int) -> InferredTerm:
        start = self.inferred_starts.get(item)
        if start is None:
            span_bug(self.program.def_span(item),
                     f"no inferred terms for {self.program.def_path_str(item)}")
        count = self.program.generics_of(item).count()
        if not 0 <= index < count:
            span_bug(self.program.def_span(item),
                     f"parameter index {index} out of range for {self.program.def_path_str(item)}")
        return self.inferred_terms[start + index]

    def items(self) -> Iterator[tuple[DefId, int, int]]:
        """(item, first term, term count) for every inferred item."""
        for def_id, start in self.inferred_starts.items():
            yield def_id, start, self.program.generics_of(def_id).count()

    def dump(self) -> str:
        out: list[str] = []
        for def_id, start, count in self.items():
            out.append(f"{self.program.def_path_str(def_id)}:")
            for i in range(count):
                p = self.inferred_params[start + i]
                out.append(f"  ({p.index}) {p.kind.value} {p.name} -> {self.inferred_terms[start + i]}")
        return "\n".join(out)


def determine_parameters_to_be_inferred(program: Program, arena: TermsArena) -> TermsContext:
    terms_cx = TermsContext(program=program, arena=arena)

    for item in program.local_items():
        if item.kind not in INFERRED_KINDS:
            continue
        generics = item.generics
        count = generics.count()
        if count == 0:
            terms_cx.empty_items.append(item.def_id)
            continue

        start = len(terms_cx.inferred_terms)
        terms_cx.inferred_starts[item.def_id] = start
        params = all_params(generics, program)
        if len(params) != count:
            span_bug(item.location, f"generics of {item.name} do not add up")
        for p in params:
            term = arena.alloc(InferredTerm(len(terms_cx.inferred_terms)))
            terms_cx.inferred_terms.append(term)
            terms_cx.inferred_params.append(InferredParam(item.def_id, p.index, p.kind, p.name))

        fixed = LANG_ITEM_VARIANCES.get(item.lang or "")
        if fixed is not None:
            variances = tuple(fixed if p.kind is GenericParamKind.TYPE else Variance.BIVARIANT
                              for p in params)
            terms_cx.lang_items.append((item.def_id, variances))

    logger.debug("allocated %d inferred terms for %d items (%d without generics)",
                 len(terms_cx.inferred_terms), len(terms_cx.inferred_starts),
                 len(terms_cx.empty_items))
    return terms_cx
