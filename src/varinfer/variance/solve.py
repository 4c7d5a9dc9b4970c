"""Constraint solving.

The constraint set is a monotone system over the variance lattice: every
term starts at bivariant (or at its fixed value) and only ever moves up, so
repeatedly sweeping the constraints until nothing changes terminates after
at most two changing sweeps per term.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Iterator

from ..errors import span_bug
from ..items import DefId, DefKind, GenericParamKind, all_params
from .constraints import ConstraintContext
from .lattice import Variance, format_variances
from .terms import ConstantTerm, InferredTerm, TransformTerm, VarianceTerm

logger = logging.getLogger(__name__)


class CrateVariancesMap(Mapping):
    """Read-only map from item to its variance vector (inherited parameters first)."""

    def __init__(self, variances: dict[DefId, tuple[Variance, ...]]) -> None:
        self._variances = MappingProxyType(dict(variances))

    def __getitem__(self, def_id: DefId) -> tuple[Variance, ...]:
        return self._variances[def_id]

    def __iter__(self) -> Iterator[DefId]:
        return iter(self._variances)

    def __len__(self) -> int:
        return len(self._variances)

    def __repr__(self) -> str:
        body = ", ".join(f"{d!r}: {format_variances(v)}" for d, v in self._variances.items())
        return f"CrateVariancesMap({{{body}}})"


class SolveContext:
    def __init__(self, constraints_cx: ConstraintContext) -> None:
        self.constraints_cx = constraints_cx
        self.terms_cx = constraints_cx.terms_cx
        self.solutions: list[Variance] = [Variance.BIVARIANT] * len(self.terms_cx.inferred_terms)
        self.iterations = 0
        self.sweeps = 0

        for def_id, variances in self.terms_cx.lang_items:
            start = self.terms_cx.inferred_starts[def_id]
            for i, variance in enumerate(variances):
                self.solutions[start + i] = variance

    def solve(self) -> None:
        """Sweep the constraints until a full sweep changes no solution."""
        changed = True
        while changed:
            changed = False
            self.sweeps += 1
            for constraint in self.constraints_cx.constraints:
                variance = self.evaluate(constraint.variance)
                old_value = self.solutions[constraint.inferred]
                new_value = variance.join(old_value)
                if old_value is not new_value:
                    logger.debug("updating inferred %d from %s to %s due to %s",
                                 constraint.inferred, old_value, new_value, constraint)
                    self.solutions[constraint.inferred] = new_value
                    changed = True
            if changed:
                self.iterations += 1
        logger.info("variance fixpoint reached after %d changing sweeps (%d terms, %d constraints)",
                    self.iterations, len(self.solutions), len(self.constraints_cx.constraints))

    def evaluate(self, term: VarianceTerm) -> Variance:
        match term:
            case ConstantTerm(v):
                return v
            case TransformTerm(t1, t2):
                return self.evaluate(t1).xform(self.evaluate(t2))
            case InferredTerm(index):
                return self.solutions[index]
        span_bug(None, f"unknown variance term {term!r}")

    def enforce_const_invariance(self, def_id: DefId, variances: list[Variance]) -> None:
        program = self.terms_cx.program
        for param in all_params(program.generics_of(def_id), program):
            if param.kind is GenericParamKind.CONST:
                variances[param.index] = Variance.INVARIANT

    def create_map(self) -> CrateVariancesMap:
        program = self.terms_cx.program
        variances: dict[DefId, tuple[Variance, ...]] = {}

        for def_id, start, count in self.terms_cx.items():
            item_variances = self.solutions[start:start + count]
            # Const parameters are always invariant.
            self.enforce_const_invariance(def_id, item_variances)
            variances[def_id] = tuple(item_variances)

        for def_id in self.terms_cx.empty_items:
            variances[def_id] = ()

        # Variants share the generics of their enum and take its variances.
        for item in program.local_items():
            if item.kind is not DefKind.VARIANT:
                continue
            parent = item.generics.parent
            if parent is None or item.generics.count() == 0:
                variances[item.def_id] = ()
            else:
                variances[item.def_id] = variances[parent]

        return CrateVariancesMap(variances)


def solve_constraints(constraints_cx: ConstraintContext) -> CrateVariancesMap:
    solutions_cx = SolveContext(constraints_cx)
    solutions_cx.solve()
    return solutions_cx.create_map()
