from __future__ import annotations

import logging
import threading

from ..errors import span_bug
from ..items import DefId, DefKind, Program
from .constraints import add_constraints_from_crate
from .lattice import Variance
from .opaque import variance_of_opaque
from .solve import CrateVariancesMap, solve_constraints
from .terms import TermsArena, determine_parameters_to_be_inferred

logger = logging.getLogger(__name__)

# Item kinds `variances_of` may be asked about.
VARIANCE_ITEM_KINDS = frozenset({
    DefKind.FN, DefKind.ASSOC_FN, DefKind.ENUM, DefKind.STRUCT, DefKind.UNION,
    DefKind.VARIANT, DefKind.CTOR, DefKind.OPAQUE,
})


class VarianceSession:
    """Variance queries for one program.

    Owns every piece of state the engine needs for the lifetime of a
    compilation session: the crate-wide map is computed on first use and
    then only read; opaque types are resolved individually and cached.
    """

    def __init__(self, program: Program) -> None:
        self.program = program
        self._crate_map: CrateVariancesMap | None = None
        self._opaque: dict[DefId, tuple[Variance, ...]] = {}
        self._lock = threading.Lock()

    def crate_variances(self) -> CrateVariancesMap:
        if self._crate_map is None:
            with self._lock:
                if self._crate_map is None:
                    self._crate_map = compute_crate_variances(self.program)
        return self._crate_map

    def variances_of(self, def_id: DefId) -> tuple[Variance, ...]:
        program = self.program
        generics = program.generics_of(def_id)
        # Skip items with no generics - there's nothing to infer in them.
        if generics.count() == 0:
            return ()

        kind = program.def_kind(def_id)
        if kind not in VARIANCE_ITEM_KINDS:
            span_bug(program.def_span(def_id),
                     f"asked to compute variance for wrong kind of item: "
                     f"{kind.value} `{program.def_path_str(def_id)}`")

        if not def_id.is_local:
            return program.extern_variances(def_id)

        if kind is DefKind.OPAQUE:
            cached = self._opaque.get(def_id)
            if cached is None:
                cached = variance_of_opaque(program, def_id)
                self._opaque[def_id] = cached
            return cached

        # Everything else must be inferred.
        crate_map = self.crate_variances()
        return crate_map.get(def_id, (Variance.BIVARIANT,) * generics.count())


def compute_crate_variances(program: Program) -> CrateVariancesMap:
    """Enumerate terms, generate constraints and solve them for the whole program."""
    arena = TermsArena()
    terms_cx = determine_parameters_to_be_inferred(program, arena)
    constraints_cx = add_constraints_from_crate(terms_cx)
    crate_map = solve_constraints(constraints_cx)
    logger.info("computed variances for %d items (%d terms allocated)", len(crate_map), len(arena))
    return crate_map
