from __future__ import annotations

import logging

from ..items import (
    DefId, EarlyBound, GenericParamKind, Program, ProjectionPredicate, TraitPredicate,
    TypeOutlives, TypeVisitor, identity_substs, subst_predicate,
)
from .lattice import Variance

logger = logging.getLogger(__name__)


class OpaqueTypeLifetimeCollector(TypeVisitor):
    """Marks every early-bound lifetime it meets as invariant."""

    def __init__(self, variances: list[Variance]) -> None:
        self.variances = variances

    def visit_region(self, region) -> None:
        if isinstance(region, EarlyBound):
            self.variances[region.index] = Variance.INVARIANT


def variance_of_opaque(program: Program, def_id: DefId) -> tuple[Variance, ...]:
    """Variances of an opaque type, read off its bounds rather than inferred.

    An opaque type can only use the lifetimes its bounds mention, so for
    `type Foo<'a, 'b, 'c> = impl Trait<'a> + 'b;` the hidden type may not use
    `'c`, which is therefore bivariant. Type and const parameters may be used
    in any way by the hidden type and stay invariant.
    """
    generics = program.generics_of(def_id)
    variances = [Variance.INVARIANT] * generics.count()

    # Lifetimes, own and inherited, are unused until a bound mentions them.
    g = generics
    while True:
        for param in g.params:
            if param.kind is GenericParamKind.LIFETIME:
                variances[param.index] = Variance.BIVARIANT
        if g.parent is None:
            break
        g = program.generics_of(g.parent)

    collector = OpaqueTypeLifetimeCollector(variances)
    id_substs = identity_substs(generics, program)
    for pred in program.explicit_item_bounds(def_id):
        pred = subst_predicate(pred, id_substs)
        logger.debug("opaque %s: visiting bound %s", program.def_path_str(def_id), pred)

        # The opaque type itself is the self type of its own bounds; only the
        # remaining arguments say which lifetimes the hidden type may capture.
        match pred:
            case TraitPredicate(trait_ref):
                collector.visit_args(trait_ref.substs[1:])
            case ProjectionPredicate(trait_ref, _, term):
                collector.visit_args(trait_ref.substs[1:])
                collector.visit_ty(term)
            case TypeOutlives(_, region):
                collector.visit_region(region)
            case _:
                collector.visit_predicate(pred)

    return tuple(collector.variances)
