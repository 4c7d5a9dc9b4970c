"""Constraint generation.

Walks the structure of every inferred item (field types, function
signatures) while tracking the variance of the current position, and emits
one `Constraint` per occurrence of a generic parameter. The variance of a
position is itself a term: occurrences inside another local ADT depend on
that ADT's inferred variances, which is what makes the problem a
crate-wide fixpoint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..errors import span_bug
from ..items import (
    Adt, Array, ConstParam, ConstValue, DefId, DefKind, Dynamic, EarlyBound, Erased, FnPtr, FnSig,
    GenericArg, LateBound, Never, OpaqueTy, ParamTy, Prim, Projection, RawPtr, Ref, Slice, Static,
    Tuple, Unevaluated, CONST_TYPES, REGION_TYPES,
)
from .lattice import Variance
from .terms import ConstantTerm, TermsContext, TransformTerm, VarianceTerm

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Constraint:
    inferred: int
    variance: VarianceTerm

    def __str__(self) -> str:
        return f"[{self.inferred}] <= {self.variance}"


@dataclass(frozen=True, slots=True)
class CurrentItem:
    def_id: DefId
    inferred_start: int


@dataclass(slots=True)
class ConstraintContext:
    terms_cx: TermsContext
    covariant: VarianceTerm
    contravariant: VarianceTerm
    invariant: VarianceTerm
    bivariant: VarianceTerm
    constraints: list[Constraint] = field(default_factory=list)

    @property
    def program(self):
        return self.terms_cx.program

    # -- term construction ------------------------------------------------

    def constant_term(self, v: Variance) -> VarianceTerm:
        return {
            Variance.COVARIANT: self.covariant,
            Variance.CONTRAVARIANT: self.contravariant,
            Variance.INVARIANT: self.invariant,
            Variance.BIVARIANT: self.bivariant,
        }[v]

    def xform(self, v1: VarianceTerm, v2: VarianceTerm) -> VarianceTerm:
        # A covariant transform is a no-op.
        if v2 == self.covariant:
            return v1
        if isinstance(v1, ConstantTerm) and isinstance(v2, ConstantTerm):
            return self.constant_term(v1.variance.xform(v2.variance))
        return self.terms_cx.arena.alloc(TransformTerm(v1, v2))

    def contravariant_of(self, variance: VarianceTerm) -> VarianceTerm:
        return self.xform(variance, self.contravariant)

    def invariant_of(self, variance: VarianceTerm) -> VarianceTerm:
        return self.xform(variance, self.invariant)

    # -- per item -----------------------------------------------------------

    def build_constraints_for_item(self, def_id: DefId) -> None:
        program = self.program
        start = self.terms_cx.inferred_starts.get(def_id)
        if start is None:
            return
        current = CurrentItem(def_id, start)
        kind = program.def_kind(def_id)
        logger.debug("building constraints for %s", program.def_path_str(def_id))

        if kind.is_adt():
            for f in program.fields_of(def_id):
                self.add_constraints_from_ty(current, f.ty, self.covariant)
        elif kind in (DefKind.FN, DefKind.ASSOC_FN, DefKind.CTOR):
            self.add_constraints_from_sig(current, program.fn_sig(def_id), self.covariant)
        else:
            span_bug(program.def_span(def_id),
                     f"`build_constraints_for_item` unsupported for {kind.value} "
                     f"{program.def_path_str(def_id)}")

    def add_constraint(self, current: CurrentItem, index: int, variance: VarianceTerm) -> None:
        logger.debug("add_constraint(index=%d, variance=%s)", index, variance)
        self.constraints.append(Constraint(current.inferred_start + index, variance))

    # -- structural descent ---------------------------------------------------

    def add_constraints_from_sig(self, current: CurrentItem, sig: FnSig,
                                 variance: VarianceTerm) -> None:
        contra = self.contravariant_of(variance)
        for input_ty in sig.inputs:
            self.add_constraints_from_ty(current, input_ty, contra)
        self.add_constraints_from_ty(current, sig.output, variance)

    def add_constraints_from_ty(self, current: CurrentItem, ty, variance: VarianceTerm) -> None:
        match ty:
            case Prim() | Never():
                pass
            case ParamTy(index, _):
                self.add_constraint(current, index, variance)
            case Ref(region, inner, mutable):
                self.add_constraints_from_region(current, region, self.contravariant_of(variance))
                self.add_constraints_from_mt(current, inner, mutable, variance)
            case RawPtr(inner, mutable):
                self.add_constraints_from_mt(current, inner, mutable, variance)
            case Slice(inner):
                self.add_constraints_from_ty(current, inner, variance)
            case Array(inner, length):
                self.add_constraints_from_ty(current, inner, variance)
                self.add_constraints_from_const(current, length, variance)
            case Tuple(tys):
                for t in tys:
                    self.add_constraints_from_ty(current, t, variance)
            case Adt(def_id, _, substs):
                self.add_constraints_from_substs(current, def_id, substs, variance)
            case Projection(trait_ref, _):
                self.add_constraints_from_invariant_substs(current, trait_ref.substs, variance)
            case OpaqueTy(_, _, substs):
                self.add_constraints_from_invariant_substs(current, substs, variance)
            case Dynamic(principal, projections, region):
                # The region of a trait object is treated like the region of a reference.
                self.add_constraints_from_region(current, region, self.contravariant_of(variance))
                if principal is not None:
                    self.add_constraints_from_invariant_substs(current, principal.substs, variance)
                for proj in projections:
                    self.add_constraints_from_ty(current, proj.term, self.invariant_of(variance))
            case FnPtr(sig):
                self.add_constraints_from_sig(current, sig, variance)
            case _:
                span_bug(self.program.def_span(current.def_id),
                         f"unexpected type encountered in variance inference: {ty!r}")

    def add_constraints_from_mt(self, current: CurrentItem, ty, mutable: bool,
                                variance: VarianceTerm) -> None:
        if mutable:
            self.add_constraints_from_ty(current, ty, self.invariant_of(variance))
        else:
            self.add_constraints_from_ty(current, ty, variance)

    def add_constraints_from_region(self, current: CurrentItem, region,
                                    variance: VarianceTerm) -> None:
        match region:
            case EarlyBound(index, _):
                self.add_constraint(current, index, variance)
            case Static() | LateBound() | Erased():
                # Not a parameter of this item; nothing to infer.
                pass
            case _:
                span_bug(self.program.def_span(current.def_id),
                         f"unexpected region encountered in variance inference: {region!r}")

    def add_constraints_from_const(self, current: CurrentItem, ct, variance: VarianceTerm) -> None:
        match ct:
            case ConstParam(index, _):
                self.add_constraint(current, index, self.invariant_of(variance))
            case Unevaluated(_, substs):
                self.add_constraints_from_invariant_substs(current, substs, variance)
            case ConstValue():
                pass
            case _:
                span_bug(self.program.def_span(current.def_id),
                         f"unexpected const encountered in variance inference: {ct!r}")

    def add_constraints_from_arg(self, current: CurrentItem, arg: GenericArg,
                                 variance: VarianceTerm) -> None:
        if isinstance(arg, REGION_TYPES):
            self.add_constraints_from_region(current, arg, variance)
        elif isinstance(arg, CONST_TYPES):
            self.add_constraints_from_const(current, arg, variance)
        else:
            self.add_constraints_from_ty(current, arg, variance)

    def add_constraints_from_invariant_substs(self, current: CurrentItem, substs,
                                              variance: VarianceTerm) -> None:
        variance_i = self.invariant_of(variance)
        for arg in substs:
            self.add_constraints_from_arg(current, arg, variance_i)

    def add_constraints_from_substs(self, current: CurrentItem, def_id: DefId, substs,
                                    variance: VarianceTerm) -> None:
        """Arguments of `def_id<substs>`, each under the declared variance of its parameter."""
        if not substs:
            return
        for i, arg in enumerate(substs):
            variance_decl = self.declared_variance(def_id, i)
            variance_i = self.xform(variance, variance_decl)
            self.add_constraints_from_arg(current, arg, variance_i)

    def declared_variance(self, def_id: DefId, index: int) -> VarianceTerm:
        if def_id.is_local:
            # Local items are inferred alongside the current one.
            return self.terms_cx.term_for(def_id, index)
        variances = self.program.extern_variances(def_id)
        return self.constant_term(variances[index])


def add_constraints_from_crate(terms_cx: TermsContext) -> ConstraintContext:
    arena = terms_cx.arena
    cx = ConstraintContext(
        terms_cx=terms_cx,
        covariant=arena.alloc(ConstantTerm(Variance.COVARIANT)),
        contravariant=arena.alloc(ConstantTerm(Variance.CONTRAVARIANT)),
        invariant=arena.alloc(ConstantTerm(Variance.INVARIANT)),
        bivariant=arena.alloc(ConstantTerm(Variance.BIVARIANT)),
    )
    for def_id in terms_cx.inferred_starts:
        cx.build_constraints_for_item(def_id)
    logger.debug("generated %d constraints over %d terms",
                 len(cx.constraints), len(terms_cx.inferred_terms))
    return cx
