"""Resolved item model consumed by the variance engine.

Items are addressed by `DefId` and tagged with a `DefKind`; the payload an
item carries depends on its kind (fields for structs/unions/variants, a
signature for functions and constructors, bounds for opaque types and so
on). Types, regions and consts are immutable values; generic parameters are
referred to by their index into the owning item's `Generics`, parent
parameters first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Iterator, Union

from .errors import SourceLocation, span_bug

if TYPE_CHECKING:
    from .variance.lattice import Variance


@dataclass(frozen=True, slots=True)
class DefId:
    index: int
    is_local: bool = True

    def __repr__(self) -> str:
        return f"DefId({self.index}{'' if self.is_local else ', extern'})"


class DefKind(Enum):
    MOD = "mod"
    STRUCT = "struct"
    ENUM = "enum"
    UNION = "union"
    VARIANT = "variant"
    CTOR = "ctor"
    FN = "fn"
    ASSOC_FN = "assoc fn"
    OPAQUE = "opaque type"
    TRAIT = "trait"
    IMPL = "impl"
    TYPE_ALIAS = "type alias"

    def is_adt(self) -> bool:
        return self in (DefKind.STRUCT, DefKind.ENUM, DefKind.UNION)


class GenericParamKind(Enum):
    TYPE = "type"
    LIFETIME = "lifetime"
    CONST = "const"


@dataclass(frozen=True, slots=True)
class GenericParamDef:
    name: str
    index: int
    kind: GenericParamKind
    owner: DefId


@dataclass(frozen=True, slots=True)
class Generics:
    parent: DefId | None
    parent_count: int
    params: tuple[GenericParamDef, ...] = ()

    def count(self) -> int:
        return self.parent_count + len(self.params)


# ---------------------------------------------------------------------------
# Regions, consts and types
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class EarlyBound:
    """A lifetime parameter of the enclosing item, by generics index."""
    index: int
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class LateBound:
    """A lifetime bound by a `for<...>` binder inside a type."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Static:
    def __str__(self) -> str:
        return "'static"


@dataclass(frozen=True, slots=True)
class Erased:
    def __str__(self) -> str:
        return "'_"


Region = Union[EarlyBound, LateBound, Static, Erased]


@dataclass(frozen=True, slots=True)
class ConstParam:
    index: int
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class ConstValue:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class Unevaluated:
    """A const expression `{ name::<substs> }` whose value depends on generics."""
    name: str
    substs: tuple["GenericArg", ...]

    def __str__(self) -> str:
        return "{" + self.name + _fmt_args(self.substs, turbofish=True) + "}"


Const = Union[ConstParam, ConstValue, Unevaluated]


@dataclass(frozen=True, slots=True)
class Prim:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Never:
    def __str__(self) -> str:
        return "!"


@dataclass(frozen=True, slots=True)
class ParamTy:
    index: int
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Ref:
    region: Region
    ty: "Ty"
    mutable: bool = False

    def __str__(self) -> str:
        r = "" if isinstance(self.region, Erased) else f"{self.region} "
        return f"&{r}{'mut ' if self.mutable else ''}{self.ty}"


@dataclass(frozen=True, slots=True)
class RawPtr:
    ty: "Ty"
    mutable: bool = False

    def __str__(self) -> str:
        return f"*{'mut' if self.mutable else 'const'} {self.ty}"


@dataclass(frozen=True, slots=True)
class Slice:
    ty: "Ty"

    def __str__(self) -> str:
        return f"[{self.ty}]"


@dataclass(frozen=True, slots=True)
class Array:
    ty: "Ty"
    length: Const

    def __str__(self) -> str:
        return f"[{self.ty}; {self.length}]"


@dataclass(frozen=True, slots=True)
class Tuple:
    tys: tuple["Ty", ...]

    def __str__(self) -> str:
        if len(self.tys) == 1:
            return f"({self.tys[0]},)"
        return "(" + ", ".join(str(t) for t in self.tys) + ")"


@dataclass(frozen=True, slots=True)
class Adt:
    def_id: DefId
    name: str
    substs: tuple["GenericArg", ...] = ()

    def __str__(self) -> str:
        return self.name + _fmt_args(self.substs)


@dataclass(frozen=True, slots=True)
class FnSig:
    inputs: tuple["Ty", ...]
    output: "Ty"
    bound_regions: tuple[str, ...] = ()

    def __str__(self) -> str:
        binder = f"for<{', '.join(self.bound_regions)}> " if self.bound_regions else ""
        ins = ", ".join(str(t) for t in self.inputs)
        return f"{binder}fn({ins}) -> {self.output}"


@dataclass(frozen=True, slots=True)
class FnPtr:
    sig: FnSig

    def __str__(self) -> str:
        return str(self.sig)


@dataclass(frozen=True, slots=True)
class TraitRef:
    """A trait applied to arguments; `substs[0]` is the self type."""
    def_id: DefId
    name: str
    substs: tuple["GenericArg", ...]

    @property
    def self_ty(self) -> "Ty":
        return self.substs[0]  # type: ignore[return-value]

    def __str__(self) -> str:
        return f"<{self.substs[0]} as {self.name}{_fmt_args(self.substs[1:])}>"


@dataclass(frozen=True, slots=True)
class ExistentialTraitRef:
    """A trait reference with the self type erased, as used by `dyn`."""
    def_id: DefId
    name: str
    substs: tuple["GenericArg", ...]

    def __str__(self) -> str:
        return self.name + _fmt_args(self.substs)


@dataclass(frozen=True, slots=True)
class ExistentialProjection:
    name: str
    term: "Ty"

    def __str__(self) -> str:
        return f"{self.name} = {self.term}"


@dataclass(frozen=True, slots=True)
class Dynamic:
    principal: ExistentialTraitRef | None
    projections: tuple[ExistentialProjection, ...]
    region: Region

    def __str__(self) -> str:
        parts = []
        if self.principal is not None:
            parts.append(str(self.principal))
        parts.extend(str(p) for p in self.projections)
        return f"dyn {' + '.join(parts)} + {self.region}"


@dataclass(frozen=True, slots=True)
class Projection:
    trait_ref: TraitRef
    name: str

    def __str__(self) -> str:
        return f"{self.trait_ref}::{self.name}"


@dataclass(frozen=True, slots=True)
class OpaqueTy:
    def_id: DefId
    name: str
    substs: tuple["GenericArg", ...] = ()

    def __str__(self) -> str:
        return self.name + _fmt_args(self.substs)


Ty = Union[Prim, Never, ParamTy, Ref, RawPtr, Slice, Array, Tuple, Adt, FnPtr,
           Dynamic, Projection, OpaqueTy]
GenericArg = Union[Ty, Region, Const]

REGION_TYPES = (EarlyBound, LateBound, Static, Erased)
CONST_TYPES = (ConstParam, ConstValue, Unevaluated)


def _fmt_args(substs: Iterable[GenericArg], turbofish: bool = False) -> str:
    substs = tuple(substs)
    if not substs:
        return ""
    return ("::" if turbofish else "") + "<" + ", ".join(str(a) for a in substs) + ">"


# ---------------------------------------------------------------------------
# Predicates (bounds of opaque types)
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class TraitPredicate:
    trait_ref: TraitRef

    def __str__(self) -> str:
        return f"{self.trait_ref.self_ty}: {self.trait_ref.name}{_fmt_args(self.trait_ref.substs[1:])}"


@dataclass(frozen=True, slots=True)
class ProjectionPredicate:
    trait_ref: TraitRef
    name: str
    term: Ty

    def __str__(self) -> str:
        return f"{self.trait_ref}::{self.name} == {self.term}"


@dataclass(frozen=True, slots=True)
class TypeOutlives:
    ty: Ty
    region: Region

    def __str__(self) -> str:
        return f"{self.ty}: {self.region}"


@dataclass(frozen=True, slots=True)
class RegionOutlives:
    longer: Region
    shorter: Region

    def __str__(self) -> str:
        return f"{self.longer}: {self.shorter}"


Predicate = Union[TraitPredicate, ProjectionPredicate, TypeOutlives, RegionOutlives]


# ---------------------------------------------------------------------------
# Visiting and substitution
# ---------------------------------------------------------------------------

class TypeVisitor:
    """Structural walk over types, regions and consts.

    Subclasses override `visit_ty`, `visit_region` or `visit_const` and call
    the matching `super_visit_*` to keep descending.
    """

    def visit_arg(self, arg: GenericArg) -> None:
        if isinstance(arg, REGION_TYPES):
            self.visit_region(arg)
        elif isinstance(arg, CONST_TYPES):
            self.visit_const(arg)
        else:
            self.visit_ty(arg)

    def visit_ty(self, ty: Ty) -> None:
        self.super_visit_ty(ty)

    def visit_region(self, region: Region) -> None:
        pass

    def visit_const(self, ct: Const) -> None:
        if isinstance(ct, Unevaluated):
            for arg in ct.substs:
                self.visit_arg(arg)

    def visit_predicate(self, pred: Predicate) -> None:
        match pred:
            case TraitPredicate(trait_ref):
                self.visit_args(trait_ref.substs)
            case ProjectionPredicate(trait_ref, _, term):
                self.visit_args(trait_ref.substs)
                self.visit_ty(term)
            case TypeOutlives(ty, region):
                self.visit_ty(ty)
                self.visit_region(region)
            case RegionOutlives(longer, shorter):
                self.visit_region(longer)
                self.visit_region(shorter)

    def visit_args(self, substs: Iterable[GenericArg]) -> None:
        for arg in substs:
            self.visit_arg(arg)

    def super_visit_ty(self, ty: Ty) -> None:
        match ty:
            case Ref(region, inner, _):
                self.visit_region(region)
                self.visit_ty(inner)
            case RawPtr(inner, _) | Slice(inner):
                self.visit_ty(inner)
            case Array(inner, length):
                self.visit_ty(inner)
                self.visit_const(length)
            case Tuple(tys):
                for t in tys:
                    self.visit_ty(t)
            case Adt(substs=substs) | OpaqueTy(substs=substs):
                self.visit_args(substs)
            case FnPtr(sig):
                for t in sig.inputs:
                    self.visit_ty(t)
                self.visit_ty(sig.output)
            case Dynamic(principal, projections, region):
                if principal is not None:
                    self.visit_args(principal.substs)
                for proj in projections:
                    self.visit_ty(proj.term)
                self.visit_region(region)
            case Projection(trait_ref, _):
                self.visit_args(trait_ref.substs)


def subst_arg(arg: GenericArg, substs: tuple[GenericArg, ...]) -> GenericArg:
    """Replace early-bound parameters in `arg` by the matching entries of `substs`."""
    match arg:
        case ParamTy(index, _) | EarlyBound(index, _) | ConstParam(index, _):
            return substs[index]
        case LateBound() | Static() | Erased() | ConstValue() | Prim() | Never():
            return arg
        case Unevaluated(name, inner):
            return Unevaluated(name, _subst_all(inner, substs))
        case Ref(region, ty, mutable):
            return Ref(subst_arg(region, substs), subst_arg(ty, substs), mutable)
        case RawPtr(ty, mutable):
            return RawPtr(subst_arg(ty, substs), mutable)
        case Slice(ty):
            return Slice(subst_arg(ty, substs))
        case Array(ty, length):
            return Array(subst_arg(ty, substs), subst_arg(length, substs))
        case Tuple(tys):
            return Tuple(_subst_all(tys, substs))
        case Adt(def_id, name, inner):
            return Adt(def_id, name, _subst_all(inner, substs))
        case OpaqueTy(def_id, name, inner):
            return OpaqueTy(def_id, name, _subst_all(inner, substs))
        case FnPtr(sig):
            return FnPtr(FnSig(_subst_all(sig.inputs, substs), subst_arg(sig.output, substs),
                               sig.bound_regions))
        case Dynamic(principal, projections, region):
            if principal is not None:
                principal = ExistentialTraitRef(principal.def_id, principal.name,
                                                _subst_all(principal.substs, substs))
            projections = tuple(ExistentialProjection(p.name, subst_arg(p.term, substs))
                                for p in projections)
            return Dynamic(principal, projections, subst_arg(region, substs))
        case Projection(trait_ref, name):
            return Projection(subst_trait_ref(trait_ref, substs), name)
    span_bug(None, f"cannot substitute into {arg!r}")


def _subst_all(args: Iterable[GenericArg], substs: tuple[GenericArg, ...]) -> tuple:
    return tuple(subst_arg(a, substs) for a in args)


def subst_trait_ref(trait_ref: TraitRef, substs: tuple[GenericArg, ...]) -> TraitRef:
    return TraitRef(trait_ref.def_id, trait_ref.name, _subst_all(trait_ref.substs, substs))


def subst_predicate(pred: Predicate, substs: tuple[GenericArg, ...]) -> Predicate:
    match pred:
        case TraitPredicate(trait_ref):
            return TraitPredicate(subst_trait_ref(trait_ref, substs))
        case ProjectionPredicate(trait_ref, name, term):
            return ProjectionPredicate(subst_trait_ref(trait_ref, substs), name,
                                       subst_arg(term, substs))
        case TypeOutlives(ty, region):
            return TypeOutlives(subst_arg(ty, substs), subst_arg(region, substs))
        case RegionOutlives(longer, shorter):
            return RegionOutlives(subst_arg(longer, substs), subst_arg(shorter, substs))
    span_bug(None, f"cannot substitute into predicate {pred!r}")


# ---------------------------------------------------------------------------
# Items and the program
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Attribute:
    name: str
    value: str | None = None

    def __str__(self) -> str:
        if self.value is None:
            return f"#[{self.name}]"
        return f'#[{self.name} = "{self.value}"]'


@dataclass(frozen=True, slots=True)
class FieldDef:
    name: str
    ty: Ty


@dataclass(slots=True)
class Item:
    def_id: DefId
    name: str
    kind: DefKind
    generics: Generics
    parent: DefId | None = None       # lexical parent (module, impl, enum, ...)
    attrs: tuple[Attribute, ...] = ()
    location: SourceLocation | None = None
    children: list[DefId] = field(default_factory=list)
    # STRUCT / UNION / VARIANT
    fields: tuple[FieldDef, ...] = ()
    # ENUM
    variants: tuple[DefId, ...] = ()
    # STRUCT / VARIANT with a tuple-like constructor
    ctor: DefId | None = None
    # FN / ASSOC_FN / CTOR
    sig: FnSig | None = None
    # OPAQUE
    bounds: tuple[Predicate, ...] = ()
    # TRAIT
    assoc_types: tuple[str, ...] = ()
    # TYPE_ALIAS, IMPL (self type)
    ty: Ty | None = None
    # extern items only
    declared_variances: tuple[Variance, ...] | None = None

    def attr(self, name: str) -> Attribute | None:
        for a in self.attrs:
            if a.name == name:
                return a
        return None

    @property
    def lang(self) -> str | None:
        a = self.attr("lang")
        return a.value if a is not None else None


class Program:
    """All items of one compilation, indexed by DefId.

    This is the structural collaborator of the variance engine: it answers
    generics lookups and gives access to field types, signatures and bounds.
    """

    def __init__(self, name: str = "main") -> None:
        self.name = name
        self.items: dict[DefId, Item] = {}
        self.roots: list[DefId] = []
        self._next_local = 0
        self._next_extern = 0

    # -- construction -----------------------------------------------------

    def fresh_def_id(self, is_local: bool = True) -> DefId:
        if is_local:
            self._next_local += 1
            return DefId(self._next_local)
        self._next_extern += 1
        return DefId(self._next_extern, is_local=False)

    def add_item(self, item: Item) -> Item:
        self.items[item.def_id] = item
        if item.parent is None:
            self.roots.append(item.def_id)
        else:
            self.items[item.parent].children.append(item.def_id)
        return item

    # -- queries ------------------------------------------------------------

    def item(self, def_id: DefId) -> Item:
        try:
            return self.items[def_id]
        except KeyError:
            span_bug(None, f"no item for {def_id!r}")

    def def_kind(self, def_id: DefId) -> DefKind:
        return self.item(def_id).kind

    def generics_of(self, def_id: DefId) -> Generics:
        return self.item(def_id).generics

    def def_span(self, def_id: DefId) -> SourceLocation | None:
        return self.item(def_id).location

    def def_path_str(self, def_id: DefId) -> str:
        item = self.item(def_id)
        names = [item.name]
        while item.parent is not None:
            item = self.item(item.parent)
            names.append(item.name)
        return "::".join(reversed(names))

    def find(self, path: str) -> DefId | None:
        """The item whose `def_path_str` is `path`, if any.

        Impls are skipped: an inherent impl shares its path with its self type.
        """
        for def_id, item in self.items.items():
            if item.kind is DefKind.IMPL:
                continue
            if self.def_path_str(def_id) == path:
                return def_id
        return None

    def local_items(self) -> Iterator[Item]:
        """Local items in definition order."""
        for def_id in sorted(self.items, key=lambda d: d.index):
            if def_id.is_local:
                yield self.items[def_id]

    def fields_of(self, def_id: DefId) -> tuple[FieldDef, ...]:
        """Fields of a struct or union, or every field of every variant of an enum."""
        item = self.item(def_id)
        if item.kind is DefKind.ENUM:
            return tuple(f for v in item.variants for f in self.item(v).fields)
        return item.fields

    def fn_sig(self, def_id: DefId) -> FnSig:
        sig = self.item(def_id).sig
        if sig is None:
            span_bug(self.def_span(def_id), f"{self.def_path_str(def_id)} has no signature")
        return sig

    def explicit_item_bounds(self, def_id: DefId) -> tuple[Predicate, ...]:
        return self.item(def_id).bounds

    def extern_variances(self, def_id: DefId) -> tuple[Variance, ...]:
        declared = self.item(def_id).declared_variances
        if declared is None:
            span_bug(self.def_span(def_id),
                     f"extern item {self.def_path_str(def_id)} has no declared variances")
        return declared


def identity_substs(generics: Generics, program: Program) -> tuple[GenericArg, ...]:
    """Each parameter of `generics` (parents included) mapped to itself."""
    out: list[GenericArg] = []
    for p in all_params(generics, program):
        if p.kind is GenericParamKind.LIFETIME:
            out.append(EarlyBound(p.index, p.name))
        elif p.kind is GenericParamKind.CONST:
            out.append(ConstParam(p.index, p.name))
        else:
            out.append(ParamTy(p.index, p.name))
    return tuple(out)


def all_params(generics: Generics, program: Program) -> list[GenericParamDef]:
    """Parameters of `generics` and all its parents, in index order."""
    chain = [generics]
    while chain[-1].parent is not None:
        chain.append(program.generics_of(chain[-1].parent))
    out: list[GenericParamDef] = []
    for g in reversed(chain):
        out.extend(g.params)
    return out
