"""Syntax tree of the declaration notation, as produced by the parser.

Names are still unresolved here; `resolve.py` turns a `SourceFile` into a
`Program` of items.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from .errors import SourceLocation


@dataclass
class Node:
    location: Optional[SourceLocation] = field(default=None, kw_only=True, compare=False)


@dataclass
class AttrNode(Node):
    name: str
    value: Optional[str] = None


@dataclass
class GenericParamNode(Node):
    name: str
    kind: str  # 'type' | 'lifetime' | 'const'
    const_ty: Optional["TypeNode"] = None


# -- types ------------------------------------------------------------------

@dataclass
class LifetimeNode(Node):
    name: str  # including the leading quote


@dataclass
class AssocBinding(Node):
    name: str
    ty: "TypeNode"


@dataclass
class ConstLiteral(Node):
    value: int


@dataclass
class ConstBlock(Node):
    """`{ name }` or `{ name::<args> }`"""
    name: str
    args: List["GenericArgNode"] = field(default_factory=list)


@dataclass
class PathType(Node):
    name: str
    args: List["GenericArgNode"] = field(default_factory=list)


@dataclass
class RefType(Node):
    lifetime: Optional[LifetimeNode]
    ty: "TypeNode"
    mutable: bool = False


@dataclass
class PtrType(Node):
    ty: "TypeNode"
    mutable: bool = False


@dataclass
class SliceType(Node):
    ty: "TypeNode"


@dataclass
class ArrayType(Node):
    ty: "TypeNode"
    length: "ConstArgNode"


@dataclass
class TupleType(Node):
    tys: List["TypeNode"] = field(default_factory=list)


@dataclass
class FnType(Node):
    inputs: List["TypeNode"]
    output: Optional["TypeNode"] = None
    bound_lifetimes: List[str] = field(default_factory=list)


@dataclass
class DynType(Node):
    bounds: List["BoundNode"]


@dataclass
class QualifiedPath(Node):
    self_ty: "TypeNode"
    trait: PathType
    name: str


@dataclass
class NeverType(Node):
    pass


@dataclass
class ImplType(Node):
    """`impl Bounds` in return position or on the right of a type alias."""
    bounds: List["BoundNode"]


TypeNode = Union[PathType, RefType, PtrType, SliceType, ArrayType, TupleType, FnType,
                 DynType, QualifiedPath, NeverType]
ConstArgNode = Union[ConstLiteral, ConstBlock, PathType]
GenericArgNode = Union[TypeNode, LifetimeNode, ConstLiteral, ConstBlock, AssocBinding]
BoundNode = Union[PathType, LifetimeNode]


# -- items ------------------------------------------------------------------

@dataclass
class FieldNode(Node):
    name: str
    ty: TypeNode


@dataclass
class ItemDecl(Node):
    attrs: List[AttrNode] = field(default_factory=list, kw_only=True)


@dataclass
class StructDecl(ItemDecl):
    name: str
    generics: List[GenericParamNode]
    fields: List[FieldNode]
    tuple_like: bool = False
    unit: bool = False


@dataclass
class VariantNode(ItemDecl):
    name: str
    fields: List[FieldNode]
    tuple_like: bool = False
    unit: bool = False


@dataclass
class EnumDecl(ItemDecl):
    name: str
    generics: List[GenericParamNode]
    variants: List[VariantNode]


@dataclass
class UnionDecl(ItemDecl):
    name: str
    generics: List[GenericParamNode]
    fields: List[FieldNode]


@dataclass
class FnDecl(ItemDecl):
    name: str
    generics: List[GenericParamNode]
    params: List[FieldNode]
    ret: Optional[Union[TypeNode, ImplType]] = None


@dataclass
class ImplDecl(ItemDecl):
    generics: List[GenericParamNode]
    self_ty: PathType
    trait: Optional[PathType]
    members: List[FnDecl]


@dataclass
class TraitDecl(ItemDecl):
    name: str
    generics: List[GenericParamNode]
    assoc_types: List[str]
    members: List[FnDecl]


@dataclass
class TypeAliasDecl(ItemDecl):
    name: str
    generics: List[GenericParamNode]
    ty: Union[TypeNode, ImplType]


@dataclass
class ModDecl(ItemDecl):
    name: str
    items: List[ItemDecl]


@dataclass
class ExternDecl(ItemDecl):
    kind: str  # 'struct' | 'enum' | 'union' | 'trait'
    name: str
    generics: List[GenericParamNode]
    variances: List[str] = field(default_factory=list)
    assoc_types: List[str] = field(default_factory=list)


@dataclass
class SourceFile(Node):
    items: List[ItemDecl]
    path: str = "<string>"
