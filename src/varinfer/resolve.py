"""Name resolution: declaration syntax tree -> `Program`.

Resolution runs in two passes. The first collects every item, allocates its
`DefId`, builds its generics and records its name in the enclosing module
scope, so items may be referred to before they are declared. The second
resolves field types, signatures, bounds and aliases against those scopes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

import varinfer.decl_ast as ast
from varinfer.parser import Parser
from varinfer.errors import CompileError, format_context, get_source_context
from varinfer.items import (
    Adt, Array, Attribute, ConstParam, ConstValue, DefId, DefKind, Dynamic, EarlyBound, Erased,
    ExistentialProjection, ExistentialTraitRef, FieldDef, FnPtr, FnSig, GenericParamDef,
    GenericParamKind, Generics, Item, LateBound, Never, OpaqueTy, ParamTy, Prim, Program,
    Projection, ProjectionPredicate, RawPtr, Ref, Slice, Static, TraitPredicate, TraitRef, Tuple,
    TypeOutlives, Unevaluated, all_params, identity_substs, subst_arg,
)
from varinfer.variance.lattice import Variance

logger = logging.getLogger(__name__)

PRIMITIVES = frozenset({
    'bool', 'char', 'str',
    'i8', 'i16', 'i32', 'i64', 'i128', 'isize',
    'u8', 'u16', 'u32', 'u64', 'u128', 'usize',
    'f32', 'f64',
})

PARAM_KINDS = {
    'type': GenericParamKind.TYPE,
    'lifetime': GenericParamKind.LIFETIME,
    'const': GenericParamKind.CONST,
}

EXTERN_KINDS = {
    'struct': DefKind.STRUCT,
    'enum': DefKind.ENUM,
    'union': DefKind.UNION,
    'trait': DefKind.TRAIT,
}

UNIT = Tuple(())


class Scope:
    """Names declared in one module, chained to the enclosing module's scope."""

    def __init__(self, parent: Optional['Scope'] = None):
        self.parent = parent
        self.names: Dict[str, DefId] = {}

    def define(self, name: str, def_id: DefId) -> bool:
        if name in self.names:
            return False
        self.names[name] = def_id
        return True

    def lookup(self, name: str) -> Optional[DefId]:
        scope = self
        while scope is not None:
            if name in scope.names:
                return scope.names[name]
            scope = scope.parent
        return None


@dataclass
class TyEnv:
    """What a type inside one item can refer to"""
    scope: Scope
    params: Dict[str, GenericParamDef] = field(default_factory=dict)
    self_ty: Optional[object] = None
    late_bound: frozenset = frozenset()


@dataclass
class _Pending:
    def_id: DefId
    decl: ast.Node
    scope: Scope


class Resolver:
    def __init__(self, source: Optional[str] = None, program_name: str = "main"):
        self.program = Program(program_name)
        self.source_lines = source.splitlines() if source is not None else None
        self.pending: List[_Pending] = []
        self.alias_bodies: Dict[DefId, object] = {}
        self.expanding: set = set()
        self.impl_self_tys: Dict[DefId, object] = {}
        self.decls: Dict[DefId, _Pending] = {}

    # -- errors -------------------------------------------------------------

    def error(self, message: str, node: Optional[ast.Node] = None,
              notes: Optional[List[str]] = None) -> CompileError:
        location = node.location if node is not None else None
        context = None
        if location is not None:
            if self.source_lines is not None:
                context = format_context(self.source_lines, location.line)
            else:
                context = get_source_context(location.file, location.line)
        return CompileError(
            message=message,
            error_type="ResolveError",
            location=location,
            node=node,
            context=context,
            notes=notes or [],
        )

    # -- entry point ----------------------------------------------------------

    def resolve(self, source_file: ast.SourceFile) -> Program:
        root = Scope()
        self.collect_items(source_file.items, root, None)
        for pending in self.pending:
            self.resolve_item(pending)
        logger.debug("resolved %d items from %s", len(self.program.items), source_file.path)
        return self.program

    # -- pass 1: collection -----------------------------------------------------

    def new_item(self, decl: ast.Node, name: str, kind: DefKind, scope: Scope,
                 parent: Optional[DefId], params: List[ast.GenericParamNode] = (),
                 generics_parent: Optional[DefId] = None, with_self: bool = False,
                 is_local: bool = True, inherit_attrs: bool = True) -> Item:
        def_id = self.program.fresh_def_id(is_local)
        attrs = getattr(decl, 'attrs', []) if inherit_attrs else []
        item = Item(
            def_id=def_id,
            name=name,
            kind=kind,
            generics=self.build_generics(def_id, params, generics_parent, with_self),
            parent=parent,
            attrs=tuple(Attribute(a.name, a.value) for a in attrs),
            location=decl.location,
        )
        self.program.add_item(item)
        pending = _Pending(def_id, decl, scope)
        self.pending.append(pending)
        self.decls[def_id] = pending
        return item

    def build_generics(self, owner: DefId, params, parent: Optional[DefId],
                       with_self: bool) -> Generics:
        parent_count = self.program.generics_of(parent).count() if parent is not None else 0
        defs: List[GenericParamDef] = []
        if with_self:
            defs.append(GenericParamDef('Self', parent_count, GenericParamKind.TYPE, owner))
        seen = set()
        for p in params:
            if p.name in seen:
                raise self.error(f"the name `{p.name}` is already used for a generic parameter", p)
            seen.add(p.name)
            defs.append(GenericParamDef(p.name, parent_count + len(defs), PARAM_KINDS[p.kind], owner))
        return Generics(parent, parent_count, tuple(defs))

    def define(self, scope: Scope, name: str, item: Item, decl: ast.Node):
        if not scope.define(name, item.def_id):
            raise self.error(f"the name `{name}` is defined multiple times", decl)

    def collect_items(self, decls, scope: Scope, parent: Optional[DefId]):
        for decl in decls:
            if isinstance(decl, ast.StructDecl):
                item = self.new_item(decl, decl.name, DefKind.STRUCT, scope, parent, decl.generics)
                self.define(scope, decl.name, item, decl)
                if decl.tuple_like or decl.unit:
                    item.ctor = self.new_ctor(decl, item, item.def_id, scope).def_id
            elif isinstance(decl, ast.EnumDecl):
                item = self.new_item(decl, decl.name, DefKind.ENUM, scope, parent, decl.generics)
                self.define(scope, decl.name, item, decl)
                item.variants = tuple(self.collect_variant(v, item, scope) for v in decl.variants)
            elif isinstance(decl, ast.UnionDecl):
                item = self.new_item(decl, decl.name, DefKind.UNION, scope, parent, decl.generics)
                self.define(scope, decl.name, item, decl)
            elif isinstance(decl, ast.FnDecl):
                item = self.collect_fn(decl, DefKind.FN, scope, parent, None)
                self.define(scope, decl.name, item, decl)
            elif isinstance(decl, ast.ImplDecl):
                self.collect_impl(decl, scope, parent)
            elif isinstance(decl, ast.TraitDecl):
                item = self.new_item(decl, decl.name, DefKind.TRAIT, scope, parent, decl.generics,
                                     with_self=True)
                item.assoc_types = tuple(decl.assoc_types)
                self.define(scope, decl.name, item, decl)
                for member in decl.members:
                    self.collect_fn(member, DefKind.ASSOC_FN, scope, item.def_id, item.def_id)
            elif isinstance(decl, ast.TypeAliasDecl):
                kind = DefKind.OPAQUE if isinstance(decl.ty, ast.ImplType) else DefKind.TYPE_ALIAS
                item = self.new_item(decl, decl.name, kind, scope, parent, decl.generics)
                self.define(scope, decl.name, item, decl)
            elif isinstance(decl, ast.ModDecl):
                item = self.new_item(decl, decl.name, DefKind.MOD, scope, parent)
                self.define(scope, decl.name, item, decl)
                self.collect_items(decl.items, Scope(scope), item.def_id)
            elif isinstance(decl, ast.ExternDecl):
                self.collect_extern(decl, scope, parent)
            else:
                raise self.error(f"unsupported declaration {type(decl).__name__}", decl)

    def collect_variant(self, decl: ast.VariantNode, enum: Item, scope: Scope) -> DefId:
        variant = self.new_item(decl, decl.name, DefKind.VARIANT, scope, enum.def_id,
                                generics_parent=enum.def_id)
        if any(self.program.item(v).name == decl.name for v in enum.children[:-1]):
            raise self.error(f"the name `{decl.name}` is defined multiple times", decl)
        if decl.tuple_like or decl.unit:
            variant.ctor = self.new_ctor(decl, variant, enum.def_id, scope).def_id
        return variant.def_id

    def new_ctor(self, decl: ast.Node, owner: Item, adt: DefId, scope: Scope) -> Item:
        # Constructors share the generics of the ADT they build.
        return self.new_item(decl, "{constructor#0}", DefKind.CTOR, scope, owner.def_id,
                             generics_parent=adt, inherit_attrs=False)

    def collect_fn(self, decl: ast.FnDecl, kind: DefKind, scope: Scope,
                   parent: Optional[DefId], generics_parent: Optional[DefId]) -> Item:
        item = self.new_item(decl, decl.name, kind, scope, parent, decl.generics,
                             generics_parent=generics_parent)
        if isinstance(decl.ret, ast.ImplType):
            self.new_item(decl.ret, "{opaque#0}", DefKind.OPAQUE, scope, item.def_id,
                          generics_parent=item.def_id)
        return item

    def collect_impl(self, decl: ast.ImplDecl, scope: Scope, parent: Optional[DefId]):
        if decl.trait is not None:
            name = f"<{decl.self_ty.name} as {decl.trait.name}>"
        else:
            name = decl.self_ty.name
        impl = self.new_item(decl, name, DefKind.IMPL, scope, parent, decl.generics)
        seen = set()
        for member in decl.members:
            if member.name in seen:
                raise self.error(f"duplicate definitions with name `{member.name}`", member)
            seen.add(member.name)
            self.collect_fn(member, DefKind.ASSOC_FN, scope, impl.def_id, impl.def_id)

    def collect_extern(self, decl: ast.ExternDecl, scope: Scope, parent: Optional[DefId]):
        kind = EXTERN_KINDS[decl.kind]
        item = self.new_item(decl, decl.name, kind, scope, parent, decl.generics,
                             with_self=kind is DefKind.TRAIT, is_local=False)
        self.define(scope, decl.name, item, decl)
        if kind is DefKind.TRAIT:
            item.assoc_types = tuple(decl.assoc_types)
            return
        count = item.generics.count()
        if len(decl.variances) != count:
            raise self.error(
                f"extern {decl.kind} `{decl.name}` has {count} generic parameters "
                f"but {len(decl.variances)} variances were declared", decl)
        item.declared_variances = tuple(Variance.from_symbol(s) for s in decl.variances)

    # -- pass 2: resolution -------------------------------------------------------

    def env_for(self, def_id: DefId, scope: Scope) -> TyEnv:
        program = self.program
        params = {p.name: p for p in all_params(program.generics_of(def_id), program)}
        env = TyEnv(scope=scope, params=params)
        # Find the innermost item that gives `Self` a meaning.
        owner: Optional[DefId] = def_id
        while owner is not None:
            kind = program.def_kind(owner)
            if kind is DefKind.TRAIT:
                env.self_ty = ParamTy(0, 'Self')
                break
            if kind is DefKind.IMPL and owner != def_id:
                env.self_ty = self.impl_self_ty(owner)
                break
            owner = program.generics_of(owner).parent
        return env

    def resolve_item(self, pending: _Pending):
        item = self.program.item(pending.def_id)
        decl = pending.decl
        kind = item.kind
        if not item.def_id.is_local:
            return
        if kind in (DefKind.STRUCT, DefKind.UNION):
            item.fields = self.resolve_fields(decl.fields, self.env_for(item.def_id, pending.scope))
        elif kind is DefKind.VARIANT:
            env = self.env_for(item.generics.parent, pending.scope)
            item.fields = self.resolve_fields(decl.fields, env)
        elif kind is DefKind.CTOR:
            owner = self.program.item(item.parent)
            adt = self.program.item(item.generics.parent)
            output = Adt(adt.def_id, adt.name, identity_substs(adt.generics, self.program))
            item.sig = FnSig(tuple(f.ty for f in owner.fields), output)
        elif kind in (DefKind.FN, DefKind.ASSOC_FN):
            self.resolve_fn(item, decl, pending.scope)
        elif kind is DefKind.IMPL:
            self.impl_self_ty(item.def_id)
            if decl.trait is not None:
                env = self.env_for(item.def_id, pending.scope)
                self.resolve_trait_ref(decl.trait, item.ty, env)
        elif kind is DefKind.TYPE_ALIAS:
            self.alias_body(item.def_id)
        elif kind is DefKind.OPAQUE:
            if isinstance(decl, ast.TypeAliasDecl):
                env = self.env_for(item.def_id, pending.scope)
                self.resolve_opaque_bounds(item, decl.ty, env)
            # Opaque types in return position are filled in with their function.

    def resolve_fields(self, fields: List[ast.FieldNode], env: TyEnv):
        seen = set()
        out = []
        for f in fields:
            if f.name in seen:
                raise self.error(f"field `{f.name}` is already declared", f)
            seen.add(f.name)
            out.append(FieldDef(f.name, self.resolve_ty(f.ty, env)))
        return tuple(out)

    def resolve_fn(self, item: Item, decl: ast.FnDecl, scope: Scope):
        env = self.env_for(item.def_id, scope)
        inputs = tuple(self.resolve_ty(p.ty, env) for p in decl.params)
        if decl.ret is None:
            output = UNIT
        elif isinstance(decl.ret, ast.ImplType):
            opaque = self.program.item(item.children[0])
            output = self.resolve_opaque_bounds(opaque, decl.ret, env)
        else:
            output = self.resolve_ty(decl.ret, env)
        item.sig = FnSig(inputs, output)

    def resolve_opaque_bounds(self, opaque: Item, node: ast.ImplType, env: TyEnv) -> OpaqueTy:
        program = self.program
        self_ty = OpaqueTy(opaque.def_id, program.def_path_str(opaque.def_id),
                           identity_substs(opaque.generics, program))
        bounds = []
        for bound in node.bounds:
            if isinstance(bound, ast.LifetimeNode):
                bounds.append(TypeOutlives(self_ty, self.resolve_region(bound, env)))
                continue
            trait_ref, projections = self.resolve_trait_ref(bound, self_ty, env)
            bounds.append(TraitPredicate(trait_ref))
            bounds.extend(ProjectionPredicate(trait_ref, name, ty) for name, ty in projections)
        opaque.bounds = tuple(bounds)
        return self_ty

    def impl_self_ty(self, def_id: DefId):
        if def_id not in self.impl_self_tys:
            pending = self.decls[def_id]
            env = self.env_for(def_id, pending.scope)
            ty = self.resolve_ty(pending.decl.self_ty, env)
            self.impl_self_tys[def_id] = ty
            self.program.item(def_id).ty = ty
        return self.impl_self_tys[def_id]

    def alias_body(self, def_id: DefId):
        if def_id in self.alias_bodies:
            return self.alias_bodies[def_id]
        pending = self.decls[def_id]
        if def_id in self.expanding:
            raise self.error(f"cycle detected when expanding type alias `{pending.decl.name}`",
                             pending.decl)
        self.expanding.add(def_id)
        body = self.resolve_ty(pending.decl.ty, self.env_for(def_id, pending.scope))
        self.expanding.discard(def_id)
        self.alias_bodies[def_id] = body
        self.program.item(def_id).ty = body
        return body

    # -- types ------------------------------------------------------------------

    def resolve_ty(self, node, env: TyEnv):
        if isinstance(node, ast.PathType):
            return self.resolve_path_ty(node, env)
        if isinstance(node, ast.RefType):
            region = self.resolve_region(node.lifetime, env) if node.lifetime else Erased()
            return Ref(region, self.resolve_ty(node.ty, env), node.mutable)
        if isinstance(node, ast.PtrType):
            return RawPtr(self.resolve_ty(node.ty, env), node.mutable)
        if isinstance(node, ast.SliceType):
            return Slice(self.resolve_ty(node.ty, env))
        if isinstance(node, ast.ArrayType):
            return Array(self.resolve_ty(node.ty, env), self.resolve_const(node.length, env))
        if isinstance(node, ast.TupleType):
            return Tuple(tuple(self.resolve_ty(t, env) for t in node.tys))
        if isinstance(node, ast.FnType):
            inner = replace(env, late_bound=env.late_bound | frozenset(node.bound_lifetimes))
            inputs = tuple(self.resolve_ty(t, inner) for t in node.inputs)
            output = self.resolve_ty(node.output, inner) if node.output is not None else UNIT
            return FnPtr(FnSig(inputs, output, tuple(node.bound_lifetimes)))
        if isinstance(node, ast.DynType):
            return self.resolve_dyn(node, env)
        if isinstance(node, ast.QualifiedPath):
            self_ty = self.resolve_ty(node.self_ty, env)
            trait_ref, _ = self.resolve_trait_ref(node.trait, self_ty, env)
            self.check_assoc_type(trait_ref.def_id, node.name, node)
            return Projection(trait_ref, node.name)
        if isinstance(node, ast.NeverType):
            return Never()
        if isinstance(node, ast.ImplType):
            raise self.error("`impl Trait` is only allowed in function return types and type aliases",
                             node)
        raise self.error(f"expected type, found {type(node).__name__}", node)

    def resolve_path_ty(self, node: ast.PathType, env: TyEnv):
        name = node.name
        if name == 'Self' and env.self_ty is not None and 'Self' not in env.params:
            self.no_args(node)
            return env.self_ty
        param = env.params.get(name)
        if param is not None:
            self.no_args(node)
            if param.kind is not GenericParamKind.TYPE:
                raise self.error(f"expected type, found {param.kind.value} parameter `{name}`", node)
            return ParamTy(param.index, name)
        def_id = env.scope.lookup(name)
        if def_id is None:
            if name in PRIMITIVES:
                self.no_args(node)
                return Prim(name)
            if name == 'Self':
                raise self.error("`Self` is only available in impls and traits", node)
            raise self.error(f"cannot find type `{name}` in this scope", node)

        program = self.program
        item = program.item(def_id)
        if item.kind.is_adt():
            substs = self.resolve_args(node, item, env)
            return Adt(def_id, item.name, substs)
        if item.kind is DefKind.TYPE_ALIAS:
            substs = self.resolve_args(node, item, env)
            return subst_arg(self.alias_body(def_id), substs)
        if item.kind is DefKind.OPAQUE:
            substs = self.resolve_args(node, item, env)
            return OpaqueTy(def_id, program.def_path_str(def_id), substs)
        raise self.error(f"expected type, found {item.kind.value} `{name}`", node)

    def no_args(self, node: ast.PathType):
        if node.args:
            raise self.error(f"`{node.name}` does not take generic arguments", node)

    def resolve_args(self, node: ast.PathType, item: Item, env: TyEnv, skip_self: bool = False):
        """Generic arguments of `node` checked against the parameters of `item`"""
        params = all_params(item.generics, self.program)
        if skip_self:
            params = params[1:]
        args = [a for a in node.args if not isinstance(a, ast.AssocBinding)]
        if len(args) != len(node.args) and item.kind is not DefKind.TRAIT:
            raise self.error("associated type bindings are not allowed here", node)

        non_lifetimes = [p for p in params if p.kind is not GenericParamKind.LIFETIME]
        if len(args) == len(non_lifetimes) and not any(isinstance(a, ast.LifetimeNode) for a in args):
            # Lifetimes left out altogether are elided.
            remaining = iter(args)
            return tuple(Erased() if p.kind is GenericParamKind.LIFETIME
                         else self.resolve_arg_for(next(remaining), p, env)
                         for p in params)
        if len(args) != len(params):
            raise self.error(
                f"`{node.name}` takes {len(params)} generic arguments "
                f"but {len(args)} were supplied", node)
        return tuple(self.resolve_arg_for(a, p, env) for a, p in zip(args, params))

    def resolve_arg_for(self, arg, param: GenericParamDef, env: TyEnv):
        if param.kind is GenericParamKind.LIFETIME:
            if not isinstance(arg, ast.LifetimeNode):
                raise self.error(f"expected a lifetime argument for `{param.name}`", arg)
            return self.resolve_region(arg, env)
        if param.kind is GenericParamKind.CONST:
            if isinstance(arg, ast.PathType) and arg.args:
                raise self.error(f"expected a const argument for `{param.name}`", arg)
            if not isinstance(arg, (ast.ConstLiteral, ast.ConstBlock, ast.PathType)):
                raise self.error(f"expected a const argument for `{param.name}`", arg)
            return self.resolve_const(arg, env)
        if isinstance(arg, (ast.LifetimeNode, ast.ConstLiteral, ast.ConstBlock)):
            raise self.error(f"expected a type argument for `{param.name}`", arg)
        return self.resolve_ty(arg, env)

    def resolve_free_arg(self, arg, env: TyEnv):
        """An argument whose kind is told by its own shape (inside const blocks)"""
        if isinstance(arg, ast.LifetimeNode):
            return self.resolve_region(arg, env)
        if isinstance(arg, (ast.ConstLiteral, ast.ConstBlock)):
            return self.resolve_const(arg, env)
        if isinstance(arg, ast.AssocBinding):
            raise self.error("associated type bindings are not allowed here", arg)
        if isinstance(arg, ast.PathType) and not arg.args:
            param = env.params.get(arg.name)
            if param is not None and param.kind is GenericParamKind.CONST:
                return ConstParam(param.index, param.name)
        return self.resolve_ty(arg, env)

    def resolve_const(self, node, env: TyEnv):
        if isinstance(node, ast.ConstLiteral):
            return ConstValue(node.value)
        if isinstance(node, ast.ConstBlock):
            return Unevaluated(node.name, tuple(self.resolve_free_arg(a, env) for a in node.args))
        param = env.params.get(node.name)
        if param is None or param.kind is not GenericParamKind.CONST:
            raise self.error(f"cannot find const parameter `{node.name}` in this scope", node)
        return ConstParam(param.index, param.name)

    def resolve_region(self, node: ast.LifetimeNode, env: TyEnv):
        name = node.name
        if name == "'static":
            return Static()
        if name == "'_":
            return Erased()
        if name in env.late_bound:
            return LateBound(name)
        param = env.params.get(name)
        if param is None or param.kind is not GenericParamKind.LIFETIME:
            raise self.error(f"use of undeclared lifetime name `{name}`", node)
        return EarlyBound(param.index, name)

    def resolve_dyn(self, node: ast.DynType, env: TyEnv) -> Dynamic:
        principal = None
        projections = []
        region = None
        for bound in node.bounds:
            if isinstance(bound, ast.LifetimeNode):
                if region is not None:
                    raise self.error("only a single explicit lifetime bound is permitted", bound)
                region = self.resolve_region(bound, env)
                continue
            if principal is not None:
                raise self.error("only one trait can be used in a trait object", bound)
            trait = self.lookup_trait(bound, env)
            substs = self.resolve_args(bound, trait, env, skip_self=True)
            principal = ExistentialTraitRef(trait.def_id, trait.name, substs)
            for name, ty in self.resolve_bindings(bound, trait, env):
                projections.append(ExistentialProjection(name, ty))
        if principal is None and not projections:
            raise self.error("at least one trait is required for an object type", node)
        return Dynamic(principal, tuple(projections), region if region is not None else Static())

    # -- traits -----------------------------------------------------------------

    def lookup_trait(self, node: ast.PathType, env: TyEnv) -> Item:
        def_id = env.scope.lookup(node.name)
        if def_id is None:
            raise self.error(f"cannot find trait `{node.name}` in this scope", node)
        item = self.program.item(def_id)
        if item.kind is not DefKind.TRAIT:
            raise self.error(f"expected trait, found {item.kind.value} `{node.name}`", node)
        return item

    def resolve_trait_ref(self, node: ast.PathType, self_ty, env: TyEnv):
        """`self_ty: Trait<args, Name = ty>` -> (trait ref, [(Name, ty)])"""
        trait = self.lookup_trait(node, env)
        substs = self.resolve_args(node, trait, env, skip_self=True)
        trait_ref = TraitRef(trait.def_id, trait.name, (self_ty,) + substs)
        return trait_ref, self.resolve_bindings(node, trait, env)

    def resolve_bindings(self, node: ast.PathType, trait: Item, env: TyEnv):
        out = []
        for arg in node.args:
            if isinstance(arg, ast.AssocBinding):
                self.check_assoc_type(trait.def_id, arg.name, arg)
                out.append((arg.name, self.resolve_ty(arg.ty, env)))
        return out

    def check_assoc_type(self, trait: DefId, name: str, node: ast.Node):
        item = self.program.item(trait)
        if name not in item.assoc_types:
            raise self.error(f"associated type `{name}` not found for `{item.name}`", node)


def resolve_source_file(source_file: ast.SourceFile, source: Optional[str] = None) -> Program:
    return Resolver(source).resolve(source_file)


def parse_program(source: str, file_path: str = "<string>") -> Program:
    """Parse and resolve declarations in one go"""
    source_file = Parser().parse(source, file_path)
    return resolve_source_file(source_file, source)
