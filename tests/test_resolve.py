import unittest
from pathlib import Path
import sys
sys.path.append(str(Path(__file__).parent.parent / 'src'))

from varinfer.resolve import parse_program
from varinfer.errors import CompileError
from varinfer.items import (
    Adt, DefKind, Dynamic, EarlyBound, Erased, ExistentialTraitRef, FnPtr, FnSig,
    GenericParamKind, LateBound, OpaqueTy, ParamTy, Prim, Ref, Static, TraitPredicate,
    TraitRef, Tuple, TypeOutlives,
)
from varinfer.variance.lattice import Variance
from varinfer.variance.queries import VarianceSession

class TestResolveErrors(unittest.TestCase):
    def assertResolveError(self, code, fragment):
        with self.assertRaises(CompileError) as cm:
            parse_program(code)
        self.assertEqual(cm.exception.error_type, "ResolveError")
        self.assertIn(fragment, cm.exception.message)
        return cm.exception

    def test_unknown_type(self):
        error = self.assertResolveError("struct S {\n    x: Missing,\n}",
                                        "cannot find type `Missing` in this scope")
        self.assertEqual(error.location.line, 2)
        self.assertIn("x: Missing", error.context)

    def test_wrong_number_of_generic_arguments(self):
        self.assertResolveError("struct Box1<T> { t: T }\nstruct S { b: Box1<u8, u8> }",
                                "`Box1` takes 1 generic arguments but 2 were supplied")

    def test_undeclared_lifetime(self):
        self.assertResolveError("struct S<T> { r: &'a T }", "use of undeclared lifetime name `'a`")

    def test_duplicate_item_name(self):
        self.assertResolveError("struct A;\nenum A {}", "the name `A` is defined multiple times")

    def test_duplicate_generic_parameter(self):
        self.assertResolveError("struct S<T, T> { t: T }",
                                "the name `T` is already used for a generic parameter")

    def test_duplicate_field(self):
        self.assertResolveError("struct S { a: u8, a: u8 }", "field `a` is already declared")

    def test_alias_cycle(self):
        self.assertResolveError("type A = B;\ntype B = A;",
                                "cycle detected when expanding type alias `A`")

    def test_extern_variance_count(self):
        self.assertResolveError("extern struct Vec<T> = [+, -];",
                                "has 1 generic parameters but 2 variances were declared")

    def test_self_outside_impl(self):
        self.assertResolveError("struct S { s: Self }",
                                "`Self` is only available in impls and traits")

    def test_trait_used_as_type(self):
        self.assertResolveError("trait Tr;\nstruct S { t: Tr }", "expected type, found trait `Tr`")

    def test_unknown_associated_type(self):
        self.assertResolveError("trait Iterator { type Item; }\nstruct S<I> { x: <I as Iterator>::Next }",
                                "associated type `Next` not found for `Iterator`")

    def test_items_in_modules_are_not_visible_outside(self):
        self.assertResolveError("mod m { struct Inner; }\nstruct S { i: Inner }",
                                "cannot find type `Inner`")

class TestResolve(unittest.TestCase):
    def test_generics_of_associated_functions(self):
        program = parse_program('''
        struct W<T> { t: T }
        impl<T> W<T> { fn new<'a, U>(x: &'a U) -> T; }
        ''')
        new = program.item(program.find("W::new"))
        self.assertEqual(new.kind, DefKind.ASSOC_FN)
        self.assertEqual(new.generics.parent_count, 1)
        self.assertEqual([(p.name, p.index, p.kind) for p in new.generics.params],
                         [("'a", 1, GenericParamKind.LIFETIME), ('U', 2, GenericParamKind.TYPE)])
        self.assertEqual(new.sig.inputs, (Ref(EarlyBound(1, "'a"), ParamTy(2, 'U')),))
        self.assertEqual(new.sig.output, ParamTy(0, 'T'))

    def test_self_in_impls_and_traits(self):
        program = parse_program('''
        struct W<T> { t: T }
        impl<T> W<T> { fn get(this: &Self) -> T; }
        trait Tr<X> { fn f(this: &Self) -> X; }
        ''')
        w = program.find("W")
        get = program.item(program.find("W::get"))
        self.assertEqual(get.sig.inputs, (Ref(Erased(), Adt(w, 'W', (ParamTy(0, 'T'),))),))

        tr = program.item(program.find("Tr"))
        self.assertEqual([p.name for p in tr.generics.params], ['Self', 'X'])
        f = program.item(program.find("Tr::f"))
        self.assertEqual(f.sig.inputs, (Ref(Erased(), ParamTy(0, 'Self')),))
        self.assertEqual(f.sig.output, ParamTy(1, 'X'))

    def test_trait_impls_are_named_after_both_types(self):
        program = parse_program('''
        struct W<T> { t: T }
        trait Tr;
        impl<T> Tr for W<T> { fn f(); }
        ''')
        self.assertIsNotNone(program.find("<W as Tr>::f"))

    def test_constructor_of_tuple_struct(self):
        program = parse_program("#[variance]\nstruct P<'a, T>(&'a T);")
        p = program.item(program.find("P"))
        ctor = program.item(p.ctor)
        self.assertEqual(ctor.kind, DefKind.CTOR)
        self.assertEqual(program.def_path_str(ctor.def_id), "P::{constructor#0}")
        self.assertEqual(ctor.generics.parent, p.def_id)
        self.assertEqual(ctor.generics.count(), 2)
        self.assertEqual(ctor.attrs, ())
        substs = (EarlyBound(0, "'a"), ParamTy(1, 'T'))
        self.assertEqual(ctor.sig, FnSig((Ref(EarlyBound(0, "'a"), ParamTy(1, 'T')),),
                                         Adt(p.def_id, 'P', substs)))

    def test_brace_struct_has_no_constructor(self):
        program = parse_program("struct S<T> { t: T }")
        self.assertIsNone(program.item(program.find("S")).ctor)

    def test_empty_braces_have_no_constructor(self):
        program = parse_program("struct E<T> {}\nenum V<T> { A {}, B }")
        self.assertIsNone(program.item(program.find("E")).ctor)
        self.assertIsNone(program.item(program.find("V::A")).ctor)
        self.assertIsNotNone(program.item(program.find("V::B")).ctor)
        self.assertIsNone(program.find("E::{constructor#0}"))
        self.assertIsNone(program.find("V::A::{constructor#0}"))

    def test_impl_declared_before_its_type(self):
        program = parse_program("impl<T> Foo<T> { fn get(this: &Self) -> T; }\nstruct Foo<T> { t: T }")
        foo = program.find("Foo")
        self.assertEqual(program.def_kind(foo), DefKind.STRUCT)
        session = VarianceSession(program)
        self.assertEqual(session.variances_of(foo), (Variance.COVARIANT,))
        self.assertEqual(session.variances_of(program.find("Foo::get")), (Variance.INVARIANT,))

    def test_return_position_impl_trait(self):
        program = parse_program("trait Tr;\nfn f<T>(t: T) -> impl Tr + 'static;")
        f = program.item(program.find("f"))
        opaque = program.item(program.find("f::{opaque#0}"))
        self.assertEqual(opaque.kind, DefKind.OPAQUE)
        self.assertEqual(opaque.generics.parent, f.def_id)
        self_ty = OpaqueTy(opaque.def_id, "f::{opaque#0}", (ParamTy(0, 'T'),))
        self.assertEqual(f.sig.output, self_ty)
        tr = program.find("Tr")
        self.assertEqual(opaque.bounds, (
            TraitPredicate(TraitRef(tr, 'Tr', (self_ty,))),
            TypeOutlives(self_ty, Static()),
        ))

    def test_omitted_lifetimes_are_elided(self):
        program = parse_program("struct R<'a, T> { r: &'a T }\nstruct S<T> { r: R<T> }")
        r = program.find("R")
        s = program.item(program.find("S"))
        self.assertEqual(s.fields[0].ty, Adt(r, 'R', (Erased(), ParamTy(0, 'T'))))

    def test_aliases_are_expanded(self):
        program = parse_program("type Pairish<X> = (X, u8);\nstruct S<T> { p: Pairish<T> }")
        s = program.item(program.find("S"))
        self.assertEqual(s.fields[0].ty, Tuple((ParamTy(0, 'T'), Prim('u8'))))

    def test_dyn_defaults_to_static(self):
        program = parse_program("trait Tr;\nstruct S<'a> { d: &'a dyn Tr }")
        tr = program.find("Tr")
        s = program.item(program.find("S"))
        self.assertEqual(s.fields[0].ty,
                         Ref(EarlyBound(0, "'a"), Dynamic(ExistentialTraitRef(tr, 'Tr', ()), (), Static())))

    def test_late_bound_lifetimes(self):
        program = parse_program("struct S { f: for<'x> fn(&'x u8) }")
        s = program.item(program.find("S"))
        self.assertEqual(s.fields[0].ty,
                         FnPtr(FnSig((Ref(LateBound("'x"), Prim('u8')),), Tuple(()), ("'x",))))

    def test_outer_items_are_visible_in_modules(self):
        program = parse_program("struct Outer;\nmod m { struct S { o: Outer } }")
        s = program.item(program.find("m::S"))
        self.assertEqual(s.fields[0].ty, Adt(program.find("Outer"), 'Outer', ()))

    def test_extern_items(self):
        program = parse_program("extern struct Vec<T> = [+];\nextern trait Fn<Args> { type Output; }")
        vec = program.item(program.find("Vec"))
        self.assertFalse(vec.def_id.is_local)
        self.assertEqual(vec.declared_variances, (Variance.COVARIANT,))
        fn_trait = program.item(program.find("Fn"))
        self.assertEqual(fn_trait.assoc_types, ('Output',))
        self.assertIsNone(fn_trait.declared_variances)

if __name__ == '__main__':
    unittest.main()
