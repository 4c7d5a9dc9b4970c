from __future__ import annotations

from varinfer.items import DefKind, OpaqueTy
from varinfer.resolve import parse_program
from varinfer.variance.lattice import Variance
from varinfer.variance.opaque import variance_of_opaque
from varinfer.variance.queries import VarianceSession

CO = Variance.COVARIANT
CONTRA = Variance.CONTRAVARIANT
INV = Variance.INVARIANT
BI = Variance.BIVARIANT

TRAITS = """
trait Tr<'x>;
trait Plain;
trait Takes<X>;
trait Iterator { type Item; }
"""


def opaque_variances(decls: str, path: str) -> tuple[Variance, ...]:
    program = parse_program(TRAITS + decls)
    def_id = program.find(path)
    assert program.def_kind(def_id) is DefKind.OPAQUE
    return variance_of_opaque(program, def_id)


def test_unmentioned_lifetimes_are_bivariant() -> None:
    assert opaque_variances("type Bare<'a, 'b> = impl Plain;", "Bare") == (BI, BI)


def test_type_parameters_default_to_invariant() -> None:
    assert opaque_variances("type Hidden<'a, T, const N: usize> = impl Plain;", "Hidden") == (BI, INV, INV)


def test_outlives_bound_makes_lifetime_invariant() -> None:
    src = "type Foo<'a, 'b, 'c> = impl Tr<'a> + 'b;"
    assert opaque_variances(src, "Foo") == (INV, INV, BI)


def test_lifetimes_nested_in_trait_arguments() -> None:
    src = "type Nested<'a, 'b> = impl Takes<&'a fn(&'b u8)>;"
    assert opaque_variances(src, "Nested") == (INV, INV)


def test_late_bound_lifetimes_are_ignored() -> None:
    src = "type Hrtb<'a> = impl Takes<for<'x> fn(&'x u8)>;"
    assert opaque_variances(src, "Hrtb") == (BI,)


def test_projection_term_is_visited() -> None:
    src = "type Iter<'a, 'b, T> = impl Iterator<Item = &'a T>;"
    assert opaque_variances(src, "Iter") == (INV, BI, INV)


def test_return_position_opaque_inherits_function_lifetimes() -> None:
    src = "fn iter<'a, 'b, T>(x: &'a T, y: &'b u8) -> impl Iterator<Item = T> + 'a;"
    program = parse_program(TRAITS + src)
    fn = program.item(program.find("iter"))
    opaque = program.item(fn.children[0])
    assert opaque.kind is DefKind.OPAQUE
    assert opaque.generics.parent == fn.def_id
    assert opaque.generics.count() == 3

    session = VarianceSession(program)
    assert session.variances_of(opaque.def_id) == (INV, BI, INV)
    # The function itself sees the opaque type's arguments as invariant.
    assert isinstance(fn.sig.output, OpaqueTy)
    assert session.variances_of(fn.def_id) == (INV, INV, INV)


def test_opaque_results_are_cached_per_session() -> None:
    program = parse_program(TRAITS + "type Foo<'a> = impl Tr<'a>;")
    session = VarianceSession(program)
    foo = program.find("Foo")
    first = session.variances_of(foo)
    assert first == (INV,)
    assert session.variances_of(foo) is first
