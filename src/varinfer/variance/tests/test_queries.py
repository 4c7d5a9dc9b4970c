from __future__ import annotations

import threading

import pytest

from varinfer.errors import InternalCompilerError
from varinfer.items import (
    DefKind, FieldDef, GenericParamDef, GenericParamKind, Generics, Item, ParamTy, Program,
)
from varinfer.resolve import parse_program
from varinfer.variance import queries
from varinfer.variance.lattice import Variance
from varinfer.variance.queries import VarianceSession

CO = Variance.COVARIANT
INV = Variance.INVARIANT


def boom(program):
    raise AssertionError("the fixpoint should not run")


def test_zero_generics_short_circuit(monkeypatch) -> None:
    program = parse_program("""
    struct Plain { x: u8 }
    fn f(x: u8) -> u8;
    enum E { A(u8), B }
    mod m {}
    """)
    monkeypatch.setattr(queries, "compute_crate_variances", boom)
    session = VarianceSession(program)
    for path in ("Plain", "f", "E", "E::A", "E::A::{constructor#0}", "m"):
        assert session.variances_of(program.find(path)) == ()


def test_wrong_item_kind_is_an_internal_error() -> None:
    program = parse_program("""
    extern struct Vec<T> = [+];
    type Alias<T> = Vec<T>;
    trait Tr;
    struct S<T> { t: T }
    impl<T> S<T> {}
    """)
    session = VarianceSession(program)
    cases = {"Alias": "type alias", "Tr": "trait"}
    for path, kind in cases.items():
        with pytest.raises(InternalCompilerError) as excinfo:
            session.variances_of(program.find(path))
        assert "asked to compute variance for wrong kind of item" in excinfo.value.message
        assert kind in excinfo.value.message
        assert path in excinfo.value.message

    impl = next(c for c in program.roots if program.def_kind(c) is DefKind.IMPL)
    with pytest.raises(InternalCompilerError) as excinfo:
        session.variances_of(impl)
    assert "impl" in excinfo.value.message


def test_extern_items_use_declared_variances(monkeypatch) -> None:
    program = parse_program("extern enum Result<T, E> = [+, o];")
    monkeypatch.setattr(queries, "compute_crate_variances", boom)
    session = VarianceSession(program)
    result = program.find("Result")
    assert not result.is_local
    assert session.variances_of(result) == (CO, INV)


def test_crate_variances_is_computed_once(monkeypatch) -> None:
    program = parse_program("struct A<T> { t: T }")
    calls = []
    real = queries.compute_crate_variances

    def counting(p):
        calls.append(p)
        return real(p)

    monkeypatch.setattr(queries, "compute_crate_variances", counting)
    session = VarianceSession(program)
    threads = [threading.Thread(target=session.crate_variances) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    first = session.crate_variances()
    assert session.crate_variances() is first
    assert session.variances_of(program.find("A")) == (CO,)
    assert len(calls) == 1


def test_sessions_do_not_share_state() -> None:
    program = parse_program("struct A<T> { t: T }")
    assert VarianceSession(program).crate_variances() is not VarianceSession(program).crate_variances()


def test_program_built_without_the_parser() -> None:
    program = Program()
    def_id = program.fresh_def_id()
    t = GenericParamDef("T", 0, GenericParamKind.TYPE, def_id)
    program.add_item(Item(
        def_id=def_id,
        name="Cell",
        kind=DefKind.STRUCT,
        generics=Generics(None, 0, (t,)),
        fields=(FieldDef("value", ParamTy(0, "T")),),
    ))
    assert VarianceSession(program).variances_of(def_id) == (CO,)
