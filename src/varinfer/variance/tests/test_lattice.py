from __future__ import annotations

import itertools

import pytest

from varinfer.variance.lattice import Variance, format_variances, parse_variances

CO = Variance.COVARIANT
CONTRA = Variance.CONTRAVARIANT
INV = Variance.INVARIANT
BI = Variance.BIVARIANT

ALL = list(Variance)


@pytest.mark.parametrize("a,b", list(itertools.product(ALL, repeat=2)))
def test_join_commutative(a: Variance, b: Variance) -> None:
    assert a.join(b) is b.join(a)


@pytest.mark.parametrize("a,b,c", list(itertools.product(ALL, repeat=3)))
def test_join_associative(a: Variance, b: Variance, c: Variance) -> None:
    assert a.join(b.join(c)) is a.join(b).join(c)


@pytest.mark.parametrize("a", ALL)
def test_join_identity_and_absorption(a: Variance) -> None:
    assert a.join(a) is a
    assert a.join(BI) is a
    assert a.join(INV) is INV


def test_join_of_middle_elements_is_top() -> None:
    assert CO.join(CONTRA) is INV


XFORM_TABLE = {
    (CO, CO): CO, (CO, CONTRA): CONTRA, (CO, INV): INV, (CO, BI): BI,
    (CONTRA, CO): CONTRA, (CONTRA, CONTRA): CO, (CONTRA, INV): INV, (CONTRA, BI): BI,
    (INV, CO): INV, (INV, CONTRA): INV, (INV, INV): INV, (INV, BI): INV,
    (BI, CO): BI, (BI, CONTRA): BI, (BI, INV): BI, (BI, BI): BI,
}


def test_xform_table_is_complete() -> None:
    assert len(XFORM_TABLE) == 16
    assert set(XFORM_TABLE) == set(itertools.product(ALL, repeat=2))


@pytest.mark.parametrize("outer,inner", sorted(XFORM_TABLE, key=lambda p: (p[0].value, p[1].value)))
def test_xform(outer: Variance, inner: Variance) -> None:
    assert outer.xform(inner) is XFORM_TABLE[(outer, inner)]


def test_symbols() -> None:
    assert [str(v) for v in (CO, CONTRA, INV, BI)] == ["+", "-", "o", "*"]
    assert Variance.from_symbol("o") is INV
    assert format_variances((CO, INV, BI)) == "[+, o, *]"
    assert format_variances(()) == "[]"
    assert parse_variances("[-, *]") == (CONTRA, BI)
    assert parse_variances("[]") == ()
