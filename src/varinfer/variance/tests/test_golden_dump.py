from __future__ import annotations

from pathlib import Path

from varinfer.resolve import parse_program
from varinfer.variance.dump import dump_variances
from varinfer.variance.terms import TermsArena, determine_parameters_to_be_inferred

GOLDEN = Path(__file__).parent / "golden"


def load(name: str):
    path = GOLDEN / name
    return parse_program(path.read_text(), str(path))


def test_variance_dump_golden() -> None:
    program = load("variance_dump.rs")
    reports = dump_variances(program)
    out = "\n".join(str(r) for r in reports)
    assert out.strip() == (GOLDEN / "variance_dump.txt").read_text().strip()


def test_terms_dump_golden() -> None:
    program = load("terms.rs")
    terms_cx = determine_parameters_to_be_inferred(program, TermsArena())
    assert terms_cx.dump().strip() == (GOLDEN / "terms.txt").read_text().strip()
    # Items without generics get no terms.
    assert [program.def_path_str(d) for d in terms_cx.empty_items] == [
        "Plain", "Plain::{constructor#0}",
    ]


def test_dump_all_reports_unmarked_items() -> None:
    program = load("terms.rs")
    paths = [r.path for r in dump_variances(program, dump_all=True)]
    assert paths == ["Pair", "Pair::{constructor#0}", "apply", "Plain", "Plain::{constructor#0}"]
    assert dump_variances(program) == []
