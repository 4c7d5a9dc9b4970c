from __future__ import annotations

from dataclasses import dataclass

from ..errors import SourceLocation
from ..items import DefKind, Item, Program
from ..walk import ItemPass, WalkContext, walk_crate
from .lattice import Variance, format_variances
from .queries import VARIANCE_ITEM_KINDS, VarianceSession

DUMP_ATTR = "variance"


@dataclass(frozen=True, slots=True)
class VarianceReport:
    path: str
    kind: DefKind
    variances: tuple[Variance, ...]
    location: SourceLocation | None = None

    def __str__(self) -> str:
        return f"{self.path}: {format_variances(self.variances)}"

    def to_json_obj(self) -> dict:
        return {
            "item": self.path,
            "kind": self.kind.value,
            "variances": [str(v) for v in self.variances],
            "location": str(self.location) if self.location else None,
        }


class VarianceDumpPass(ItemPass):
    """Reports the variances of every item under a `#[variance]` attribute."""

    def __init__(self, session: VarianceSession, dump_all: bool = False) -> None:
        self.session = session
        self.dump_all = dump_all
        self.reports: list[VarianceReport] = []

    def check_item(self, cx: WalkContext, item: Item) -> None:
        if item.kind not in VARIANCE_ITEM_KINDS:
            return
        if not (self.dump_all or cx.has_attr(DUMP_ATTR)):
            return
        variances = self.session.variances_of(item.def_id)
        self.reports.append(VarianceReport(
            path=cx.program.def_path_str(item.def_id),
            kind=item.kind,
            variances=variances,
            location=item.location,
        ))


def dump_variances(program: Program, session: VarianceSession | None = None,
                   dump_all: bool = False) -> list[VarianceReport]:
    session = session or VarianceSession(program)
    dump = VarianceDumpPass(session, dump_all=dump_all)
    walk_crate(program, [dump])
    return dump.reports
