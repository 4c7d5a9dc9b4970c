"""Item traversal with per-node callbacks.

`walk_crate` visits every item depth-first in declaration order and drives
any number of passes through the same fixed sequence of callbacks. Upon
entering an item its attributes are pushed onto the context's attribute
stack; they stay visible to nested items and are popped again on exit, so
attribute state is scoped lexically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from .items import Attribute, Generics, Item, Program

logger = logging.getLogger(__name__)


class ItemPass:
    """Base class for passes driven by `walk_crate`; every callback defaults to a no-op."""

    def check_crate(self, cx: "WalkContext") -> None:
        pass

    def enter_attrs(self, cx: "WalkContext", attrs: tuple[Attribute, ...]) -> None:
        pass

    def check_item(self, cx: "WalkContext", item: Item) -> None:
        pass

    def check_item_post(self, cx: "WalkContext", item: Item) -> None:
        pass

    def exit_attrs(self, cx: "WalkContext", attrs: tuple[Attribute, ...]) -> None:
        pass

    def check_crate_post(self, cx: "WalkContext") -> None:
        pass


@dataclass(slots=True)
class WalkContext:
    program: Program
    attr_stack: list[tuple[Attribute, ...]] = field(default_factory=list)
    generics: Generics | None = None

    def has_attr(self, name: str) -> bool:
        """True if `name` is set on the current item or any item enclosing it."""
        return any(a.name == name for attrs in self.attr_stack for a in attrs)

    def attr_value(self, name: str) -> str | None:
        # Innermost wins.
        for attrs in reversed(self.attr_stack):
            for a in attrs:
                if a.name == name:
                    return a.value
        return None


class _Walker:
    def __init__(self, program: Program, passes: Sequence[ItemPass]) -> None:
        self.cx = WalkContext(program=program)
        self.passes = list(passes)

    def walk(self) -> None:
        for p in self.passes:
            p.check_crate(self.cx)
        for def_id in self.cx.program.roots:
            self.visit_item(self.cx.program.item(def_id))
        for p in self.passes:
            p.check_crate_post(self.cx)

    def visit_item(self, item: Item) -> None:
        cx = self.cx
        old_generics = cx.generics
        cx.generics = item.generics
        self.with_attrs(item, lambda: self._walk_item(item))
        cx.generics = old_generics

    def with_attrs(self, item: Item, f) -> None:
        cx = self.cx
        cx.attr_stack.append(item.attrs)
        logger.debug("walk: enter_attrs(%s)", ", ".join(str(a) for a in item.attrs))
        for p in self.passes:
            p.enter_attrs(cx, item.attrs)
        f()
        logger.debug("walk: exit_attrs(%s)", ", ".join(str(a) for a in item.attrs))
        for p in self.passes:
            p.exit_attrs(cx, item.attrs)
        cx.attr_stack.pop()

    def _walk_item(self, item: Item) -> None:
        for p in self.passes:
            p.check_item(self.cx, item)
        for child in item.children:
            self.visit_item(self.cx.program.item(child))
        for p in self.passes:
            p.check_item_post(self.cx, item)


def walk_crate(program: Program, passes: Sequence[ItemPass]) -> None:
    _Walker(program, passes).walk()
