from __future__ import annotations

from enum import Enum


class Variance(Enum):
    """Variance of a generic parameter.

    The values form a lattice with BIVARIANT at the bottom, INVARIANT at the
    top and COVARIANT / CONTRAVARIANT as incomparable middle elements.
    """

    COVARIANT = "+"
    CONTRAVARIANT = "-"
    INVARIANT = "o"
    BIVARIANT = "*"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_symbol(cls, symbol: str) -> "Variance":
        return cls(symbol)

    def join(self, other: "Variance") -> "Variance":
        """Least upper bound of two variances."""
        if self is other:
            return self
        if self is Variance.BIVARIANT:
            return other
        if other is Variance.BIVARIANT:
            return self
        # Two different non-bottom values, or anything joined with the top.
        return Variance.INVARIANT

    def xform(self, inner: "Variance") -> "Variance":
        """Variance of a use with variance `inner` found in a context of variance `self`."""
        if self is Variance.COVARIANT:
            return inner
        if self is Variance.INVARIANT:
            return Variance.INVARIANT
        if self is Variance.BIVARIANT:
            return Variance.BIVARIANT
        # Contravariant context flips the sign of co/contra uses.
        if inner is Variance.COVARIANT:
            return Variance.CONTRAVARIANT
        if inner is Variance.CONTRAVARIANT:
            return Variance.COVARIANT
        return inner


def format_variances(variances) -> str:
    return "[" + ", ".join(str(v) for v in variances) + "]"


def parse_variances(text: str) -> tuple[Variance, ...]:
    """Inverse of format_variances: '[+, o]' -> (COVARIANT, INVARIANT)."""
    body = text.strip().removeprefix("[").removesuffix("]")
    return tuple(Variance.from_symbol(s.strip()) for s in body.split(",") if s.strip())
