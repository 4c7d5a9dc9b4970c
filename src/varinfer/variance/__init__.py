"""Variance inference for generic items.

Submodules:
- lattice: the Variance lattice (join) and its composition rule (xform)
- terms: enumerates generic parameters and allocates one inference term each
- constraints: walks item structure and emits constraints on those terms
- solve: fixpoint over the constraints, producing the crate variances map
- opaque: direct (non-fixpoint) variances for opaque types
- queries: VarianceSession with the variances_of / crate_variances queries
- dump: `#[variance]` reporting pass

Python 3.11+
"""

from . import lattice
from . import terms
from . import constraints
from . import solve
from . import opaque
from . import queries
from . import dump

from .lattice import Variance
from .queries import VarianceSession

__all__ = [
    "lattice",
    "terms",
    "constraints",
    "solve",
    "opaque",
    "queries",
    "dump",
    "Variance",
    "VarianceSession",
]
