"""Challenge solvers and the registry that selects them."""

from acmeissuer.solvers.base import Solver
from acmeissuer.solvers.registry import SolverRegistry

__all__ = ["Solver", "SolverRegistry"]
