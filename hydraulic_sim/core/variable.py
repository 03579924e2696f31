"""
Variable metadata for state vector construction and debugging.
"""

from dataclasses import dataclass
from typing import Literal


@dataclass
class Variable:
    """
    Describes an internal variable of a component.

    Attributes:
        name: Identifier, unique within its component (e.g., 'rho', 'dx')
        kind: 'differential' if its time derivative appears in the equations,
              'algebraic' otherwise
        initial: Initial value handed to the integrator
        units: String description for documentation (not enforced)
    """
    name: str
    kind: Literal['differential', 'algebraic']
    initial: float
    units: str = ""

    def __repr__(self) -> str:
        return f"Variable({self.name}: {self.kind}, x0={self.initial} {self.units})"
