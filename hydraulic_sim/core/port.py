"""
Port definitions for typed connections between components.

Ports are the interface through which components exchange mass and momentum.
Each physical port is a (potential, flow) pair; flow is positive when it
enters the component through that port. Type checking at connection time
prevents physically invalid configurations.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional
from abc import ABC, abstractmethod

from hydraulic_sim.properties.fluid import HydraulicFluid


class Port(ABC):
    """Base class for all port types"""

    @abstractmethod
    def compatible_with(self, other: 'Port') -> bool:
        """Check if this port can connect to another port"""
        pass


class PhysicalPort(Port):
    """
    Port carrying an across (potential) and a through (flow) variable.

    Subclasses name their slots through ``potential_name``/``flow_name``.
    Connections are undirected: any two ports of the same kind can join.
    """

    kind: str = ''
    potential_name: str = ''
    flow_name: str = ''

    def compatible_with(self, other: Port) -> bool:
        """Physical ports connect to ports of the same kind"""
        return isinstance(other, PhysicalPort) and other.kind == self.kind

    @property
    def potential(self) -> float:
        return getattr(self, self.potential_name)

    @potential.setter
    def potential(self, value: float) -> None:
        setattr(self, self.potential_name, value)

    @property
    def flow(self) -> float:
        return getattr(self, self.flow_name)

    @flow.setter
    def flow(self, value: float) -> None:
        setattr(self, self.flow_name, value)

    def initial_potential(self) -> float:
        return 0.0

    def __repr__(self) -> str:
        comp_name = self.component.name if self.component else "unattached"
        return f"{self.__class__.__name__}({comp_name}.{self.name})"


@dataclass(eq=False, repr=False)
class HydraulicPort(PhysicalPort):
    """
    Represents a connection carrying compressible liquid.

    Attributes:
        name: Identifier, unique within its component
        p_int: Initial (gauge) pressure [Pa]
        fluid: Fluid parameters used for density and viscosity
        p: Pressure [Pa] (updated during solution)
        dm: Mass flow into the component [kg/s] (updated during solution)
        component: Reference to parent component
    """
    name: str
    p_int: float = 0.0
    fluid: HydraulicFluid = field(default_factory=HydraulicFluid)

    p: float = 0.0
    dm: float = 0.0

    component: Optional[object] = field(default=None, repr=False)

    kind = 'hydraulic'
    potential_name = 'p'
    flow_name = 'dm'

    def __post_init__(self):
        self.p = self.p_int

    def initial_potential(self) -> float:
        return self.p_int


@dataclass(eq=False, repr=False)
class MechanicalPort(PhysicalPort):
    """
    Represents a translational flange.

    Attributes:
        name: Identifier, unique within its component
        v: Velocity [m/s]
        f: Force acting on the component through this flange [N]
        component: Reference to parent component
    """
    name: str
    v: float = 0.0
    f: float = 0.0

    component: Optional[object] = field(default=None, repr=False)

    kind = 'mechanical'
    potential_name = 'v'
    flow_name = 'f'


@dataclass(eq=False)
class ScalarPort(Port):
    """
    Real-valued input signal (e.g. a commanded valve area).

    The value is either held constant or refreshed from ``source(t)`` by the
    network before each residual evaluation. Signal ports are not part of
    connection sets.

    Attributes:
        name: Identifier
        value: Current signal value (units depend on context)
        source: Optional callable of time driving ``value``
    """
    name: str
    value: float = 0.0
    source: Optional[Callable[[float], float]] = field(default=None, repr=False)

    component: Optional[object] = field(default=None, repr=False)

    def compatible_with(self, other: Port) -> bool:
        return False

    def update(self, t: float) -> None:
        if self.source is not None:
            self.value = float(self.source(t))

    def __repr__(self) -> str:
        comp_name = self.component.name if self.component else "unattached"
        return f"ScalarPort({comp_name}.{self.name})"
