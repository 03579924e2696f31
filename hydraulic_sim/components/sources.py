"""
Hydraulic boundary sources: prescribed pressure and prescribed mass flow.
"""

from typing import Callable, Union

import numpy as np
from hydraulic_sim.core.component import Component
from hydraulic_sim.core.port import HydraulicPort
from hydraulic_sim.properties.fluid import HydraulicFluid


Signal = Union[float, Callable[[float], float]]


def as_signal(value: Signal) -> Callable[[float], float]:
    """Wrap a constant into a function of time; callables pass through."""
    if callable(value):
        return value
    constant = float(value)
    return lambda t: constant


class PressureSource(Component):
    """
    Holds its port at a prescribed pressure, supplying whatever flow is needed.

    Governing equation:
        port.p = p(t)

    Args:
        name: Component identifier
        p: Pressure [Pa], constant or function of time
        fluid: Fluid delivered by the source

    Example:
        >>> supply = PressureSource('supply', p=lambda t: 1e6 * min(t / 0.1, 1.0))
    """

    def __init__(self, name: str, p: Signal, fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)
        self.p = as_signal(p)
        self.port = HydraulicPort('port', p_int=self.p(0.0), fluid=fluid)
        self.ports = {'port': self.port}

    def get_variables(self):
        return []

    def residual(self, state, ports, t, state_dot=None):
        return np.array([ports['port'].p - self.p(t)])


class MassFlowSource(Component):
    """
    Delivers a prescribed mass flow into the network.

    The flow leaves the source, so the port flow (positive into the
    component) is the negative of the delivered flow.

    Governing equation:
        port.dm = -dm(t)

    Args:
        name: Component identifier
        dm: Delivered mass flow [kg/s], constant or function of time
        p_int: Initial pressure guess at the port [Pa]
        fluid: Fluid delivered by the source
    """

    def __init__(self, name: str, dm: Signal, p_int: float = 0.0,
                 fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)
        self.dm = as_signal(dm)
        self.port = HydraulicPort('port', p_int=p_int, fluid=fluid)
        self.ports = {'port': self.port}

    def get_variables(self):
        return []

    def residual(self, state, ports, t, state_dot=None):
        return np.array([ports['port'].dm + self.dm(t)])
