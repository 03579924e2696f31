"""
Boundary terminators: a dead-ended line (Cap) and a free vent (Open).
"""

import numpy as np
from hydraulic_sim.core.component import Component
from hydraulic_sim.core.variable import Variable
from hydraulic_sim.core.port import HydraulicPort
from hydraulic_sim.properties.fluid import HydraulicFluid


class Cap(Component):
    """
    Caps a hydraulic port so that no mass flows in or out.

    Governing equations:
        1. port.p = p
        2. port.dm = 0

    The pressure follows whatever the connected node settles to; p_int only
    seeds it.

    State variables:
        - p: cap pressure [Pa] (algebraic)

    Ports:
        port (HydraulicPort)
    """

    def __init__(self, name: str, p_int: float = 0.0, fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)
        self.p_int = p_int
        self.port = HydraulicPort('port', p_int=p_int, fluid=fluid)
        self.ports = {'port': self.port}

    def get_variables(self):
        return [Variable('p', kind='algebraic', initial=self.p_int, units='Pa')]

    def residual(self, state, ports, t, state_dot=None):
        p = state[0]
        port = ports['port']
        return np.array([port.p - p, port.dm])


class Open(Component):
    """
    Unconstrained vent: exposes the port flow as a free variable.

    Leaves one equation to its owner, which fixes ``dm`` (see FlowDivider).

    Governing equations:
        1. port.p = p
        2. port.dm = dm

    State variables:
        - p: pressure [Pa] (algebraic)
        - dm: mass flow into the vent [kg/s] (algebraic)
    """

    def __init__(self, name: str, p_int: float = 0.0, fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)
        self.p_int = p_int
        self.port = HydraulicPort('port', p_int=p_int, fluid=fluid)
        self.ports = {'port': self.port}

    def get_variables(self):
        return [
            Variable('p', kind='algebraic', initial=self.p_int, units='Pa'),
            Variable('dm', kind='algebraic', initial=0.0, units='kg/s'),
        ]

    def residual(self, state, ports, t, state_dot=None):
        p, dm = state
        port = ports['port']
        return np.array([port.p - p, port.dm - dm])
