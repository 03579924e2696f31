"""
Flow divider for modelling n identical parallel lines with a single one.
"""

import numpy as np
from hydraulic_sim.core.component import CompositeComponent
from hydraulic_sim.core.variable import Variable
from hydraulic_sim.core.port import HydraulicPort
from hydraulic_sim.properties.fluid import HydraulicFluid
from hydraulic_sim.components.boundary import Open


class FlowDivider(CompositeComponent):
    """
    Passes 1/n of the flow entering port_a on to port_b.

    Place one at each end of a tube to stand in for n parallel tubes. The
    remaining (n-1)/n of the flow is dumped into an internal Open vent rather
    than routed anywhere else; all three ports share one pressure.

    Coupling equations:
        1. dm_a = port_a.dm
        2. dm_b = dm_a / n
        3. open.dm = dm_a - dm_b

    State variables:
        - dm_a: full flow [kg/s] (algebraic)
        - dm_b: part flow [kg/s] (algebraic)

    Parameters:
        p_int: Initial pressure [Pa]
        n: Division factor (>= 1)

    Ports:
        port_a (HydraulicPort): Full-flow side
        port_b (HydraulicPort): Part-flow side
    """

    def __init__(self, name: str, p_int: float, n: float,
                 fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)

        if n < 1:
            raise ValueError(f"Division factor n must be >= 1, got {n}")

        self.n = n
        self.port_a = HydraulicPort('port_a', p_int=p_int, fluid=fluid)
        self.port_b = HydraulicPort('port_b', p_int=p_int, fluid=fluid)
        self.ports = {
            'port_a': self.port_a,
            'port_b': self.port_b,
        }

        self.open = self.add_component(Open('open', p_int=p_int, fluid=fluid))
        self.connect(self.port_a, self.port_b, self.open.port)

    def get_variables(self):
        return [
            Variable('dm_a', kind='algebraic', initial=0.0, units='kg/s'),
            Variable('dm_b', kind='algebraic', initial=0.0, units='kg/s'),
        ]

    def residual(self, state, ports, t, state_dot=None):
        dm_a, dm_b = state
        return np.array([
            dm_a - ports['port_a'].dm,
            dm_b - dm_a / self.n,
            self.open.value('dm') - (dm_a - dm_b),
        ])
