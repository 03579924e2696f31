"""
Double-acting hydraulic cylinder.
"""

import numpy as np
from hydraulic_sim.core.component import CompositeComponent
from hydraulic_sim.core.variable import Variable
from hydraulic_sim.core.port import HydraulicPort, MechanicalPort
from hydraulic_sim.properties.fluid import HydraulicFluid
from hydraulic_sim.components.volume import DynamicVolume
from hydraulic_sim.components.mechanical import Mass


class Actuator(CompositeComponent):
    """
    Cylinder with two opposed chambers acting on one piston mass.

    Chamber A (direction +1) grows as the piston moves in +x while chamber B
    (direction -1) shrinks. Both chamber flanges, the piston mass and the
    outer flange form one mechanical node.

    Coupling equations:
        1. x = vol_a.vol.x
        2. dx = vol_a.vol.dx

    State variables:
        - x: piston position [m] (algebraic, mirrors chamber A)
        - dx: piston velocity [m/s] (algebraic, mirrors chamber A)

    Parameters:
        p_a_int, p_b_int: Initial chamber pressures [Pa]
        area_a, area_b: Piston areas [m²]
        length_a_int, length_b_int: Chamber lengths at x = 0 [m]
        m: Piston mass [kg]
        g: Gravitational acceleration along the rod [m/s²]
        x_int: Initial piston position [m]
        minimum_volume_a/b, damping_volume_a/b: End-stop settings of each
            chamber (see DynamicVolume)

    Ports:
        port_a, port_b (HydraulicPort): Chamber connections
        flange (MechanicalPort): Rod end

    Example:
        >>> cyl = Actuator('cyl', p_a_int=0, p_b_int=0, area_a=1e-3, area_b=1e-3,
        ...                length_a_int=0.1, length_b_int=0.1, m=10, g=0)
        >>> net.add_component(cyl)
        >>> net.connect(supply.port, cyl.port_a)
    """

    def __init__(self,
                 name: str,
                 p_a_int: float,
                 p_b_int: float,
                 area_a: float,
                 area_b: float,
                 length_a_int: float,
                 length_b_int: float,
                 m: float,
                 g: float,
                 x_int: float = 0.0,
                 minimum_volume_a: float = 0.0,
                 minimum_volume_b: float = 0.0,
                 damping_volume_a: float = 0.0,
                 damping_volume_b: float = 0.0,
                 fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)

        self.x_int = x_int

        self.port_a = HydraulicPort('port_a', p_int=p_a_int, fluid=fluid)
        self.port_b = HydraulicPort('port_b', p_int=p_b_int, fluid=fluid)
        self.flange = MechanicalPort('flange')
        self.ports = {
            'port_a': self.port_a,
            'port_b': self.port_b,
            'flange': self.flange,
        }

        self.vol_a = self.add_component(
            DynamicVolume('vol_a', direction=+1, p_int=p_a_int, x_int=+x_int, area=area_a,
                          dead_volume=length_a_int * area_a,
                          minimum_volume=minimum_volume_a,
                          damping_volume=damping_volume_a, fluid=fluid)
        )
        self.vol_b = self.add_component(
            DynamicVolume('vol_b', direction=-1, p_int=p_b_int, x_int=-x_int, area=area_b,
                          dead_volume=length_b_int * area_b,
                          minimum_volume=minimum_volume_b,
                          damping_volume=damping_volume_b, fluid=fluid)
        )
        self.mass = self.add_component(Mass('mass', m=m, g=g, s_int=x_int))

        self.connect(self.vol_a.port, self.port_a)
        self.connect(self.vol_b.port, self.port_b)
        self.connect(self.vol_a.flange, self.vol_b.flange, self.mass.flange, self.flange)

    def get_variables(self):
        return [
            Variable('x', kind='algebraic', initial=self.x_int, units='m'),
            Variable('dx', kind='algebraic', initial=0.0, units='m/s'),
        ]

    def residual(self, state, ports, t, state_dot=None):
        x, dx = state
        return np.array([
            x - self.vol_a.vol.value('x'),
            dx - self.vol_a.vol.value('dx'),
        ])
