"""
Translational mechanical elements: inertia, ground and prescribed sources.

Mechanical ports carry velocity (potential) and force (flow); the force is
positive when it acts on the component through the flange.
"""

import numpy as np
from hydraulic_sim.core.component import Component
from hydraulic_sim.core.variable import Variable
from hydraulic_sim.core.port import MechanicalPort
from hydraulic_sim.components.sources import Signal, as_signal


class Mass(Component):
    """
    Point mass under gravity, driven through one flange.

    Governing equations:
        1. ds/dt = v
        2. m·dv/dt = flange.f + m·g
        3. flange.v = v

    State variables:
        - s: position [m] (differential)
        - v: velocity [m/s] (differential)

    Parameters:
        m: Mass [kg]
        g: Gravitational acceleration along the axis [m/s²]
        s_int: Initial position [m]
        v_int: Initial velocity [m/s]
    """

    def __init__(self, name: str, m: float, g: float = 0.0,
                 s_int: float = 0.0, v_int: float = 0.0):
        super().__init__(name)

        if m <= 0:
            raise ValueError(f"Mass must be positive, got {m}")

        self.m = m
        self.g = g
        self.s_int = s_int
        self.v_int = v_int

        self.flange = MechanicalPort('flange', v=v_int)
        self.ports = {'flange': self.flange}

    def get_variables(self):
        return [
            Variable('s', kind='differential', initial=self.s_int, units='m'),
            Variable('v', kind='differential', initial=self.v_int, units='m/s'),
        ]

    def residual(self, state, ports, t, state_dot=None):
        s, v = state
        if state_dot is None:
            state_dot = np.zeros(2)
        s_dot, v_dot = state_dot

        flange = ports['flange']
        return np.array([
            v - s_dot,
            (flange.f + self.m * self.g) / self.m - v_dot,
            flange.v - v,
        ])


class Fixed(Component):
    """Mechanical ground: flange.v = 0, takes any reaction force."""

    def __init__(self, name: str):
        super().__init__(name)
        self.flange = MechanicalPort('flange')
        self.ports = {'flange': self.flange}

    def get_variables(self):
        return []

    def residual(self, state, ports, t, state_dot=None):
        return np.array([ports['flange'].v])


class ForceSource(Component):
    """
    Applies a prescribed force f(t) to the connected node.

    Governing equation:
        flange.f = -f(t)
    """

    def __init__(self, name: str, f: Signal):
        super().__init__(name)
        self.f = as_signal(f)
        self.flange = MechanicalPort('flange')
        self.ports = {'flange': self.flange}

    def get_variables(self):
        return []

    def residual(self, state, ports, t, state_dot=None):
        return np.array([ports['flange'].f + self.f(t)])


class VelocitySource(Component):
    """Drives the connected node at a prescribed velocity v(t)."""

    def __init__(self, name: str, v: Signal):
        super().__init__(name)
        self.v = as_signal(v)
        self.flange = MechanicalPort('flange', v=self.v(0.0))
        self.ports = {'flange': self.flange}

    def get_variables(self):
        return []

    def residual(self, state, ports, t, state_dot=None):
        return np.array([ports['flange'].v - self.v(t)])
