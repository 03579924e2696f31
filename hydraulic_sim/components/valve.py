"""
Orifice valves: the basic flow law, an area-commanded valve and spool valves.
"""

import numpy as np
from hydraulic_sim.core.component import Component, CompositeComponent
from hydraulic_sim.core.variable import Variable
from hydraulic_sim.core.port import HydraulicPort, MechanicalPort, ScalarPort
from hydraulic_sim.properties.fluid import HydraulicFluid, density
from hydraulic_sim.components.sources import Signal
from hydraulic_sim.components.mechanical import Mass


def orifice_flow(dp: float, rho: float, Cd: float, area: float) -> float:
    """
    Signed orifice flow [kg/s]: sign(Δp)·sqrt(2·|Δp|·|ρ|/Cd)·area.

    The root argument is never negative, so the law is finite through Δp = 0.
    """
    return np.sign(dp) * np.sqrt(2 * abs(dp) * abs(rho) / Cd) * area


class ValveBase(Component):
    """
    Orifice between two hydraulic ports with an effective opening ``area``.

    Governing equations:
        1. port_a.dm + port_b.dm = 0
        2. Flow law, with Δp = p_a - p_b, dm = port_a.dm, ρ = density(port_a)
           and x = area (reversible) or max(area, 0):
             non-directional:  dm = sign(Δp)·sqrt(2·|Δp|·|ρ|/Cd)·x
             directional:      dm = sqrt(2·|Δp|·|ρ|/Cd)·x   if Δp > 0
                               Δp = 0                      otherwise

    A directional valve restricts flow from port_a to port_b only; in reverse
    it offers no resistance. The equation for ``area`` is supplied by the
    owner (Valve, SpoolValve, DynamicVolume).

    State variables:
        - area: effective opening [m²] (algebraic)

    Parameters:
        p_a_int: Initial pressure at port_a [Pa]
        p_b_int: Initial pressure at port_b [Pa]
        area_int: Initial opening [m²]
        Cd: Discharge coefficient (> 0)
        reversible: Allow negative area to reverse the flow
        directional: Check-valve behaviour (see above)
    """

    def __init__(self,
                 name: str,
                 p_a_int: float,
                 p_b_int: float,
                 area_int: float,
                 Cd: float,
                 reversible: bool = False,
                 directional: bool = False,
                 fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)

        if Cd <= 0:
            raise ValueError(f"Discharge coefficient Cd must be positive, got {Cd}")

        self.area_int = area_int
        self.Cd = Cd
        self.reversible = reversible
        self.directional = directional

        self.port_a = HydraulicPort('port_a', p_int=p_a_int, fluid=fluid)
        self.port_b = HydraulicPort('port_b', p_int=p_b_int, fluid=fluid)
        self.ports = {
            'port_a': self.port_a,
            'port_b': self.port_b,
        }

    def get_variables(self):
        return [Variable('area', kind='algebraic', initial=self.area_int, units='m²')]

    def residual(self, state, ports, t, state_dot=None):
        area = state[0]
        port_a = ports['port_a']
        port_b = ports['port_b']

        rho = density(port_a)
        dp = port_a.p - port_b.p
        dm = port_a.dm
        x = area if self.reversible else max(area, 0.0)

        if self.directional:
            if dp > 0:
                eq_flow = dm - orifice_flow(dp, rho, self.Cd, x)
            else:
                eq_flow = dp
        else:
            eq_flow = dm - orifice_flow(dp, rho, self.Cd, x)

        return np.array([port_a.dm + port_b.dm, eq_flow])


class Valve(CompositeComponent):
    """
    Valve whose opening follows a real-valued area signal.

    Coupling equation:
        base.area = area.value

    Args:
        name: Component identifier
        p_a_int: Initial pressure at port_a [Pa]
        p_b_int: Initial pressure at port_b [Pa]
        area: Opening [m²], constant or function of time. Negative values
            reverse the flow when ``reversible``, otherwise they close the valve.
        Cd: Discharge coefficient
        reversible: See ValveBase
        directional: See ValveBase

    Ports:
        port_a, port_b (HydraulicPort)
        area (ScalarPort): Commanded opening

    Example:
        >>> valve = Valve('v1', p_a_int=1e6, p_b_int=0, area=lambda t: 1e-5 * min(t, 1), Cd=0.6)
    """

    def __init__(self,
                 name: str,
                 p_a_int: float,
                 p_b_int: float,
                 area: Signal,
                 Cd: float,
                 reversible: bool = False,
                 directional: bool = False,
                 fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)

        source = area if callable(area) else None
        area_int = float(area(0.0)) if callable(area) else float(area)

        self.port_a = HydraulicPort('port_a', p_int=p_a_int, fluid=fluid)
        self.port_b = HydraulicPort('port_b', p_int=p_b_int, fluid=fluid)
        self.area = ScalarPort('area', value=area_int, source=source)
        self.ports = {
            'port_a': self.port_a,
            'port_b': self.port_b,
            'area': self.area,
        }

        self.base = self.add_component(
            ValveBase('base', p_a_int=p_a_int, p_b_int=p_b_int, area_int=area_int, Cd=Cd,
                      reversible=reversible, directional=directional, fluid=fluid)
        )
        self.connect(self.base.port_a, self.port_a)
        self.connect(self.base.port_b, self.port_b)

    def residual(self, state, ports, t, state_dot=None):
        return np.array([self.base.value('area') - ports['area'].value])


class SpoolValve(CompositeComponent):
    """
    Cylindrical spool uncovering a port in proportion to its displacement.

    Coupling equations:
        1. dx/dt(x) = dx
        2. flange.v = dx
        3. flange.f = 0   (flow forces are not modelled)
        4. valve.area = x·2π·d

    State variables:
        - x: spool position [m] (differential)
        - dx: spool velocity [m/s] (algebraic)

    Parameters:
        p_a_int, p_b_int: Initial port pressures [Pa]
        x_int: Initial spool position [m]
        Cd: Discharge coefficient
        d: Spool diameter [m]
        reversible: Negative position reverses the flow
    """

    def __init__(self,
                 name: str,
                 p_a_int: float,
                 p_b_int: float,
                 x_int: float,
                 Cd: float,
                 d: float,
                 reversible: bool = False,
                 fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)

        self.x_int = x_int
        self.d = d

        self.port_a = HydraulicPort('port_a', p_int=p_a_int, fluid=fluid)
        self.port_b = HydraulicPort('port_b', p_int=p_b_int, fluid=fluid)
        self.flange = MechanicalPort('flange')
        self.ports = {
            'port_a': self.port_a,
            'port_b': self.port_b,
            'flange': self.flange,
        }

        self.valve = self.add_component(
            ValveBase('valve', p_a_int=p_a_int, p_b_int=p_b_int,
                      area_int=x_int * 2 * np.pi * d, Cd=Cd,
                      reversible=reversible, fluid=fluid)
        )
        self.connect(self.valve.port_a, self.port_a)
        self.connect(self.valve.port_b, self.port_b)

    def get_variables(self):
        return [
            Variable('x', kind='differential', initial=self.x_int, units='m'),
            Variable('dx', kind='algebraic', initial=0.0, units='m/s'),
        ]

    def residual(self, state, ports, t, state_dot=None):
        x, dx = state
        x_dot = 0.0 if state_dot is None else state_dot[0]
        flange = ports['flange']

        return np.array([
            dx - x_dot,
            flange.v - dx,
            flange.f,
            self.valve.value('area') - x * 2 * np.pi * self.d,
        ])


class SpoolValve2Way(CompositeComponent):
    """
    Four-way directional valve: one spool metering supply->A and B->return.

    Two SpoolValves share the outer flange and an inertial mass, so a single
    spool displacement opens both paths together.

    Parameters:
        p_s_int, p_a_int, p_b_int, p_r_int: Initial pressures of the supply,
            A, B and return ports [Pa]
        m: Spool mass [kg]
        g: Gravitational acceleration along the spool axis [m/s²]
        x_int: Initial spool position [m]
        Cd: Discharge coefficient
        d: Spool diameter [m]
        reversible: Negative position reverses both paths

    Ports:
        port_s, port_a, port_b, port_r (HydraulicPort)
        flange (MechanicalPort): Spool actuation
    """

    def __init__(self,
                 name: str,
                 p_s_int: float,
                 p_a_int: float,
                 p_b_int: float,
                 p_r_int: float,
                 m: float,
                 g: float,
                 x_int: float,
                 Cd: float,
                 d: float,
                 reversible: bool = False,
                 fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)

        self.port_s = HydraulicPort('port_s', p_int=p_s_int, fluid=fluid)
        self.port_a = HydraulicPort('port_a', p_int=p_a_int, fluid=fluid)
        self.port_b = HydraulicPort('port_b', p_int=p_b_int, fluid=fluid)
        self.port_r = HydraulicPort('port_r', p_int=p_r_int, fluid=fluid)
        self.flange = MechanicalPort('flange')
        self.ports = {
            'port_s': self.port_s,
            'port_a': self.port_a,
            'port_b': self.port_b,
            'port_r': self.port_r,
            'flange': self.flange,
        }

        self.vSA = self.add_component(
            SpoolValve('vSA', p_a_int=p_s_int, p_b_int=p_a_int, x_int=x_int, Cd=Cd, d=d,
                       reversible=reversible, fluid=fluid)
        )
        self.vBR = self.add_component(
            SpoolValve('vBR', p_a_int=p_b_int, p_b_int=p_r_int, x_int=x_int, Cd=Cd, d=d,
                       reversible=reversible, fluid=fluid)
        )
        self.mass = self.add_component(Mass('mass', m=m, g=g, s_int=x_int))

        self.connect(self.vSA.port_a, self.port_s)
        self.connect(self.vSA.port_b, self.port_a)
        self.connect(self.vBR.port_a, self.port_b)
        self.connect(self.vBR.port_b, self.port_r)
        self.connect(self.vSA.flange, self.vBR.flange, self.mass.flange, self.flange)
