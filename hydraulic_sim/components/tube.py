"""
Pipe friction elements: a single friction segment and an N-segment tube.
"""

import numpy as np
from hydraulic_sim.core.component import Component, CompositeComponent
from hydraulic_sim.core.variable import Variable
from hydraulic_sim.core.port import HydraulicPort
from hydraulic_sim.properties.fluid import HydraulicFluid, density, viscosity, friction_factor
from hydraulic_sim.components.volume import FixedVolume


def darcy_weisbach(dm: float, area: float, d_h: float, rho: float, mu: float,
                   length: float, shape_factor: float = 64) -> float:
    """
    Pressure drop [Pa] of fully developed flow over ``length``.

    Signed with the flow: Δp = ½·ρ·u²·f·(L/d_h) with f odd in dm.
    """
    f = friction_factor(dm, area, d_h, rho, mu, shape_factor)
    u = dm / (rho * area)
    return 0.5 * rho * u**2 * f * (length / d_h)


class TubeBase(Component):
    """
    Friction-only pipe segment, ignoring compressibility.

    Governing equations:
        1. p_a - p_b = ½·ρ·u²·f·(length/d_h)   (Darcy-Weisbach)
        2. port_a.dm + port_b.dm = 0
        3. length = length_int

    where d_h = 4·area/perimeter, ρ is the mean density of both ports,
    μ the viscosity at port_a and u = dm/(ρ·area) with dm = port_a.dm.

    State variables:
        - length: effective friction length [m] (algebraic)

    Parameters:
        p_int: Initial pressure [Pa]
        area: Cross sectional area [m²]
        length: Friction length [m]
        perimeter: Wetted perimeter [m] (default: circular section)
        shape_factor: Laminar shape factor Φ (64 for circular pipes)
    """

    def __init__(self,
                 name: str,
                 p_int: float,
                 area: float,
                 length: float,
                 perimeter: float | None = None,
                 shape_factor: float = 64,
                 fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)

        if perimeter is None:
            perimeter = 2 * np.sqrt(area * np.pi)
        if area <= 0:
            raise ValueError(f"Tube area must be positive, got {area}")
        if length <= 0:
            raise ValueError(f"Tube length must be positive, got {length}")
        if perimeter <= 0:
            raise ValueError(f"Tube perimeter must be positive, got {perimeter}")

        self.p_int = p_int
        self.area = area
        self.length_int = length
        self.perimeter = perimeter
        self.shape_factor = shape_factor
        self.d_h = 4 * area / perimeter

        self.port_a = HydraulicPort('port_a', p_int=p_int, fluid=fluid)
        self.port_b = HydraulicPort('port_b', p_int=p_int, fluid=fluid)
        self.ports = {
            'port_a': self.port_a,
            'port_b': self.port_b,
        }

    def get_variables(self):
        return [Variable('length', kind='algebraic', initial=self.length_int, units='m')]

    def residual(self, state, ports, t, state_dot=None):
        length = state[0]
        port_a = ports['port_a']
        port_b = ports['port_b']

        dp = port_a.p - port_b.p
        dm = port_a.dm
        rho = (density(port_a) + density(port_b)) / 2
        mu = viscosity(port_a)

        return np.array([
            dp - darcy_weisbach(dm, self.area, self.d_h, rho, mu, length, self.shape_factor),
            port_a.dm + port_b.dm,
            length - self.length_int,
        ])


class Tube(CompositeComponent):
    """
    Pipe discretized into N lumped volumes joined by N-1 friction segments.

    Layout:
        port_a - v1 - p1 - v2 - p2 - ... - p{N-1} - vN - port_b

    Each volume holds area·length/N of fluid (compressibility); each segment
    carries effective_length/(N-1) of friction. Larger N resolves the
    pressure distribution better at the cost of more, stiffer states.

    Parameters:
        N: Number of volumes (integer > 1)
        p_int: Initial pressure [Pa]
        area: Cross sectional area [m²]
        length: Physical length [m], sets the stored volume
        effective_length: Friction length [m] (>= length), accounts for
            entrance effects and fittings
        perimeter: Wetted perimeter [m] (default: circular section)
        shape_factor: Laminar shape factor Φ

    Example:
        >>> tube = Tube('line', N=5, p_int=1e5, area=7.85e-5, length=2.0)
        >>> net.connect(pump.port, tube.port_a)
    """

    def __init__(self,
                 name: str,
                 N: int,
                 p_int: float,
                 area: float,
                 length: float,
                 effective_length: float | None = None,
                 perimeter: float | None = None,
                 shape_factor: float = 64,
                 fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)

        if isinstance(N, bool) or not isinstance(N, (int, np.integer)) or N <= 1:
            raise ValueError(
                f"Tube must be defined with more than 1 segment (N > 1), got N={N}"
            )
        if effective_length is None:
            effective_length = length
        if effective_length < length:
            raise ValueError(
                f"effective_length ({effective_length}) must be >= length ({length})"
            )

        self.N = int(N)
        self.area = area
        self.length = length
        self.effective_length = effective_length

        self.port_a = HydraulicPort('port_a', p_int=p_int, fluid=fluid)
        self.port_b = HydraulicPort('port_b', p_int=p_int, fluid=fluid)
        self.ports = {
            'port_a': self.port_a,
            'port_b': self.port_b,
        }

        self.segments = [
            self.add_component(TubeBase(f'p{i}', p_int=p_int, area=area,
                                        length=effective_length / (self.N - 1),
                                        perimeter=perimeter, shape_factor=shape_factor,
                                        fluid=fluid))
            for i in range(1, self.N)
        ]
        self.volumes = [
            self.add_component(FixedVolume(f'v{i}', vol=area * length / self.N,
                                           p_int=p_int, fluid=fluid))
            for i in range(1, self.N + 1)
        ]

        self.connect(self.port_a, self.volumes[0].port, self.segments[0].port_a)
        for i in range(1, self.N - 1):
            self.connect(self.segments[i - 1].port_b, self.volumes[i].port,
                         self.segments[i].port_a)
        self.connect(self.segments[-1].port_b, self.volumes[-1].port, self.port_b)
