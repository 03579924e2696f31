"""
Compressible fluid storage: fixed chambers and moving-wall chambers.

The density is carried as a differential variable next to its algebraic
equation of state, so a chamber driven by prescribed wall motion does not
form an algebraic loop through the pressure.
"""

import numpy as np
from hydraulic_sim.core.component import Component, CompositeComponent
from hydraulic_sim.core.variable import Variable
from hydraulic_sim.core.port import HydraulicPort, MechanicalPort
from hydraulic_sim.properties.fluid import HydraulicFluid, density, liquid_density
from hydraulic_sim.components.valve import ValveBase


class VolumeBase(Component):
    """
    Fluid chamber with a wall that may move.

    Governing equations:
        1. vol = dead_volume + area·x
        2. dx/dt(x) = dx
        3. d/dt(rho) = drho
        4. rho = density(port, p)
        5. port.dm = drho·vol + rho·area·dx   (mass conservation)

    The wall velocity ``dx`` is left to the owner (FixedVolume pins it to
    zero, DynamicVolume ties it to a flange).

    State variables:
        - x: wall position [m] (differential)
        - dx: wall velocity [m/s] (algebraic)
        - rho: density [kg/m³] (differential)
        - drho: density rate [kg/(m³·s)] (algebraic)
        - vol: chamber volume [m³] (algebraic)
    """

    def __init__(self,
                 name: str,
                 p_int: float,
                 area: float,
                 x_int: float = 0.0,
                 dead_volume: float = 0.0,
                 fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)

        if area < 0:
            raise ValueError(f"Wall area must be non-negative, got {area}")

        self.p_int = p_int
        self.area = area
        self.x_int = x_int
        self.dead_volume = dead_volume

        self.port = HydraulicPort('port', p_int=p_int, fluid=fluid)
        self.ports = {'port': self.port}

    def get_variables(self):
        return [
            Variable('x', kind='differential', initial=self.x_int, units='m'),
            Variable('dx', kind='algebraic', initial=0.0, units='m/s'),
            Variable('rho', kind='differential', initial=liquid_density(self.port, self.p_int),
                     units='kg/m³'),
            Variable('drho', kind='algebraic', initial=0.0, units='kg/(m³·s)'),
            Variable('vol', kind='algebraic', initial=self.dead_volume + self.area * self.x_int,
                     units='m³'),
        ]

    def residual(self, state, ports, t, state_dot=None):
        x, dx, rho, drho, vol = state
        if state_dot is None:
            state_dot = np.zeros(5)
        x_dot = state_dot[0]
        rho_dot = state_dot[2]

        port = ports['port']

        return np.array([
            vol - (self.dead_volume + self.area * x),
            dx - x_dot,
            drho - rho_dot,
            rho - density(port, port.p),
            port.dm - (drho * vol + rho * self.area * dx),
        ])


class FixedVolume(CompositeComponent):
    """
    Rigid compressible accumulator: a VolumeBase with no wall area or motion.

    Coupling equation:
        volume.dx = 0

    Parameters:
        vol: Fluid volume [m³]
        p_int: Initial pressure [Pa]
    """

    def __init__(self, name: str, vol: float, p_int: float,
                 fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)

        if vol <= 0:
            raise ValueError(f"Volume must be positive, got {vol}")

        self.vol = vol
        self.port = HydraulicPort('port', p_int=p_int, fluid=fluid)
        self.ports = {'port': self.port}

        self.volume = self.add_component(
            VolumeBase('volume', p_int=p_int, area=0.0, dead_volume=vol, fluid=fluid)
        )
        self.connect(self.volume.port, self.port)

    def residual(self, state, ports, t, state_dot=None):
        return np.array([self.volume.value('dx')])


def damper_area(vol: float, minimum_volume: float, damping_volume: float) -> float:
    """
    Opening of the end-stop damper as the chamber nears its minimum volume.

    Returns 1 above minimum_volume + damping_volume, closes linearly to 0 at
    minimum_volume, and stays 0 below it.
    """
    if vol >= damping_volume + minimum_volume:
        return 1.0
    if vol > minimum_volume:
        # only reachable with damping_volume > 0
        return (vol - minimum_volume) / damping_volume
    return 0.0


class DynamicVolume(CompositeComponent):
    """
    Chamber with a moving wall driven by a mechanical flange, plus a soft end stop.

    Built from a VolumeBase and a directional ValveBase damper placed between
    the chamber and the outer port. As the volume shrinks into the damping
    region the damper area closes linearly, choking outflow only; inflow is
    never restricted.

    ```
         ┌─────────────────┐ ───
         │                 │  ▲
                           │  │
    dm ────►  dead volume  │  │ area
                           │  │
         │                 │  ▼
         └─────────────────┤ ───
                           │
                           └─► x (= flange.v * direction)
    ```

    Coupling equations:
        1. damper.area = damper_area(vol, minimum_volume, damping_volume)
        2. vol.dx = flange.v·direction
        3. flange.f = -p·area·direction

    Parameters:
        direction: +1 or -1, orients the flange against the port so two
            chambers can oppose each other in an actuator
        p_int: Initial pressure [Pa]
        x_int: Initial wall position [m]
        area: Wall area [m²]
        dead_volume: Volume at x = 0 [m³]
        minimum_volume: Below this, exiting flow is blocked [m³]
        damping_volume: Width of the damping region above minimum_volume [m³]
            (default 5·minimum_volume)
        Cd: Discharge coefficient of the damper

    Ports:
        port (HydraulicPort): Fluid connection
        flange (MechanicalPort): Moving wall
    """

    def __init__(self,
                 name: str,
                 direction: int = +1,
                 p_int: float = 0.0,
                 x_int: float = 0.0,
                 area: float = 0.0,
                 dead_volume: float = 0.0,
                 minimum_volume: float = 0.0,
                 damping_volume: float | None = None,
                 Cd: float = 1e4,
                 fluid: HydraulicFluid = HydraulicFluid()):
        super().__init__(name)

        if direction not in (+1, -1):
            raise ValueError(f"direction argument must be +/-1, got {direction}")
        if damping_volume is None:
            damping_volume = 5 * minimum_volume
        if minimum_volume < 0 or damping_volume < 0:
            raise ValueError("minimum_volume and damping_volume must be non-negative")

        self.direction = direction
        self.area = area
        self.minimum_volume = minimum_volume
        self.damping_volume = damping_volume

        self.port = HydraulicPort('port', p_int=p_int, fluid=fluid)
        self.flange = MechanicalPort('flange')
        self.ports = {
            'port': self.port,
            'flange': self.flange,
        }

        self.vol = self.add_component(
            VolumeBase('vol', p_int=p_int, area=area, x_int=x_int,
                       dead_volume=dead_volume, fluid=fluid)
        )
        self.damper = self.add_component(
            ValveBase('damper', p_a_int=p_int, p_b_int=p_int, area_int=1.0, Cd=Cd,
                      directional=True, fluid=fluid)
        )

        self.connect(self.port, self.damper.port_b)
        self.connect(self.vol.port, self.damper.port_a)

    def residual(self, state, ports, t, state_dot=None):
        flange = ports['flange']
        opening = damper_area(self.vol.value('vol'), self.minimum_volume, self.damping_volume)

        return np.array([
            self.damper.value('area') - opening,
            self.vol.value('dx') - flange.v * self.direction,
            flange.f + self.vol.port.p * self.area * self.direction,
        ])
