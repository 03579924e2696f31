"""
Actuator example - a cylinder driven through a spool valve.

Supply pressure reaches chamber A through a 4-way spool valve while chamber
B drains to tank. The spool is held at a fixed opening by a velocity
source for the whole run, so the piston extends steadily against a constant
load.
"""

import numpy as np
from hydraulic_sim.core.graph import HydraulicNetwork
from hydraulic_sim.components.actuator import Actuator
from hydraulic_sim.components.valve import SpoolValve2Way
from hydraulic_sim.components.tube import Tube
from hydraulic_sim.components.sources import PressureSource
from hydraulic_sim.components.mechanical import ForceSource, VelocitySource


def main():
    print("=" * 60)
    print("ACTUATOR EXTENSION")
    print("=" * 60)

    p_supply = 100e5  # Pa
    p_tank = 0.0
    area = 2e-3  # m² piston area (both sides)
    load = -5e3  # N, resisting extension

    net = HydraulicNetwork()

    supply = net.add_component(PressureSource('supply', p=p_supply))
    tank = net.add_component(PressureSource('tank', p=p_tank))

    # Spool opens 0.5 mm then stays put
    spool = net.add_component(SpoolValve2Way(
        'spool', p_s_int=p_supply, p_a_int=p_tank, p_b_int=p_tank, p_r_int=p_tank,
        m=0.01, g=0.0, x_int=0.5e-3, Cd=2.0, d=0.01,
    ))
    hold = net.add_component(VelocitySource('hold', v=0.0))

    line_a = net.add_component(Tube('line_a', N=3, p_int=p_tank, area=5e-5, length=1.0))
    line_b = net.add_component(Tube('line_b', N=3, p_int=p_tank, area=5e-5, length=1.0))

    cyl = net.add_component(Actuator(
        'cyl', p_a_int=p_tank, p_b_int=p_tank, area_a=area, area_b=area,
        length_a_int=0.05, length_b_int=0.25, m=50.0, g=0.0,
        minimum_volume_a=1e-5, minimum_volume_b=1e-5,
        damping_volume_a=5e-5, damping_volume_b=5e-5,
    ))
    force = net.add_component(ForceSource('load', f=load))

    net.connect(supply.port, spool.port_s)
    net.connect(spool.port_r, tank.port)
    net.connect(spool.flange, hold.flange)
    net.connect(spool.port_a, line_a.port_a)
    net.connect(line_a.port_b, cyl.port_a)
    net.connect(cyl.port_b, line_b.port_b)
    net.connect(line_b.port_a, spool.port_b)
    net.connect(cyl.flange, force.flange)

    for warning in net.validate_topology():
        print(f"⚠ {warning}")

    print(f"\nSupply: {p_supply/1e5:.0f} bar, load: {load/1e3:.1f} kN, piston area: {area*1e4:.0f} cm²")

    print("\n" + "-" * 60)
    print("Running transient simulation...")
    print("-" * 60)

    result = net.solve_transient(tspan=np.linspace(0, 0.2, 41), dt=2e-4)

    print(f"Solver status: {'SUCCESS' if result.success else 'FAILED'}")
    if not result.success:
        print(f"Message: {result.message}")

    x, dx = net.get_component_state(result, 'cyl')
    p_a, _ = net.get_port_values(result, cyl.port_a)
    p_b, _ = net.get_port_values(result, cyl.port_b)

    print(f"\n{'t [s]':>8} {'x [mm]':>10} {'v [m/s]':>10} {'p_a [bar]':>10} {'p_b [bar]':>10}")
    for k in range(0, len(result.t), 5):
        print(f"{result.t[k]:>8.3f} {x[k]*1e3:>10.2f} {dx[k]:>10.3f} "
              f"{p_a[k]/1e5:>10.2f} {p_b[k]/1e5:>10.2f}")

    print("\n" + "=" * 60)
    print("SIMULATION COMPLETE")
    print("=" * 60)


if __name__ == '__main__':
    main()
