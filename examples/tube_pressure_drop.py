"""
Tube pressure drop example - distributed friction versus a lumped estimate.

A 10 mm line carries a constant mass flow into a 1 bar reservoir. The tube
is discretized into N volumes; once the fluid has settled, the total drop
matches the single-segment Darcy-Weisbach value for every N.
"""

import numpy as np
from hydraulic_sim.core.graph import HydraulicNetwork
from hydraulic_sim.core.port import HydraulicPort
from hydraulic_sim.components.tube import Tube, darcy_weisbach
from hydraulic_sim.components.sources import PressureSource, MassFlowSource
from hydraulic_sim.properties.fluid import density, viscosity


def build(N, dm, area, length, p_out):
    net = HydraulicNetwork()
    src = net.add_component(MassFlowSource('pump', dm=dm, p_int=p_out))
    tube = net.add_component(Tube('line', N=N, p_int=p_out, area=area, length=length))
    sink = net.add_component(PressureSource('reservoir', p=p_out))
    net.connect(src.port, tube.port_a)
    net.connect(tube.port_b, sink.port)
    return net, tube


def main():
    print("=" * 60)
    print("TUBE PRESSURE DROP")
    print("=" * 60)

    d = 0.01  # m bore
    area = np.pi * d**2 / 4
    length = 2.0  # m
    p_out = 1e5  # Pa

    print(f"\nLine: d = {d*1e3:.0f} mm, L = {length} m, outlet {p_out/1e5:.1f} bar")

    ref = HydraulicPort('ref', p_int=p_out)
    print(f"\n{'dm [kg/s]':>10} {'N':>4} {'Δp [Pa]':>12} {'lumped [Pa]':>12} {'error':>10}")
    print("-" * 52)

    for dm in [0.005, 0.02, 0.08]:
        lumped = darcy_weisbach(dm, area, d, density(ref), viscosity(ref), length)
        for N in [2, 4, 8]:
            net, tube = build(N, dm, area, length, p_out)
            result = net.solve_transient(tspan=(0, 0.01), dt=1e-3)
            if not result.success:
                print(f"{dm:>10.3f} {N:>4} FAILED: {result.message}")
                continue

            p_in, _ = net.get_port_values(result, tube.port_a)
            p_end, _ = net.get_port_values(result, tube.port_b)
            dp = p_in[-1] - p_end[-1]
            print(f"{dm:>10.3f} {N:>4} {dp:>12.2f} {lumped:>12.2f} {dp/lumped - 1:>10.2e}")

    print("\n" + "=" * 60)
    print("SIMULATION COMPLETE")
    print("=" * 60)


if __name__ == '__main__':
    main()
