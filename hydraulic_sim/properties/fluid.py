"""
Isothermal compressible liquid model and pipe friction correlations.

Density and viscosity are pure functions of a port's pressure and the fluid
it carries. Pressures are gauge pressures [Pa].
"""

from dataclasses import dataclass

import numpy as np


# Reynolds number bounds of the laminar/turbulent transition band
RE_LAMINAR = 2000.0
RE_TURBULENT = 3000.0


@dataclass(frozen=True)
class HydraulicFluid:
    """
    Parameters of an isothermal, slightly compressible liquid.

    Defaults describe water at 20 C.

    Attributes:
        density: Density at zero gauge pressure [kg/m³]
        bulk_modulus: Isothermal bulk modulus [Pa]
        viscosity: Dynamic viscosity [Pa·s]
    """
    density: float = 997.0
    bulk_modulus: float = 2.09e9
    viscosity: float = 0.0010016

    def __post_init__(self):
        if self.density <= 0:
            raise ValueError(f"Fluid density must be positive, got {self.density}")
        if self.bulk_modulus <= 0:
            raise ValueError(f"Bulk modulus must be positive, got {self.bulk_modulus}")
        if self.viscosity <= 0:
            raise ValueError(f"Viscosity must be positive, got {self.viscosity}")

    @classmethod
    def from_coolprop(cls, fluid_name: str = 'Water', T: float = 293.15,
                      P: float = 101325.0) -> 'HydraulicFluid':
        """
        Build fluid parameters from CoolProp at a reference state.

        The bulk modulus is taken from the speed of sound, K = rho·c².

        Args:
            fluid_name: CoolProp fluid name (e.g., 'Water')
            T: Reference temperature [K]
            P: Reference absolute pressure [Pa]
        """
        from hydraulic_sim.properties.coolprop_wrapper import FluidProperties

        props = FluidProperties(fluid_name)
        return cls(
            density=props.density(P, T),
            bulk_modulus=props.bulk_modulus(P, T),
            viscosity=props.viscosity(P, T),
        )


def liquid_density(port, p: float | None = None) -> float:
    """Linear equation of state: rho = rho_0·(1 + p/K)"""
    if p is None:
        p = port.p
    fluid = port.fluid
    return fluid.density * (1 + p / fluid.bulk_modulus)


def density(port, p: float | None = None) -> float:
    """Density [kg/m³] of the fluid at ``port`` (at pressure ``p`` if given)."""
    return liquid_density(port, p)


def viscosity(port) -> float:
    """Dynamic viscosity [Pa·s] of the fluid at ``port``."""
    return port.fluid.viscosity


def reg_pow(x: float, a: float, delta: float = 0.01) -> float:
    """Regularized x·|x|^(a-1): smooth and finite through x = 0 for a < 1"""
    return x * (x * x + delta * delta) ** ((a - 1) / 2)


def transition(x1: float, x2: float, y1: float, y2: float, x: float) -> float:
    """Blend y1 -> y2 over x in [x1, x2] with a C1 cubic."""
    if x <= x1:
        return y1
    if x >= x2:
        return y2
    u = (x - x1) / (x2 - x1)
    blend = 3 * u**2 - 2 * u**3
    return (1 - blend) * y1 + blend * y2


def f_laminar(shape_factor: float, Re: float) -> float:
    return shape_factor * reg_pow(Re, -1, 1e-6)


def f_turbulent(shape_factor: float, Re: float) -> float:
    return (shape_factor / 64) / (0.79 * np.log(Re) - 1.64) ** 2


def friction_factor(dm: float, area: float, d_h: float, density: float,
                    viscosity: float, shape_factor: float) -> float:
    """
    Darcy friction factor, signed with the flow direction.

    The magnitude follows Phi/Re in laminar flow, the Petukhov-type fit in
    turbulent flow, and a cubic blend in between. The sign of ``dm`` is
    carried so that 1/2·rho·u²·f is an odd function of the flow.

    Args:
        dm: Mass flow [kg/s]
        area: Flow cross section [m²]
        d_h: Hydraulic diameter [m]
        density: Fluid density [kg/m³]
        viscosity: Dynamic viscosity [Pa·s]
        shape_factor: Laminar shape factor Phi (64 for a circular pipe)
    """
    u = abs(dm) / (density * area)
    Re = density * u * d_h / viscosity

    if Re <= RE_LAMINAR:
        f = f_laminar(shape_factor, Re)
    elif Re >= RE_TURBULENT:
        f = f_turbulent(shape_factor, Re)
    else:
        f = transition(RE_LAMINAR, RE_TURBULENT,
                       f_laminar(shape_factor, Re), f_turbulent(shape_factor, Re), Re)

    return np.sign(dm) * f
