"""
Wrapper around CoolProp with caching for performance.

CoolProp is the industry-standard thermodynamic property library. The
hydraulic model only needs a handful of liquid properties at a reference
state; this wrapper adds LRU caching to avoid redundant expensive calls.
"""

from functools import lru_cache
from CoolProp.CoolProp import PropsSI


class FluidProperties:
    """
    Interface to liquid properties via CoolProp.

    All methods use SI units:
        Pressure: Pa (absolute)
        Temperature: K
        Density: kg/m³
        Viscosity: Pa·s
        Bulk modulus: Pa

    Example:
        water = FluidProperties('Water')
        rho = water.density(P=101325.0, T=293.15)   # ~998 kg/m³
        K = water.bulk_modulus(P=101325.0, T=293.15)  # ~2.2e9 Pa
    """

    def __init__(self, fluid_name: str):
        """
        Initialize for a specific fluid.

        Args:
            fluid_name: CoolProp fluid name (e.g., 'Water', 'Ethanol')
        """
        self.fluid = fluid_name

        # Validate that CoolProp recognizes this fluid
        try:
            PropsSI('T', 'P', 1e5, 'Q', 0, fluid_name)
        except ValueError as e:
            raise ValueError(f"Unknown fluid '{fluid_name}' for CoolProp") from e

    @lru_cache(maxsize=1000)
    def density(self, P: float, T: float) -> float:
        """Get density from pressure and temperature"""
        return PropsSI('D', 'P', P, 'T', T, self.fluid)

    @lru_cache(maxsize=1000)
    def viscosity(self, P: float, T: float) -> float:
        """Get dynamic viscosity from pressure and temperature"""
        return PropsSI('V', 'P', P, 'T', T, self.fluid)

    @lru_cache(maxsize=1000)
    def speed_of_sound(self, P: float, T: float) -> float:
        """Get speed of sound from pressure and temperature"""
        return PropsSI('A', 'P', P, 'T', T, self.fluid)

    def bulk_modulus(self, P: float, T: float) -> float:
        """
        Get the bulk modulus K = rho·c² from pressure and temperature.

        This is the isentropic modulus; for liquids it is within a few
        percent of the isothermal one.
        """
        return self.density(P, T) * self.speed_of_sound(P, T) ** 2

    def clear_cache(self):
        """Clear LRU caches (useful for memory management in long runs)"""
        self.density.cache_clear()
        self.viscosity.cache_clear()
        self.speed_of_sound.cache_clear()
