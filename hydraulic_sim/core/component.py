"""
Base classes for all hydraulic and mechanical components.

Components are the building blocks of a network. Each component:
  - Declares its internal variables
  - Defines residual equations that must equal zero at solution
  - Exposes ports for connection to other components

Composite components additionally own child components, connect their
ports internally, and add coupling equations between them.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional
import numpy as np
from hydraulic_sim.core.variable import Variable
from hydraulic_sim.core.port import Port, PhysicalPort


class Component(ABC):
    """
    Abstract base class for all components.

    Subclasses must implement:
        - get_variables(): declare internal variables
        - residual(): define governing equations

    Attributes:
        name: Identifier, unique among siblings (checked by the owner)
        ports: Dictionary of ports (populated by subclass __init__)
        parent: Owning composite, if any
    """

    def __init__(self, name: str):
        """
        Initialize component.

        Args:
            name: Unique identifier among its siblings
        """
        self.name = name
        self.ports: Dict[str, Port] = {}
        self.parent: Optional['CompositeComponent'] = None
        self._index: Optional[Dict[str, int]] = None
        self._state: Optional[np.ndarray] = None
        self._state_dot: Optional[np.ndarray] = None

    @abstractmethod
    def get_variables(self) -> List[Variable]:
        """
        Declare internal variables for this component.

        Returns:
            List of Variable objects. Order matters: it must match the order
            of the state slice handed to residual().
        """
        pass

    def get_initial_state(self) -> np.ndarray:
        """Initial values of the internal variables, as a numpy array."""
        return np.array([v.initial for v in self.get_variables()], dtype=float)

    @abstractmethod
    def residual(self,
                 state: np.ndarray,
                 ports: Dict[str, Port],
                 t: float,
                 state_dot: np.ndarray | None = None) -> np.ndarray:
        """
        Compute the residuals of this component's equations.

        Args:
            state: This component's internal variables (local slice)
            ports: Dictionary mapping port names to ports holding current values
            t: Current simulation time [s]
            state_dot: Time derivatives of the internal variables. None is
                       treated as a steady state (all derivatives zero).

        Returns:
            1D numpy array of residuals. The length does not have to match the
            state: a component may leave variables to be fixed by its owner,
            and the network checks that the assembled system is square.

        Convention:
            Differential variable x with dx/dt = f:  residual = f - state_dot[i]
            Algebraic constraint g = 0:             residual = g
        """
        pass

    def children(self) -> List['Component']:
        """Direct sub-components (none for a leaf)"""
        return []

    def bind(self, state: np.ndarray, state_dot: np.ndarray) -> None:
        """Attach the current local state so owners can read it by name."""
        self._state = state
        self._state_dot = state_dot

    def value(self, name: str) -> float:
        """Current value of internal variable ``name`` (requires bind())."""
        return self._state[self._variable_index(name)]

    def derivative(self, name: str) -> float:
        """Current time derivative of internal variable ``name``."""
        return self._state_dot[self._variable_index(name)]

    def _variable_index(self, name: str) -> int:
        if self._index is None:
            self._index = {n: i for i, n in enumerate(self.get_state_names())}
        try:
            return self._index[name]
        except KeyError:
            raise KeyError(f"Component '{self.name}' has no variable '{name}'") from None

    @property
    def path(self) -> str:
        """Dotted name from the top-level component, e.g. 'tube.v1.volume'"""
        if self.parent is None:
            return self.name
        return f"{self.parent.path}.{self.name}"

    def get_state_size(self) -> int:
        """Convenience: return number of internal variables"""
        return len(self.get_variables())

    def get_state_names(self) -> List[str]:
        """Convenience: return list of variable names for debugging"""
        return [v.name for v in self.get_variables()]

    def __repr__(self) -> str:
        port_names = ', '.join(self.ports.keys())
        return f"{self.__class__.__name__}('{self.name}', ports=[{port_names}])"


class CompositeComponent(Component):
    """
    Component built from child components.

    A composite connects its own ports to its children's ports (or children
    to each other) and may add coupling equations through residual(). It
    never duplicates child state; coupling equations read child variables via
    ``child.value(name)`` and child port values.

    Attributes:
        components: Child components in insertion order
        connections: Internal connection tuples (each >= 2 ports)
    """

    def __init__(self, name: str):
        super().__init__(name)
        self.components: List[Component] = []
        self.connections: List[tuple] = []

    def add_component(self, component: Component) -> Component:
        """
        Add a child component and return it.

        Raises:
            ValueError: If a child with this name already exists
        """
        if component.name in [c.name for c in self.components]:
            raise ValueError(
                f"Component '{component.name}' already exists in '{self.name}'"
            )
        component.parent = self
        for port in component.ports.values():
            port.component = component
        self.components.append(component)
        return component

    def connect(self, *ports: Port) -> None:
        """
        Connect ports of this composite and/or its direct children.

        Raises:
            ValueError: If fewer than two ports are given or a port does not
                belong to this composite or one of its children
            TypeError: If the ports are of incompatible kinds
        """
        _check_connection(ports, owners=[self] + self.components, scope=self.name)
        self.connections.append(tuple(ports))

    def children(self) -> List[Component]:
        return list(self.components)

    def get_variables(self) -> List[Variable]:
        return []

    def residual(self, state, ports, t, state_dot=None):
        return np.zeros(0)


def _check_connection(ports, owners, scope: str) -> None:
    """Validate one connect() call against the components allowed in scope."""
    if len(ports) < 2:
        raise ValueError("A connection needs at least two ports")

    first = ports[0]
    for port in ports:
        if not isinstance(port, PhysicalPort):
            raise TypeError(
                f"Cannot connect {port}: only hydraulic and mechanical ports "
                f"form connection sets"
            )
        if not first.compatible_with(port):
            raise TypeError(
                f"Cannot connect {first} to {port}: incompatible port kinds"
            )
        if not any(port is p for owner in owners for p in owner.ports.values()):
            raise ValueError(f"Port {port} does not belong to a component of '{scope}'")

    if len({id(p) for p in ports}) != len(ports):
        raise ValueError("A connection cannot list the same port twice")
