"""
HydraulicNetwork: topology manager and equation assembler.

The network is responsible for:
  - Storing components and their connections
  - Validating port compatibility at connection time
  - Flattening composite components and merging connected ports into
    connection sets (equal potential, zero net flow)
  - Assembling component equations into a global DAE residual
    F(t, y, dy/dt) = 0 and checking that it is square
  - Invoking the solver

Global unknown vector layout:
    [ internal variables of every component (depth-first) |
      one potential per group of aliased ports |
      one flow per port ]
"""

import functools
import logging
import math
import warnings
from typing import Callable, Dict, Hashable, List, Optional, Tuple, Union

import numpy as np
from scipy.linalg import lstsq
from scipy.optimize import OptimizeResult, approx_fprime, root

from hydraulic_sim.core.component import Component, CompositeComponent, _check_connection
from hydraulic_sim.core.exceptions import IntegrationError, StructuralError
from hydraulic_sim.core.port import PhysicalPort, ScalarPort


logger = logging.getLogger(__name__)

STATUS_NOT_CONVERGED = -1
STATUS_NON_FINITE = -2


class UnionFind:
    """Disjoint-set with path compression; groups keep first-seen order."""

    def __init__(self) -> None:
        self._parent: Dict[Hashable, Hashable] = {}

    def find(self, x: Hashable) -> Hashable:
        if x not in self._parent:
            self._parent[x] = x
        root_ = x
        while self._parent[root_] != root_:
            root_ = self._parent[root_]
        while self._parent[x] != root_:
            self._parent[x], x = root_, self._parent[x]
        return root_

    def union(self, x: Hashable, y: Hashable) -> None:
        rx, ry = self.find(x), self.find(y)
        if rx != ry:
            self._parent[ry] = rx

    def groups(self) -> List[List[Hashable]]:
        grouped: Dict[Hashable, List[Hashable]] = {}
        for x in self._parent:
            grouped.setdefault(self.find(x), []).append(x)
        return list(grouped.values())


class _Layout:
    """Flattened structure of a network, built by HydraulicNetwork.assemble()."""

    def __init__(self, components: List[Component]):
        self.components = components
        self.offsets: Dict[str, int] = {}
        self.sizes: Dict[str, int] = {}
        self.ports: List[PhysicalPort] = []
        self.scalar_ports: List[ScalarPort] = []
        self.port_index: Dict[int, int] = {}
        self.port_group: List[int] = []
        self.sets: List[List[Tuple[int, float]]] = []
        self.n_internal = 0
        self.n_groups = 0

    @property
    def potential_offset(self) -> int:
        return self.n_internal

    @property
    def flow_offset(self) -> int:
        return self.n_internal + self.n_groups

    @property
    def size(self) -> int:
        return self.n_internal + self.n_groups + len(self.ports)


class HydraulicNetwork:
    """
    Manages network topology and orchestrates solution.

    Usage:
        net = HydraulicNetwork()
        net.add_component(supply)
        net.add_component(tube)
        net.add_component(volume)
        net.connect(supply.port, tube.port_a)
        net.connect(tube.port_b, volume.port)
        result = net.solve_transient(tspan=(0, 1.0), dt=1e-3)
    """

    def __init__(self):
        self.components: List[Component] = []
        self.connections: List[tuple] = []
        self._component_offsets: Dict[str, int] = {}
        self._layout: Optional[_Layout] = None

    def add_component(self, component: Component) -> Component:
        """
        Add a top-level component to the network.

        Args:
            component: Component instance to add

        Raises:
            ValueError: If a component with this name already exists, or the
                component is already owned by a composite
        """
        if component.name in [c.name for c in self.components]:
            raise ValueError(f"Component '{component.name}' already exists")
        if component.parent is not None:
            raise ValueError(
                f"Component '{component.name}' belongs to '{component.parent.name}'"
            )

        # Set component reference in all ports
        for port in component.ports.values():
            port.component = component

        self.components.append(component)
        return component

    def connect(self, *ports: PhysicalPort) -> None:
        """
        Connect two or more ports of top-level components.

        Connections are undirected. Repeated calls sharing a port merge into
        a single connection set: connect(a, b) then connect(b, c) yields
        {a, b, c}.

        Raises:
            TypeError: If ports are of incompatible kinds
            ValueError: If a port does not belong to a component of this network
        """
        _check_connection(ports, owners=self.components, scope='network')
        self.connections.append(tuple(ports))

    def iter_components(self) -> List[Component]:
        """All components, owners before their children (depth-first)."""
        ordered: List[Component] = []

        def visit(comp: Component) -> None:
            ordered.append(comp)
            for child in comp.children():
                visit(child)

        for comp in self.components:
            visit(comp)
        return ordered

    def _build_layout(self) -> _Layout:
        """
        Flatten the hierarchy and resolve connection sets.

        Every physical port has an outside side (sign +1) living in a set of
        its owner's parent. A composite port connected internally also has an
        inside side (sign -1) in a set of the composite itself. Unconnected
        sides end up in singleton sets, which forces their flow to zero.
        """
        layout = _Layout(self.iter_components())

        offset = 0
        for comp in layout.components:
            for port in comp.ports.values():
                port.component = comp
                if isinstance(port, ScalarPort):
                    layout.scalar_ports.append(port)
                elif isinstance(port, PhysicalPort):
                    layout.port_index[id(port)] = len(layout.ports)
                    layout.ports.append(port)
            layout.offsets[comp.path] = offset
            layout.sizes[comp.path] = comp.get_state_size()
            offset += layout.sizes[comp.path]
        layout.n_internal = offset

        sides = UnionFind()
        signs: Dict[tuple, float] = {}
        for port in layout.ports:
            key = (id(port), 'outer')
            sides.find(key)
            signs[key] = 1.0

        def join(keys: List[tuple]) -> None:
            for key in keys[1:]:
                sides.union(keys[0], key)

        for conn in self.connections:
            join([(id(p), 'outer') for p in conn])

        for comp in layout.components:
            if not isinstance(comp, CompositeComponent):
                continue
            own = {id(p) for p in comp.ports.values()}
            for conn in comp.connections:
                keys = []
                for port in conn:
                    if id(port) in own:
                        key = (id(port), 'inner')
                        sides.find(key)
                        signs[key] = -1.0
                    else:
                        key = (id(port), 'outer')
                    keys.append(key)
                join(keys)

        potentials = UnionFind()
        for port in layout.ports:
            potentials.find(id(port))
        for members in sides.groups():
            layout.sets.append([(layout.port_index[k[0]], signs[k]) for k in members])
            for key in members[1:]:
                potentials.union(members[0][0], key[0])

        group_of: Dict[int, int] = {}
        for g, members in enumerate(potentials.groups()):
            for port_id in members:
                group_of[port_id] = g
        layout.n_groups = len(set(group_of.values()))
        layout.port_group = [group_of[id(p)] for p in layout.ports]

        self._component_offsets = dict(layout.offsets)
        logger.debug(
            "Layout: %d components, %d internal variables, %d potentials, "
            "%d ports, %d connection sets",
            len(layout.components), layout.n_internal, layout.n_groups,
            len(layout.ports), len(layout.sets),
        )
        return layout

    def _load(self, layout: _Layout, t: float, y: np.ndarray, ydot: np.ndarray) -> None:
        """Bind local state slices and write potentials/flows into the ports."""
        for comp in layout.components:
            off = layout.offsets[comp.path]
            size = layout.sizes[comp.path]
            comp.bind(y[off:off+size], ydot[off:off+size])

        pot = y[layout.potential_offset:layout.flow_offset]
        flows = y[layout.flow_offset:]
        for k, port in enumerate(layout.ports):
            port.potential = pot[layout.port_group[k]]
            port.flow = flows[k]

        for port in layout.scalar_ports:
            port.update(t)

    def assemble(self) -> Tuple[Callable, np.ndarray, np.ndarray, List[bool]]:
        """
        Assemble the global DAE residual and its initial conditions.

        Returns:
            Tuple of:
                residual_func: Function(t, y, ydot) -> residuals
                y0: Initial vector (component defaults, port initial
                    potentials, zero flows)
                ydot0: Initial derivative vector (zeros)
                algebraic_vars: Boolean list (True = algebraic, False = differential)

        Raises:
            StructuralError: If the network is empty, or the number of
                equations differs from the number of unknowns
        """
        if not self.components:
            raise StructuralError("Cannot assemble empty network")

        layout = self._build_layout()
        self._layout = layout

        y0_parts = []
        algebraic_vars: List[bool] = []
        for comp in layout.components:
            y0_parts.append(comp.get_initial_state())
            for var in comp.get_variables():
                if var.kind == 'algebraic':
                    algebraic_vars.append(True)
                elif var.kind == 'differential':
                    algebraic_vars.append(False)
                else:
                    raise ValueError(
                        f"Unknown variable kind '{var.kind}' for {comp.path}.{var.name}. "
                        f"Must be 'algebraic' or 'differential'"
                    )

        potentials = np.zeros(layout.n_groups)
        seeded = set()
        for k, port in enumerate(layout.ports):
            g = layout.port_group[k]
            if g not in seeded:
                potentials[g] = port.initial_potential()
                seeded.add(g)
        y0_parts.append(potentials)
        y0_parts.append(np.zeros(len(layout.ports)))
        algebraic_vars.extend([True] * (layout.n_groups + len(layout.ports)))

        y0 = np.concatenate(y0_parts)
        ydot0 = np.zeros(layout.size)

        def residual_func(t: float, y: np.ndarray, ydot: np.ndarray) -> np.ndarray:
            """
            Global DAE residual function: F(t, y, dy/dt) = 0

            Residuals are not guarded against non-finite values; the solver
            checks them and reports the failure.
            """
            self._load(layout, t, y, ydot)

            residuals = []
            for comp in layout.components:
                off = layout.offsets[comp.path]
                size = layout.sizes[comp.path]
                res = comp.residual(y[off:off+size], comp.ports, t, ydot[off:off+size])
                residuals.append(np.atleast_1d(np.asarray(res, dtype=float)))

            flows = y[layout.flow_offset:]
            balance = np.array([
                sum(sign * flows[k] for k, sign in members)
                for members in layout.sets
            ])
            residuals.append(balance)

            return np.concatenate(residuals)

        n_equations = len(residual_func(0.0, y0, ydot0))
        if n_equations != layout.size:
            kind = 'over' if n_equations > layout.size else 'under'
            raise StructuralError(
                f"Network is {kind}-determined: {n_equations} equations for "
                f"{layout.size} unknowns"
            )

        return residual_func, y0, ydot0, algebraic_vars

    def solve_transient(self,
                        tspan: Union[Tuple[float, float], np.ndarray],
                        dt: Optional[float] = None,
                        y0: Optional[np.ndarray] = None,
                        method: str = 'hybr',
                        max_halvings: int = 4,
                        raise_on_failure: bool = False,
                        rtol: float = 1e-10,
                        atol: float = 1e-9,
                        max_iter: int = 15,
                        **root_options) -> OptimizeResult:
        """
        Integrate the DAE F(t, y, dy/dt) = 0 with implicit (backward) Euler.

        Each step solves F(t+h, y+, (y+ - y)/h) = 0 for y+. Newton's method
        with a finite-difference Jacobian runs first; if it does not
        converge, scipy.optimize.root is tried with ``method`` and then with
        'lm'. A candidate is accepted when every residual satisfies
        |F_i| <= rtol·size_i + atol, where size_i is the largest term
        |dF_i/dy_j|·|y_j| of that equation. A step that fails, or that
        produces non-finite residuals, is retried as 2, 4, ... substeps up
        to ``max_halvings`` times.

        Args:
            tspan: (t_start, t_end) or array of output time points [s]
            dt: Step size. For a tuple tspan the default is 1/100 of the span;
                for an array it is the maximum substep between output points.
            y0: Optional initial vector (otherwise the assembled defaults)
            method: Root finding algorithm for scipy.optimize.root, used when
                the Newton iteration does not converge
            max_halvings: Number of step-halving retries per step
            raise_on_failure: Raise IntegrationError instead of returning an
                unsuccessful result
            rtol: Relative residual tolerance of a step
            atol: Absolute residual tolerance of a step
            max_iter: Newton iterations per step before falling back to root
            **root_options: Extra keyword arguments for scipy.optimize.root

        Returns:
            OptimizeResult with:
                .t: Time points
                .y: State trajectory [n_vars, n_timepoints]
                .success, .status, .message: Outcome (status -1 = step did not
                    converge, -2 = non-finite residual)
                .component_names, .component_offsets, .state_names: Metadata

        Raises:
            ValueError: If the network has no differential variables
        """
        residual_func, y0_default, _, algebraic_vars = self.assemble()

        if all(algebraic_vars):
            raise ValueError(
                "System has no differential variables. "
                "Use solve_steady_state() for pure algebraic systems."
            )

        if y0 is None:
            y = y0_default
        else:
            y = np.asarray(y0, dtype=float).copy()
            if y.shape != y0_default.shape:
                raise ValueError(
                    f"y0 has shape {y.shape}, expected {y0_default.shape}"
                )

        if isinstance(tspan, tuple):
            t_start, t_end = tspan
            step = dt if dt is not None else (t_end - t_start) / 100
            n_steps = max(1, math.ceil((t_end - t_start) / step - 1e-9))
            t_points = np.linspace(t_start, t_end, n_steps + 1)
            max_step = None
        else:
            t_points = np.asarray(tspan, dtype=float)
            max_step = dt

        solve_step = functools.partial(
            self._euler_step, residual_func, method=method, rtol=rtol, atol=atol,
            max_iter=max_iter, root_options=root_options,
        )

        logger.info("Transient solve over [%g, %g] with %d output points",
                    t_points[0], t_points[-1], len(t_points))

        times = [t_points[0]]
        states = [y]
        status, message = 0, "Integration successful."
        for t_next in t_points[1:]:
            try:
                y = self._advance(solve_step, times[-1], states[-1], t_next,
                                  max_step, max_halvings)
            except IntegrationError as exc:
                status, message = exc.status, str(exc)
                break
            times.append(t_next)
            states.append(y)

        result = OptimizeResult(
            t=np.array(times),
            y=np.array(states).T,
            success=status == 0,
            status=status,
            message=message,
        )
        self._attach_metadata(result)

        if result.success:
            logger.info("Transient solve finished at t=%g", times[-1])
            # Leave port values at the final state
            if len(times) > 1:
                h = times[-1] - times[-2]
                residual_func(times[-1], states[-1], (states[-1] - states[-2]) / h)
        else:
            warnings.warn(f"Transient solver failed: {message}")
            if raise_on_failure:
                raise IntegrationError(message, t=times[-1], status=status)

        return result

    def _advance(self, solve_step, t, y, t_next, max_step, max_halvings) -> np.ndarray:
        """Advance from t to t_next, in substeps of at most max_step."""
        n_sub = 1
        if max_step is not None:
            n_sub = max(1, math.ceil((t_next - t) / max_step - 1e-9))
        h = (t_next - t) / n_sub
        for k in range(n_sub):
            y = self._step(solve_step, t + k * h, y, h, max_halvings)
        return y

    def _step(self, solve_step, t, y, h, max_halvings) -> np.ndarray:
        """One backward Euler step of size h, halving on failure."""
        failure = None
        for attempt in range(max_halvings + 1):
            n = 2 ** attempt
            h_sub = h / n
            y_try = y
            for k in range(n):
                y_try, failure = solve_step(t + k * h_sub, y_try, h_sub)
                if failure is not None:
                    break
            if failure is None:
                return y_try
            logger.debug("Step at t=%g failed (%s); retrying with %d substeps",
                         t, failure[1], 2 * n)

        status, message = failure
        raise IntegrationError(message, t=t, status=status)

    def _euler_step(self, residual_func, t, y, h, method, rtol, atol, max_iter,
                    root_options):
        """
        Solve one backward Euler step from (t, y) to t + h.

        Newton's method re-evaluates the Jacobian on every iteration, so it
        crosses the kinks of the orifice and end-stop laws in a few steps.
        A root fallback is accepted only when its residual passes the same
        test as Newton, whatever the exit flag of the underlying solver.

        Returns:
            (y_next, None) on success, (None, (status, message)) on failure
        """
        t_next = t + h

        def step_residual(y_next):
            return residual_func(t_next, y_next, (y_next - y) / h)

        with np.errstate(all='ignore'):
            f = step_residual(y)
        if not np.all(np.isfinite(f)):
            culprits = self._locate_nonfinite(residual_func, t_next, y, np.zeros_like(y))
            return None, (STATUS_NON_FINITE,
                          f"Non-finite residual at t={t_next:g} in {culprits}")

        y_next, error = _newton(step_residual, y, rtol, atol, max_iter)
        if y_next is not None:
            return y_next, None

        fallbacks = [(method, root_options)]
        if method != 'lm':
            fallbacks.append(('lm', {}))
        for name, options in fallbacks:
            with np.errstate(all='ignore'):
                sol = root(step_residual, y, method=name, **options)
            if not np.all(np.isfinite(sol.x)):
                continue
            candidate_error, _, _ = _step_error(step_residual, sol.x, y, rtol, atol)
            if candidate_error <= 1.0:
                logger.debug("Step to t=%g accepted from root(method=%r)", t_next, name)
                return sol.x, None
            error = min(error, candidate_error)

        return None, (STATUS_NOT_CONVERGED,
                      f"Step to t={t_next:g} did not converge "
                      f"(scaled residual {error:.3g})")

    def _locate_nonfinite(self, residual_func, t, y, ydot) -> List[str]:
        """Names of the components whose residuals are not finite."""
        layout = self._layout
        with np.errstate(all='ignore'):
            self._load(layout, t, y, ydot)
            names = []
            for comp in layout.components:
                off = layout.offsets[comp.path]
                size = layout.sizes[comp.path]
                res = np.asarray(comp.residual(y[off:off+size], comp.ports, t,
                                               ydot[off:off+size]), dtype=float)
                if not np.all(np.isfinite(res)):
                    names.append(comp.path)
        return names or ['connection balance']

    def solve_steady_state(self, t: float = 0.0, y0: Optional[np.ndarray] = None,
                           method: str = 'hybr', rtol: float = 1e-10, atol: float = 1e-9,
                           **solver_options) -> OptimizeResult:
        """
        Find a steady state by solving F(t, y, 0) = 0 simultaneously.

        The result counts as converged when the root finder says so, or when
        its residual passes the same scaled test as a transient step.

        Suited to networks whose differential variables are all pinned at
        steady state (or purely algebraic networks). Positions of free
        integrators are not determined by F(t, y, 0) = 0; use
        solve_transient() for networks containing them.

        Args:
            t: Time at which time-dependent sources are evaluated [s]
            y0: Initial guess (if None, use assembled defaults)
            method: Root finding algorithm for scipy.optimize.root
            rtol: Relative residual tolerance
            atol: Absolute residual tolerance
            **solver_options: Passed to scipy.optimize.root

        Returns:
            Result object with .x, .success, .message, .fun, plus .y/.t shaped
            like a one-point trajectory for get_component_state()
        """
        residual_func, y0_default, ydot0, _ = self.assemble()
        if y0 is None:
            y0 = y0_default

        def steady_residual(y):
            return residual_func(t, y, ydot0)

        with np.errstate(all='ignore'):
            result = root(steady_residual, y0, method=method, **solver_options)

        if not result.success and np.all(np.isfinite(result.x)):
            error, _, _ = _step_error(steady_residual, result.x, y0, rtol, atol)
            if error <= 1.0:
                result.success = True
                result.message = f"Residual within tolerance ({result.message})"

        if not result.success:
            warnings.warn(f"Steady-state solver failed: {result.message}")

        self._attach_metadata(result)
        result.y = result.x.reshape(-1, 1)
        result.t = np.array([t])

        # Trigger final residual evaluation to update all port values
        _ = residual_func(t, result.x, ydot0)

        return result

    def _attach_metadata(self, result: OptimizeResult) -> None:
        layout = self._layout
        result.component_names = [c.path for c in layout.components]
        result.component_offsets = self._component_offsets.copy()
        result.state_names = {c.path: c.get_state_names() for c in layout.components}

    def get_component_state(self, result: object, component_path: str) -> np.ndarray:
        """
        Extract one component's internal variable trajectory from a solution.

        Args:
            result: Solution object from solve_transient()/solve_steady_state()
            component_path: Dotted path of the component (e.g. 'tube.v1.volume')

        Returns:
            Array of shape [n_vars, n_timepoints] for this component
        """
        layout = self._require_layout()
        offset = layout.offsets[component_path]
        size = layout.sizes[component_path]
        return result.y[offset:offset+size, :]

    def get_port_values(self, result: object, port: PhysicalPort) -> Tuple[np.ndarray, np.ndarray]:
        """
        Extract (potential, flow) trajectories of a port from a solution.

        Returns:
            Tuple of arrays of shape [n_timepoints]
        """
        layout = self._require_layout()
        k = layout.port_index[id(port)]
        potential = result.y[layout.potential_offset + layout.port_group[k], :]
        flow = result.y[layout.flow_offset + k, :]
        return potential, flow

    def connection_sets(self) -> List[List[Tuple[PhysicalPort, float]]]:
        """
        Resolved connection sets as lists of (port, sign).

        The sign is +1 for a port seen from outside its component and -1 for
        a composite port seen from inside. Each set satisfies sum(sign·flow) = 0.
        """
        layout = self._build_layout()
        return [[(layout.ports[k], sign) for k, sign in members] for members in layout.sets]

    def _require_layout(self) -> _Layout:
        if self._layout is None:
            self._layout = self._build_layout()
        return self._layout

    def validate_topology(self) -> List[str]:
        """
        Check for common topology errors.

        Returns:
            List of warning messages (empty if no issues)

        Checks:
            - Unconnected ports of top-level components (their flow is
              forced to zero)
        """
        warnings_list = []

        for comp in self.components:
            for port_name, port in comp.ports.items():
                if not isinstance(port, PhysicalPort):
                    continue
                is_connected = any(
                    port is conn_port
                    for conn in self.connections
                    for conn_port in conn
                )
                if not is_connected:
                    warnings_list.append(
                        f"Component '{comp.name}' has unconnected port '{port_name}'"
                    )

        return warnings_list


def _fd_steps(x: np.ndarray) -> np.ndarray:
    return np.sqrt(np.finfo(float).eps) * np.maximum(np.abs(x), 1.0)


def _step_error(func: Callable, x: np.ndarray, y: np.ndarray,
                rtol: float, atol: float) -> Tuple[float, np.ndarray, Optional[np.ndarray]]:
    """
    Scaled residual of ``func`` at x, with the residual and its Jacobian.

    Each equation is measured against its largest term |dF_i/dx_j|·|x_j|
    (taking |x_j| as the larger of the candidate and the previous state y).
    The error is max |F_i| / (rtol·size_i + atol); x is converged when it
    is <= 1.
    """
    with np.errstate(all='ignore'):
        f = np.asarray(func(x), dtype=float)
        if not np.all(np.isfinite(f)):
            return np.inf, f, None
        jac = approx_fprime(x, func, _fd_steps(x))
        magnitude = np.maximum(np.abs(x), np.abs(y))
        size = np.max(np.abs(jac) * magnitude, axis=1)
        error = np.max(np.abs(f) / (rtol * size + atol))
    if not (np.isfinite(error) and np.all(np.isfinite(jac))):
        return np.inf, f, None
    return float(error), f, jac


def _newton_direction(jac: np.ndarray, f: np.ndarray, x: np.ndarray) -> np.ndarray:
    """Solve J·dx = -f by least squares on the row and column scaled system."""
    cols = np.maximum(np.abs(x), 1.0)
    scaled = jac * cols
    rows = np.max(np.abs(scaled), axis=1)
    rows[rows == 0] = 1.0
    dz = lstsq(scaled / rows[:, None], -f / rows)[0]
    return dz * cols


def _newton(func: Callable, y: np.ndarray, rtol: float, atol: float,
            max_iter: int) -> Tuple[Optional[np.ndarray], float]:
    """
    Newton iteration for func(x) = 0 starting from y.

    Returns (x, error) on convergence and (None, error) otherwise.
    """
    x = y.copy()
    error = np.inf
    for _ in range(max_iter):
        error, f, jac = _step_error(func, x, y, rtol, atol)
        if error <= 1.0:
            return x, error
        if jac is None:
            return None, error
        x = x + _newton_direction(jac, f, x)
    return None, error
