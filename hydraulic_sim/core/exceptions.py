"""Error types raised while assembling and integrating hydraulic networks."""


class StructuralError(ValueError):
    """The assembled network is empty or not square (over/under-determined)."""


class IntegrationError(RuntimeError):
    """The integrator could not advance the network in time."""

    def __init__(self, message: str, t: float | None = None, status: int = -1):
        super().__init__(message)
        self.t = t
        self.status = status
