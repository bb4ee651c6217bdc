class HealthRouteError(RuntimeError):
    """Base error for the route health-scoring engine."""


class NoRoutesError(HealthRouteError):
    """No candidate route was supplied by the routing collaborator."""

    def __init__(self, message: str = "Could not find any routes. Please try different locations or travel modes."):
        super().__init__(message)


class InvalidSelectionError(HealthRouteError, ValueError):
    """Unknown health profile or travel mode (caller contract violation)."""
