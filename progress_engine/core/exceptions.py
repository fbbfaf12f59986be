class ProgressEngineError(Exception):
    """Base exception for the progress engine."""

    pass


class InvalidProgressError(ProgressEngineError):
    """Raised when a progress value is outside [0, 100] or not a number."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Progress must be a number between 0 and 100, got {value!r}")


class InvalidWeightError(ProgressEngineError):
    """Raised when a weight value is outside [0, 100] or not a number."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Weight must be a number between 0 and 100, got {value!r}")


class NodeNotFoundError(ProgressEngineError):
    """Raised when a mission, sibling group or task id is unknown."""

    def __init__(self, kind: str, node_id: str):
        self.kind = kind
        self.node_id = node_id
        super().__init__(f"{kind} '{node_id}' not found")


class NoPeriodDefinedError(ProgressEngineError):
    """Raised when a PERIOD rebalance finds no sibling with both dates set."""

    def __init__(self, level: str):
        self.level = level
        super().__init__(f"No {level} sibling has a start and end date; cannot weight by period")


class ManualWeightingError(ProgressEngineError):
    """Raised when an automatic rebalance targets a manually weighted group."""

    def __init__(self, message: str = "Sibling group uses MANUAL weights; pass override to rebalance"):
        super().__init__(message)


class ConcurrencyConflictError(ProgressEngineError):
    """Raised when a concurrent write touched the same mission. Safe to retry."""

    def __init__(self, mission_id: str, expected_version: int | None = None):
        self.mission_id = mission_id
        self.expected_version = expected_version
        detail = f" at version {expected_version}" if expected_version is not None else ""
        super().__init__(f"Concurrent update on mission '{mission_id}'{detail}")
