class DetectionError(RuntimeError):
    """Base error for the detection engine."""


class ElementDetachedError(DetectionError):
    """Raised when an element left the tree before it could be inspected."""


class InvalidSessionStateError(DetectionError):
    """Raised in strict mode when start/stop is called in the wrong state."""
