from __future__ import annotations

import time
from typing import Callable


def pump_until(pump: Callable[[], object], predicate: Callable[[], object], timeout: float, interval: float = 0.2):
    """Calls ``pump`` repeatedly until ``predicate`` is truthy or time runs out.

    Returns the last predicate result, evaluated after a final pump.
    """

    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        pump()
        result = predicate()
        if result:
            return result
        time.sleep(interval)
    pump()
    return predicate()
