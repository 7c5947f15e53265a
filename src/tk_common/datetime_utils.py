"""Unix-second time utilities.

Round timing is expressed in unix seconds; services take a Clock so tests
can pin "now".
"""

import time
from collections.abc import Callable

Clock = Callable[[], int]


def unix_now() -> int:
    """Return current unix time in whole seconds."""
    return int(time.time())
