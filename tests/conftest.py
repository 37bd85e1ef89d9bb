import os
import signal
import sys

import pytest


# Import the colocated "bin/" dir, as a dir of importable modules

sys.path.insert(0, os.path.join(os.path.split(__file__)[0], os.pardir, "bin"))


@pytest.fixture(autouse=True)
def restore_sigpipe():
    """Undo whatever SIGPIPE handler a test installs"""

    if not hasattr(signal, "SIGPIPE"):
        yield
        return

    with_handler = signal.getsignal(signal.SIGPIPE)
    try:
        yield
    finally:
        signal.signal(signal.SIGPIPE, with_handler)
