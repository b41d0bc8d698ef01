"""Exception types shared by the engine and its probes."""


class TestCancelled(Exception):
    """The run's cancellation token was signalled.

    Not an error condition: the engine ends the run at ``IDLE`` and never
    falls back to simulation for it.
    """

    __test__ = False  # keep pytest from collecting this as a test class


class ProbeError(RuntimeError):
    """A live probe could not complete (bad status, missing body, timeout)."""
