import threading
import time


class CancellationToken:
    """
    Cooperative shutdown flag. Written once by the signal handler, read at every suspension point.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """
        Blocks for up to `seconds` or until cancellation is requested.
        Returns:
            bool: True if cancellation was requested, False if the timeout elapsed.
        """
        return self._event.wait(max(seconds, 0.0))


class Clock:
    """Wall-clock time source. Every wait goes through `sleep` so it can be interrupted."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float, token: CancellationToken) -> bool:
        """
        Sleeps for `seconds` unless `token` is cancelled first.

        Args:
            seconds (float): How long to wait. Non-positive values only check the token.
            token (CancellationToken): The shutdown token to observe.

        Returns:
            bool: True if the full duration elapsed, False if the wait was interrupted.
        """
        if token.cancelled:
            return False
        if seconds <= 0:
            return True
        return not token.wait(seconds)


def bytes_to_mbps(delta_bytes: int, seconds: float) -> float:
    """
    Converts a byte delta observed over `seconds` into megabits per second.
    Uses the binary mega (1024 * 1024) to stay comparable with previously reported values.
    Negative deltas (counter reset) count as zero.
    """
    if seconds <= 0:
        return 0.0
    return max(delta_bytes, 0) * 8 / (1024 * 1024) / seconds


def percent_of(value: float, ceiling: float) -> float:
    if ceiling <= 0:
        return 0.0
    return value / ceiling * 100
