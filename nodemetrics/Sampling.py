from typing import Protocol

from .log import get_logger
from .StatCollector import NetIOError
from .Stats import NetIO, SampleWindow, WindowAverages
from .utils import CancellationToken, Clock, bytes_to_mbps, percent_of

logger = get_logger(__name__)

CPU_MEASURE_SECONDS = 1.0


class WindowMetricsSource(Protocol):
    def begin_cpu_sample(self) -> None: ...

    def cpu_percent(self) -> float: ...

    def memory_percent(self) -> float: ...

    def cumulative_net_io(self) -> NetIO: ...


class SamplingEngine:
    def __init__(
        self,
        provider: WindowMetricsSource,
        collect_interval: float,
        collect_duration: float,
        clock: Clock | None = None,
    ):
        """
        Initializes a new instance of the SamplingEngine class.

        Args:
            provider (WindowMetricsSource): Source of cpu, memory and cumulative network reads.
            collect_interval (float): Seconds between two ticks. Must be positive.
            collect_duration (float): Length of the sampling window in seconds.
            clock (Clock, optional): Time source used for every wait. Defaults to the wall clock.
        """
        if collect_interval <= 0:
            raise ValueError("collect_interval must be positive")
        self.provider = provider
        self.collect_interval = collect_interval
        self.collect_duration = collect_duration
        self.clock = clock or Clock()

    @property
    def sample_count(self) -> int:
        return max(int(self.collect_duration // self.collect_interval), 0)

    def collect(self, ceiling_mbps: float, token: CancellationToken) -> WindowAverages:
        """
        Runs one sampling window and averages it.

        The initial cumulative network read is the only fatal step: if it fails an all-zero result flagged
        `failed` is returned without sampling. A failed re-read inside a tick only drops that tick's network
        contribution; the tick still counts towards the denominator.
        When `token` is cancelled the window stops after the current tick and the result is flagged `interrupted`.

        Args:
            ceiling_mbps (float): Throughput ceiling used to turn Mbps into percentages.
            token (CancellationToken): Shutdown token observed at every wait.

        Returns:
            WindowAverages: Averaged cpu and memory percentages and normalized network percentages.
        """
        try:
            initial = self.provider.cumulative_net_io()
        except NetIOError as e:
            logger.error("Error getting network statistics", error=str(e))
            return WindowAverages(failed=True)

        window = SampleWindow(last_bytes_in=initial.bytes_in, last_bytes_out=initial.bytes_out)
        samples = self.sample_count
        started = self.clock.monotonic()
        interrupted = False

        for i in range(samples):
            if not self.sample_tick(window, started + (i + 1) * self.collect_interval, token):
                interrupted = True
                break

        return self.calculate_averages(window, samples, ceiling_mbps, interrupted)

    def sample_tick(self, window: SampleWindow, boundary: float, token: CancellationToken) -> bool:
        """
        Takes one sub-sample and adds it to `window`.

        Args:
            window (SampleWindow): The running sums for this cycle.
            boundary (float): Monotonic time at which this tick ends.
            token (CancellationToken): Shutdown token.

        Returns:
            bool: False if a wait was interrupted by cancellation, True otherwise.
        """
        self.provider.begin_cpu_sample()
        if not self.clock.sleep(CPU_MEASURE_SECONDS, token):
            return False
        cpu = self.provider.cpu_percent()
        memory = self.provider.memory_percent()

        if not self.clock.sleep(boundary - self.clock.monotonic(), token):
            return False

        window.cpu_total += cpu
        window.memory_total += memory
        window.ticks += 1

        try:
            current = self.provider.cumulative_net_io()
        except NetIOError as e:
            logger.warning("Error getting network statistics", error=str(e), tick=window.ticks)
            return True

        window.net_in_total += bytes_to_mbps(current.bytes_in - window.last_bytes_in, self.collect_interval)
        window.net_out_total += bytes_to_mbps(current.bytes_out - window.last_bytes_out, self.collect_interval)
        window.last_bytes_in = current.bytes_in
        window.last_bytes_out = current.bytes_out
        return True

    @staticmethod
    def calculate_averages(
        window: SampleWindow, samples: int, ceiling_mbps: float, interrupted: bool = False
    ) -> WindowAverages:
        """
        Divides the running sums by the planned number of ticks.
        A zero-sample window averages to zero for every field.
        """
        if samples <= 0:
            return WindowAverages(interrupted=interrupted)
        return WindowAverages(
            cpu_percent=window.cpu_total / samples,
            memory_percent=window.memory_total / samples,
            net_in_percent=percent_of(window.net_in_total / samples, ceiling_mbps),
            net_out_percent=percent_of(window.net_out_total / samples, ceiling_mbps),
            interrupted=interrupted,
        )
