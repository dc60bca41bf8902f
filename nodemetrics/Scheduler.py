from typing import Optional

from .Assembler import ReportAssembler
from .Bandwidth import DEFAULT_CEILING_MBPS, BandwidthProbe, estimate_ceiling_mbps
from .Delivery import DeliverySink
from .log import get_logger
from .Sampling import SamplingEngine
from .Stats import Report
from .utils import CancellationToken, Clock

logger = get_logger(__name__)


class Scheduler:
    """
    Drives the report cycle: one cycle right away, then one every `report_interval` seconds until cancelled.

    The throughput ceiling is measured once by `start` and reused by every cycle. It is never refreshed.
    """

    def __init__(
        self,
        report_interval: float,
        engine: SamplingEngine,
        assembler: ReportAssembler,
        sink: DeliverySink,
        probe: BandwidthProbe,
        token: CancellationToken,
        clock: Clock | None = None,
        default_ceiling_mbps: float = DEFAULT_CEILING_MBPS,
    ):
        self.report_interval = report_interval
        self.engine = engine
        self.assembler = assembler
        self.sink = sink
        self.probe = probe
        self.token = token
        self.clock = clock or Clock()
        self.default_ceiling_mbps = default_ceiling_mbps
        self.ceiling_mbps: Optional[float] = None

    def start(self) -> float:
        if self.ceiling_mbps is None:
            self.ceiling_mbps = estimate_ceiling_mbps(self.probe, self.default_ceiling_mbps)
            logger.info("Maximum bandwidth", mbps=round(self.ceiling_mbps, 2))
        return self.ceiling_mbps

    def run_cycle(self) -> Optional[Report]:
        """
        Samples, assembles and delivers one report.

        Returns:
            Report | None: The report handed to the sink, or None when shutdown interrupted the cycle.
        """
        ceiling = self.start()
        averages = self.engine.collect(ceiling, self.token)

        if averages.failed:
            report = Report()
        elif averages.interrupted or self.token.cancelled:
            logger.info("Cycle interrupted by shutdown, report dropped")
            return None
        else:
            report = self.assembler.assemble(averages)

        if self.token.cancelled:
            logger.info("Cycle interrupted by shutdown, report dropped")
            return None

        logger.info("Collected metrics", metrics=report.to_dict())
        self.sink.deliver(report, self.token)
        return report

    def run(self, max_cycles: Optional[int] = None) -> int:
        """
        Runs cycles at a fixed rate until the token is cancelled.
        When a cycle overruns the interval the next one starts immediately.

        Args:
            max_cycles (int, optional): Stop after this many cycles. Runs indefinitely if None.

        Returns:
            int: The number of cycles started.
        """
        self.start()
        cycles = 0
        next_due = self.clock.monotonic()
        logger.info("Sending initial metrics")

        while not self.token.cancelled:
            self.run_cycle()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break

            next_due += self.report_interval
            now = self.clock.monotonic()
            if next_due < now:
                next_due = now
            if not self.clock.sleep(next_due - now, self.token):
                break

        logger.info("Shutting down", cycles=cycles)
        return cycles
