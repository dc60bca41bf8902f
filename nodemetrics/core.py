import argparse
import signal
import sys
from typing import List, Optional

import requests

from .Assembler import ReportAssembler
from .Bandwidth import SpeedtestProbe
from .Config import DEFAULT_CONFIG_PATH, Config, ConfigError, load_config
from .Delivery import DeliverySink
from .log import configure_logging, get_logger
from .Sampling import SamplingEngine
from .Scheduler import Scheduler
from .StatCollector import StatCollector
from .utils import CancellationToken, Clock

VERSION = "1.0.0"

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="node-metrics-exporter",
        description="Samples host and network metrics and reports them to a remote collector.",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to config file")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    return parser.parse_args(argv)


def install_signal_handlers(token: CancellationToken) -> None:
    """Turns SIGINT and SIGTERM into a cooperative cancellation of `token`."""

    def _handle(signum, _frame):
        if not token.cancelled:
            logger.info("Received shutdown signal, cleaning up...", signal=signal.Signals(signum).name)
        token.cancel()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def build_scheduler(
    config: Config,
    token: CancellationToken,
    session: requests.Session,
    clock: Clock | None = None,
) -> Scheduler:
    """
    Composition root: wires the psutil collector, speedtest probe, sampling engine, assembler and HTTP sink.

    Args:
        config (Config): The loaded configuration.
        token (CancellationToken): Shutdown token shared by every component.
        session (requests.Session): The HTTP session owned by the caller.
        clock (Clock, optional): Time source. Defaults to the wall clock.

    Returns:
        Scheduler: A scheduler ready to `run`.
    """
    clock = clock or Clock()
    collector = StatCollector()
    probe = SpeedtestProbe()
    return Scheduler(
        report_interval=config.report_interval,
        engine=SamplingEngine(collector, config.collect_interval, config.collect_duration, clock=clock),
        assembler=ReportAssembler(collector, probe),
        sink=DeliverySink(config.url, config.token, session=session),
        probe=probe,
        token=token,
        clock=clock,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    if args.version:
        print(VERSION)
        return 0

    try:
        config = load_config(args.config)
    except ConfigError as e:
        configure_logging()
        logger.critical("Failed to load configuration", error=str(e))
        return 1

    configure_logging(config.log_level, config.log_format)
    logger.info(
        "Starting node-metrics-exporter",
        version=VERSION,
        url=config.url,
        report_interval=config.report_interval,
        collect_interval=config.collect_interval,
        collect_duration=config.collect_duration,
    )

    token = CancellationToken()
    install_signal_handlers(token)

    with requests.Session() as session:
        scheduler = build_scheduler(config, token, session)
        scheduler.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
