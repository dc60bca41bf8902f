import shutil
import subprocess
from typing import Callable, Optional, Protocol, Sequence

from .log import get_logger

logger = get_logger(__name__)

SPEEDTEST_COMMAND = ("speedtest-cli", "--simple")
SPEEDTEST_TIMEOUT_SECONDS = 30
DEFAULT_CEILING_MBPS = 1000.0


class BandwidthError(Exception):
    """Base class for throughput probe failures."""


class NotInstalledError(BandwidthError):
    pass


class ProbeFailedError(BandwidthError):
    pass


class ProbeTimeoutError(BandwidthError):
    pass


class ProbeParseError(BandwidthError):
    pass


class BandwidthProbe(Protocol):
    def measure_mbps(self) -> float: ...


def parse_download_mbps(output: str) -> float:
    """
    Extracts the download throughput from speedtest output.

    The first line containing "Download:" is split on whitespace and its second token is read as Mbps,
    e.g. "Download: 93.45 Mbit/s" -> 93.45.

    Raises:
        ProbeParseError: If no such line exists or its value is not a number.
    """
    for line in output.splitlines():
        if "Download:" not in line:
            continue
        parts = line.split()
        if len(parts) < 2:
            continue
        try:
            return float(parts[1])
        except ValueError as e:
            raise ProbeParseError(f"error parsing speed: {parts[1]!r}") from e
    raise ProbeParseError("failed to get speedtest result")


class SpeedtestProbe:
    """Runs speedtest-cli as an external process and reports the measured download speed."""

    def __init__(
        self,
        command: Sequence[str] = SPEEDTEST_COMMAND,
        timeout: float = SPEEDTEST_TIMEOUT_SECONDS,
        which: Callable[[str], Optional[str]] = shutil.which,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.command = tuple(command)
        self.timeout = timeout
        self._which = which
        self._run = run

    def measure_mbps(self) -> float:
        """
        Returns:
            float: The download speed in Mbps.

        Raises:
            NotInstalledError: The executable is not on PATH.
            ProbeTimeoutError: The probe ran longer than `timeout` seconds.
            ProbeFailedError: The probe could not be started or exited with a non-zero status.
            ProbeParseError: The output holds no readable "Download:" line.
        """
        executable = self.command[0]
        if self._which(executable) is None:
            raise NotInstalledError(f"{executable} is not installed")

        try:
            proc = self._run(
                list(self.command),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ProbeTimeoutError(f"{executable} timed out after {self.timeout}s") from e
        except OSError as e:
            raise ProbeFailedError(f"error running {executable}: {e}") from e

        if proc.returncode != 0:
            raise ProbeFailedError(f"error running {executable}: exit status {proc.returncode}")
        return parse_download_mbps(proc.stdout or "")


def estimate_ceiling_mbps(probe: BandwidthProbe, default: float = DEFAULT_CEILING_MBPS) -> float:
    """
    Measures the achievable throughput once, falling back to `default` when the probe fails.

    Args:
        probe (BandwidthProbe): The throughput probe to run.
        default (float, optional): The ceiling to use when probing fails. Defaults to 1000 Mbps.

    Returns:
        float: A positive ceiling in Mbps.
    """
    try:
        ceiling = probe.measure_mbps()
    except BandwidthError as e:
        logger.warning("Error determining bandwidth, using default", error=str(e), fallback_mbps=default)
        return default
    if ceiling <= 0:
        logger.warning("Bandwidth probe reported no throughput, using default", measured_mbps=ceiling, fallback_mbps=default)
        return default
    return ceiling
