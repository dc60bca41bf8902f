import os
import re
import socket
import subprocess
import time
from typing import Dict, Tuple

import psutil

from .log import get_logger
from .Stats import InterfaceStat, NetIO, NetworkSnapshot, SystemSnapshot

logger = get_logger(__name__)

PING_TARGET = "8.8.8.8"
PING_TIMEOUT_SECONDS = 10
_PING_TIME_RE = re.compile(r"time[=<]\s*([0-9]+(?:\.[0-9]+)?)")


class NetIOError(Exception):
    """Raised when the cumulative network counters cannot be read."""


class StatCollector:
    """
    Point-in-time reads of host metrics backed by psutil.
    Every read except `cumulative_net_io` is best-effort: a failing read yields the field's zero value.
    """

    def __init__(self, disk_path: str = "/", ping_target: str = PING_TARGET):
        self.disk_path = disk_path
        self.ping_target = ping_target

    def begin_cpu_sample(self) -> None:
        """Starts a CPU measurement interval. The next `cpu_percent` call reports usage since this point."""
        try:
            psutil.cpu_percent(interval=None)
        except Exception as e:
            logger.debug("Failed to start cpu measurement", error=str(e))

    def cpu_percent(self) -> float:
        try:
            return float(psutil.cpu_percent(interval=None))
        except Exception as e:
            logger.debug("Failed to read cpu percent", error=str(e))
            return 0.0

    def memory_percent(self) -> float:
        try:
            return float(psutil.virtual_memory().percent)
        except Exception as e:
            logger.debug("Failed to read memory percent", error=str(e))
            return 0.0

    def cumulative_net_io(self) -> NetIO:
        """
        Reads the byte counters aggregated across all interfaces.

        Returns:
            NetIO: Total bytes received and sent since boot.

        Raises:
            NetIOError: If the counters are unavailable.
        """
        try:
            counters = psutil.net_io_counters(pernic=False)
        except Exception as e:
            raise NetIOError(f"error getting network statistics: {e}") from e
        if counters is None:
            # psutil returns None on hosts without network interfaces
            raise NetIOError("error getting network statistics: no interfaces found")
        return NetIO(bytes_in=int(counters.bytes_recv), bytes_out=int(counters.bytes_sent))

    def system_snapshot(self) -> SystemSnapshot:
        return SystemSnapshot(
            load1=self.get_load_average(),
            memory_percent=self.memory_percent(),
            disk_percent=self.get_disk_percent(self.disk_path),
            fd_count=self.get_fd_count(),
            uptime_seconds=self.get_uptime_seconds(),
        )

    def network_snapshot(self) -> NetworkSnapshot:
        active, tcp, udp = self.get_connection_counts()
        return NetworkSnapshot(
            connection_count=active,
            tcp_count=tcp,
            udp_count=udp,
            latency_ms=self.get_latency_ms(self.ping_target),
            interface_stats=self.get_interface_stats(),
        )

    @staticmethod
    def get_load_average() -> float:
        try:
            return float(psutil.getloadavg()[0])
        except Exception as e:
            logger.debug("Failed to read load average", error=str(e))
            return 0.0

    @staticmethod
    def get_disk_percent(path: str) -> float:
        try:
            return float(psutil.disk_usage(path).percent)
        except Exception as e:
            logger.debug("Failed to read disk usage", path=path, error=str(e))
            return 0.0

    @staticmethod
    def get_fd_count() -> int:
        """Number of file descriptors held by this agent process. 0 where the platform has no such notion."""
        try:
            return int(psutil.Process(os.getpid()).num_fds())
        except Exception as e:
            logger.debug("Failed to read file descriptor count", error=str(e))
            return 0

    @staticmethod
    def get_uptime_seconds() -> float:
        try:
            return max(time.time() - psutil.boot_time(), 0.0)
        except Exception as e:
            logger.debug("Failed to read boot time", error=str(e))
            return 0.0

    @staticmethod
    def get_connection_counts() -> Tuple[int, int, int]:
        """
        Classifies every open connection by socket type.

        Returns:
            Tuple[int, int, int]: Total connections, stream (TCP) connections and datagram (UDP) connections.
        """
        try:
            conns = psutil.net_connections(kind="all")
        except Exception as e:
            logger.debug("Failed to list network connections", error=str(e))
            return 0, 0, 0

        tcp_count = 0
        udp_count = 0
        for conn in conns:
            if conn.type == socket.SOCK_STREAM:
                tcp_count += 1
            elif conn.type == socket.SOCK_DGRAM:
                udp_count += 1
        return len(conns), tcp_count, udp_count

    @staticmethod
    def get_interface_stats() -> Dict[str, InterfaceStat]:
        try:
            per_nic = psutil.net_io_counters(pernic=True)
        except Exception as e:
            logger.debug("Failed to read interface counters", error=str(e))
            return {}

        return {
            name: InterfaceStat(
                bytes_in=int(stat.bytes_recv),
                bytes_out=int(stat.bytes_sent),
                packets_in=int(stat.packets_recv),
                packets_out=int(stat.packets_sent),
                errors_in=int(stat.errin),
                errors_out=int(stat.errout),
            )
            for name, stat in (per_nic or {}).items()
        }

    @staticmethod
    def get_latency_ms(target: str) -> float:
        """
        Sends a single ping to `target` and returns the round-trip time in milliseconds.
        Any execution or parse failure yields 0.0.
        """
        try:
            proc = subprocess.run(
                ["ping", "-c", "1", target],
                capture_output=True,
                text=True,
                timeout=PING_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug("Failed to run ping", target=target, error=str(e))
            return 0.0
        if proc.returncode != 0:
            logger.debug("Ping failed", target=target, returncode=proc.returncode)
            return 0.0
        return parse_ping_latency(proc.stdout + proc.stderr)


def parse_ping_latency(output: str) -> float:
    match = _PING_TIME_RE.search(output)
    if not match:
        return 0.0
    return float(match.group(1))
