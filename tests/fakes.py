from typing import Callable, Dict, List, Optional

from nodemetrics.Bandwidth import BandwidthError
from nodemetrics.StatCollector import NetIOError
from nodemetrics.Stats import InterfaceStat, NetIO, NetworkSnapshot, SystemSnapshot
from nodemetrics.utils import CancellationToken

MIB = 1024 * 1024


class VirtualClock:
    """Advances instantly. `on_sleep` runs after every advance and may cancel the token."""

    def __init__(self, on_sleep: Optional[Callable[["VirtualClock", CancellationToken], None]] = None):
        self.now = 0.0
        self.sleeps: List[float] = []
        self.on_sleep = on_sleep

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float, token: CancellationToken) -> bool:
        if token.cancelled:
            return False
        if seconds <= 0:
            return True
        self.now += seconds
        self.sleeps.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep(self, token)
        return not token.cancelled


def cancel_at(when: float):
    def _hook(clock: VirtualClock, token: CancellationToken) -> None:
        if clock.now >= when:
            token.cancel()

    return _hook


class FakeProvider:
    def __init__(
        self,
        net_reads: Optional[List] = None,
        cpu: Optional[List[float]] = None,
        memory: Optional[List[float]] = None,
        system: Optional[SystemSnapshot] = None,
        network: Optional[NetworkSnapshot] = None,
    ):
        # Entries are NetIO values or exceptions to raise; the last entry repeats
        self.net_reads = list(net_reads) if net_reads is not None else [NetIO(0, 0)]
        self.cpu = list(cpu) if cpu is not None else [0.0]
        self.memory = list(memory) if memory is not None else [0.0]
        self.system = system or SystemSnapshot(
            load1=0.5, memory_percent=40.0, disk_percent=55.5, fd_count=12, uptime_seconds=3600.0
        )
        self.network = network or NetworkSnapshot(
            connection_count=7,
            tcp_count=5,
            udp_count=2,
            latency_ms=12.3,
            interface_stats={"eth0": InterfaceStat(10, 20, 1, 2, 0, 0)},
        )
        self.cpu_starts = 0
        self.net_calls = 0

    @staticmethod
    def _next(values: List):
        return values.pop(0) if len(values) > 1 else values[0]

    def begin_cpu_sample(self) -> None:
        self.cpu_starts += 1

    def cpu_percent(self) -> float:
        return self._next(self.cpu)

    def memory_percent(self) -> float:
        return self._next(self.memory)

    def cumulative_net_io(self) -> NetIO:
        self.net_calls += 1
        value = self._next(self.net_reads)
        if isinstance(value, Exception):
            raise value
        return value

    def system_snapshot(self) -> SystemSnapshot:
        return self.system

    def network_snapshot(self) -> NetworkSnapshot:
        return self.network


class FakeProbe:
    def __init__(self, result=100.0):
        self.result = result
        self.calls = 0

    def measure_mbps(self) -> float:
        self.calls += 1
        if isinstance(self.result, BandwidthError):
            raise self.result
        return self.result


class RecordingSink:
    def __init__(self):
        self.reports: List = []

    def deliver(self, report, cancel=None) -> bool:
        self.reports.append(report)
        return True


def net_failure() -> NetIOError:
    return NetIOError("error getting network statistics: boom")


def interface_stats_dict(stats: Dict[str, InterfaceStat]) -> Dict[str, Dict[str, int]]:
    return {
        name: {
            "bytes_in": s.bytes_in,
            "bytes_out": s.bytes_out,
            "packets_in": s.packets_in,
            "packets_out": s.packets_out,
            "errors_in": s.errors_in,
            "errors_out": s.errors_out,
        }
        for name, s in stats.items()
    }
