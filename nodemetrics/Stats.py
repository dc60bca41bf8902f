from dataclasses import asdict, dataclass, field
from typing import Dict


@dataclass(frozen=True, slots=True)
class NetIO:
    bytes_in: int = 0
    bytes_out: int = 0


@dataclass(frozen=True, slots=True)
class InterfaceStat:
    bytes_in: int = 0
    bytes_out: int = 0
    packets_in: int = 0
    packets_out: int = 0
    errors_in: int = 0
    errors_out: int = 0


@dataclass(frozen=True, slots=True)
class SystemSnapshot:
    load1: float = 0.0
    memory_percent: float = 0.0
    disk_percent: float = 0.0
    fd_count: int = 0
    uptime_seconds: float = 0.0


@dataclass(frozen=True, slots=True)
class NetworkSnapshot:
    connection_count: int = 0
    tcp_count: int = 0
    udp_count: int = 0
    latency_ms: float = 0.0
    interface_stats: Dict[str, InterfaceStat] = field(default_factory=dict)


@dataclass(slots=True)
class SampleWindow:
    cpu_total: float = 0.0
    memory_total: float = 0.0
    net_in_total: float = 0.0
    net_out_total: float = 0.0
    last_bytes_in: int = 0
    last_bytes_out: int = 0
    ticks: int = 0


@dataclass(frozen=True, slots=True)
class WindowAverages:
    cpu_percent: float = 0.0
    memory_percent: float = 0.0
    net_in_percent: float = 0.0
    net_out_percent: float = 0.0
    failed: bool = False
    interrupted: bool = False


@dataclass(frozen=True, slots=True)
class Report:
    cpu_percent: float = 0.0
    memory_percent: float = 0.0
    net_in_percent: float = 0.0
    net_out_percent: float = 0.0
    speedtest_mbps: float = 0.0
    uptime_seconds: float = 0.0
    load_average: float = 0.0
    disk_usage_percent: float = 0.0
    file_descriptors: int = 0
    active_connections: int = 0
    tcp_connections: int = 0
    udp_connections: int = 0
    network_latency: float = 0.0
    interface_stats: Dict[str, InterfaceStat] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        """
        Converts the report to the JSON payload layout expected by the collector.
        Returns:
            Dict: The report fields, with `interface_stats` as a mapping of plain dicts.
        """
        return asdict(self)
