from typing import Protocol

from .Bandwidth import BandwidthError, BandwidthProbe
from .log import get_logger
from .Stats import NetworkSnapshot, Report, SystemSnapshot, WindowAverages

logger = get_logger(__name__)


class SnapshotSource(Protocol):
    def system_snapshot(self) -> SystemSnapshot: ...

    def network_snapshot(self) -> NetworkSnapshot: ...


class ReportAssembler:
    """Folds one-shot system and network snapshots and a live speed reading into the window averages."""

    def __init__(self, provider: SnapshotSource, probe: BandwidthProbe):
        self.provider = provider
        self.probe = probe

    def current_mbps(self) -> float:
        try:
            return self.probe.measure_mbps()
        except BandwidthError as e:
            logger.warning("Error measuring speed", error=str(e))
            return 0.0

    def assemble(self, averages: WindowAverages) -> Report:
        system = self.provider.system_snapshot()
        network = self.provider.network_snapshot()
        return Report(
            cpu_percent=averages.cpu_percent,
            memory_percent=averages.memory_percent,
            net_in_percent=averages.net_in_percent,
            net_out_percent=averages.net_out_percent,
            speedtest_mbps=self.current_mbps(),
            uptime_seconds=system.uptime_seconds,
            load_average=system.load1,
            disk_usage_percent=system.disk_percent,
            file_descriptors=system.fd_count,
            active_connections=network.connection_count,
            tcp_connections=network.tcp_count,
            udp_connections=network.udp_count,
            network_latency=network.latency_ms,
            interface_stats=dict(network.interface_stats),
        )
