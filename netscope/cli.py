"""Command-line interface for netscope."""

import argparse
import logging
import signal
import sys
import time
from datetime import datetime
from typing import Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text
from rich import box

from . import __version__
from .config import NetscopeConfig
from .errors import ConfigError, DeviceOpenError
from .capture.channel import EventChannel
from .capture.interface_manager import InterfaceManager
from .capture.session import CaptureSession
from .models.record import PacketRecord
from .models.stats import StatsSnapshot


console = Console()

PROTOCOL_STYLES = {
    "HTTP": "bold green",
    "TCP": "cyan",
    "UDP": "magenta",
    "ARP": "yellow",
}


class ConsoleListener:
    """Prints batches and status messages as they arrive."""

    def __init__(self, show_records: bool = False):
        self.show_records = show_records
        self.batches = 0
        self.records = 0

    def on_batch(self, records: Sequence[PacketRecord]) -> None:
        self.batches += 1
        self.records += len(records)

        if not self.show_records:
            return

        for rec in records:
            ts = datetime.fromtimestamp(rec.timestamp).strftime("%H:%M:%S.%f")[:-3]
            src = f"{rec.src_ip}:{rec.src_port}" if rec.src_port != -1 else rec.src_ip
            dst = f"{rec.dst_ip}:{rec.dst_port}" if rec.dst_port != -1 else rec.dst_ip
            line = Text(f"{ts}  {src} -> {dst}  ")
            line.append(rec.protocol, style=PROTOCOL_STYLES.get(rec.protocol, "white"))
            line.append(f"  {rec.length}B")
            if rec.protocol_detail:
                line.append(f"  {rec.protocol_detail}", style="dim")
            console.print(line)

    def on_status_change(self, message: str) -> None:
        style = "red" if message.startswith("Capture error") else "cyan"
        console.print(f"[{style}]{message}[/{style}]")


def setup_logging(level: str) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def get_protocol_table(snapshot: StatsSnapshot) -> Table:
    """Create Rich table with the protocol distribution."""
    table = Table(title="Protocol Distribution", box=box.ROUNDED, header_style="bold cyan")
    table.add_column("Protocol", style="bold")
    table.add_column("Packets", justify="right")
    table.add_column("Share", justify="right")

    for proto, count in sorted(snapshot.protocol_counts.items(), key=lambda x: -x[1]):
        table.add_row(
            Text(proto, style=PROTOCOL_STYLES.get(proto, "white")),
            f"{count:,}",
            f"{snapshot.protocol_share(proto):.1f}%",
        )

    return table


def get_port_table(snapshot: StatsSnapshot, limit: int = 10) -> Table:
    """Create Rich table with the busiest destination ports."""
    table = Table(
        title=f"Top {limit} Destination Ports",
        caption=f"Total: {snapshot.total_packets:,} packets, {snapshot.total_bytes:,} bytes",
        box=box.ROUNDED,
        header_style="bold cyan",
    )
    table.add_column("Port", style="bold")
    table.add_column("Bytes", justify="right")

    for port, total in snapshot.top_ports(limit):
        table.add_row(str(port), f"{total:,}")

    return table


def list_interfaces() -> None:
    """List available network interfaces."""
    mgr = InterfaceManager()

    table = Table(title="Available Network Interfaces", box=box.ROUNDED)
    table.add_column("Interface", style="bold cyan")
    table.add_column("IP Address")
    table.add_column("MAC Address")
    table.add_column("Status")

    for info in mgr.get_all():
        status = "UP" if info.is_up else "DOWN"
        status_style = "green" if info.is_up else "red"

        table.add_row(
            info.name,
            info.ipv4_address or "N/A",
            info.mac_address or "N/A",
            Text(status, style=status_style),
        )

    console.print(table)


def run_capture(args) -> None:
    """Run packet capture command."""
    try:
        config = NetscopeConfig.load(args.config)
    except ConfigError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        sys.exit(1)

    setup_logging("DEBUG" if args.verbose else config.logging.level)

    if args.filter:
        config.capture.bpf_filter = args.filter
    duration = args.duration if args.duration is not None else config.capture.duration

    interface = args.interface or config.capture.interface
    if not interface:
        active = InterfaceManager().get_active()
        if not active:
            console.print("[red]No active interfaces found. Specify with --interface[/red]")
            sys.exit(1)
        interface = active[0].name
        console.print(f"[yellow]Auto-detected interface: {active[0]}[/yellow]")

    channel = EventChannel()
    listener = ConsoleListener(show_records=args.show_packets)
    session = CaptureSession(channel=channel, config=config)

    running = True

    def signal_handler(sig, frame):
        nonlocal running
        console.print("\n[yellow]Stopping capture...[/yellow]")
        running = False

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        session.start(interface)
    except DeviceOpenError:
        channel.drain(listener)
        console.print("[red]Cannot start capture. Run with sudo/administrator rights?[/red]")
        sys.exit(1)

    end_time = time.time() + duration if duration > 0 else float('inf')
    while running and time.time() < end_time:
        channel.dispatch(listener, timeout=0.2)

    session.stop()
    channel.drain(listener)

    snapshot = session.aggregator.snapshot()
    console.print()
    console.print(f"[bold]Final Statistics[/bold] ({listener.batches:,} batches, {listener.records:,} records)")
    console.print(get_protocol_table(snapshot))
    console.print(get_port_table(snapshot))


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="netscope",
        description="Live packet capture with protocol dissection and traffic statistics.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("list", help="List available network interfaces")

    capture_parser = subparsers.add_parser("capture", help="Capture and dissect network traffic")
    capture_parser.add_argument(
        "-i", "--interface",
        help="Interface to capture on (e.g., eth0)",
    )
    capture_parser.add_argument(
        "-f", "--filter",
        help="BPF filter expression (e.g., 'tcp port 80')",
    )
    capture_parser.add_argument(
        "-d", "--duration",
        type=int,
        default=None,
        help="Capture duration in seconds (0 = until Ctrl-C)",
    )
    capture_parser.add_argument(
        "-p", "--show-packets",
        action="store_true",
        help="Print every decoded packet",
    )
    capture_parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
    )
    capture_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging",
    )

    args = parser.parse_args()

    if args.command == "list":
        list_interfaces()
    elif args.command == "capture":
        run_capture(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
