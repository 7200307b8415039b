#!/usr/bin/env python3
"""Command-line monitor for configured Modbus TCP signals, using Typer."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from . import __version__  # type: ignore
from .config import DEFAULT_CONNECT_TIMEOUT, DEFAULT_PORT, load_config, parse_device_config, resolve_config_path
from .device import SignalDevice
from .errors import ConfigError, CouplerConnectError, ModbusIOError, UnknownSignalError
from .transport import ModbusTransport, TransportConfig
from .types import Coil, RefreshReport, RefreshStatus

app = typer.Typer(
    name="modbus-signals",
    help="Read-only monitor for named discrete inputs on a Modbus TCP coupler.",
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Shared options and helpers
# ============================================================================

DeviceArgument = Annotated[
    str,
    typer.Argument(help="Device name; its configuration is <config-dir>/<DEVICE>.yaml"),
]
ConfigDirOption = Annotated[
    Optional[str],
    typer.Option("--config-dir", "-c", help="Directory holding device YAML files", envvar="MODBUS_SIGNALS_CONFIG_DIR"),
]
TimeoutOption = Annotated[
    float,
    typer.Option("--timeout", "-t", help="Connect timeout in seconds", envvar="MODBUS_SIGNALS_TIMEOUT"),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output as JSON"),
]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbose flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if not verbose else "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def open_device(device: str, config_dir: Optional[str], timeout: float) -> SignalDevice:
    """Construct the device, or exit with a usage error for a bad timeout."""
    if timeout <= 0:
        typer.echo(f"Error: Timeout must be positive, got {timeout}", err=True)
        raise typer.Exit(2)
    return SignalDevice.open(device, config_dir=config_dir, connect_timeout=timeout)


def report_to_dict(report: RefreshReport) -> dict[str, Any]:
    """JSON-ready view of a refresh report: values, errors and overall status."""
    output: dict[str, Any] = {
        "status": report.status.value,
        "values": {name: "ON" if value else "OFF" for name, value in report.readings.items()},
    }
    if report.failures:
        output["errors"] = {name: str(e) for name, e in report.errors.items()}
        output["failures"] = [
            {"signal": o.name, "address": o.address, "error": str(o.error)} for o in report.failures
        ]
    return output


def format_report_text(report: RefreshReport) -> str:
    """One ``name=ON|OFF|ERROR`` pair per signal, in registry order."""
    return " ".join(f"{o.name}={'ERROR' if not o.ok else o.as_text()}" for o in report.outcomes)


def fail(e: Exception, verbose: bool) -> None:
    """Print an error and exit with the code matching its category."""
    if isinstance(e, UnknownSignalError):
        typer.echo(f"Error: Unknown signal: {e.name}", err=True)
        raise typer.Exit(2)
    if isinstance(e, CouplerConnectError):
        typer.echo(f"Error: Connection error: {e}", err=True)
        raise typer.Exit(3)
    if isinstance(e, ConfigError):
        typer.echo(f"Error: Configuration error: {e}", err=True)
        raise typer.Exit(2)
    if isinstance(e, ModbusIOError):
        typer.echo(f"Error: Connection/Modbus error: {e}", err=True)
        raise typer.Exit(3)
    typer.echo(f"Error: Unexpected error: {e}", err=True)
    if verbose:
        import traceback
        traceback.print_exc()
    raise typer.Exit(4)


# ============================================================================
# Commands
# ============================================================================

@app.command()
def info(
    device: DeviceArgument,
    config_dir: ConfigDirOption = None,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Show a device's configuration: coupler address, resource location and signals.

    Does not connect to the coupler.
    """
    setup_logging(verbose)

    try:
        path = resolve_config_path(device, config_dir)
        config = parse_device_config(load_config(path), str(path))
    except Exception as e:
        fail(e, verbose)
        return

    info_data = {
        "version": __version__,
        "device": device,
        "resource_location": str(path),
        "coupler": config.coupler,
        "coupler_defaulted": config.coupler_defaulted,
        "port": config.port,
        "unit_id": config.unit_id,
        "signals": [
            {
                "name": entry.name,
                "type": entry.kind,
                "offset": entry.offset,
                "defaulted": sorted(entry.defaulted),
            }
            for entry in config.signals
        ],
    }

    if json_output:
        typer.echo(json.dumps(info_data, indent=2))
    else:
        suffix = " (default)" if config.coupler_defaulted else ""
        typer.echo(f"Device:          {device}")
        typer.echo(f"Configuration:   {path}")
        typer.echo(f"Coupler:         {config.coupler}:{config.port}{suffix}")
        typer.echo(f"Unit ID:         {config.unit_id}")
        typer.echo(f"Signals:         {len(config.signals)}")
        for entry in config.signals:
            flag = f"  [defaulted: {', '.join(sorted(entry.defaulted))}]" if entry.defaulted else ""
            typer.echo(f"  {entry.offset:>5}  {entry.name} ({entry.kind}){flag}")


@app.command()
def read(
    device: DeviceArgument,
    signal: Annotated[str, typer.Argument(help="Signal name as configured (case-sensitive)")],
    config_dir: ConfigDirOption = None,
    timeout: TimeoutOption = DEFAULT_CONNECT_TIMEOUT,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Read a single signal from the coupler and print ON or OFF.
    """
    setup_logging(verbose)

    try:
        with open_device(device, config_dir, timeout) as dev:
            dev.refresh_signal(signal)
            sig = dev.get_signal(signal)
            if json_output:
                typer.echo(json.dumps({
                    "signal": sig.name,
                    "address": sig.address,
                    "status": sig.status,
                    "text": sig.as_text(),
                }))
            else:
                typer.echo(sig.as_text())
    except typer.Exit:
        raise
    except Exception as e:
        fail(e, verbose)


@app.command(name="read-all")
def read_all(
    device: DeviceArgument,
    config_dir: ConfigDirOption = None,
    timeout: TimeoutOption = DEFAULT_CONNECT_TIMEOUT,
    verbose: VerboseOption = False,
    json_output: JsonOption = False,
) -> None:
    """
    Read every configured signal once.

    Failed reads are reported per signal; the exit code is 3 if any read failed.
    """
    setup_logging(verbose)

    try:
        with open_device(device, config_dir, timeout) as dev:
            report = dev.refresh_all()
    except typer.Exit:
        raise
    except Exception as e:
        fail(e, verbose)
        return

    if json_output:
        typer.echo(json.dumps(report_to_dict(report), indent=2))
    else:
        for outcome in report.outcomes:
            typer.echo(f"{outcome.name}: {outcome.as_text()}")
    if not report.ok:
        raise typer.Exit(3)


@app.command()
def poll(
    device: DeviceArgument,
    config_dir: ConfigDirOption = None,
    timeout: TimeoutOption = DEFAULT_CONNECT_TIMEOUT,
    verbose: VerboseOption = False,
    interval: Annotated[float, typer.Option("--interval", "-i", help="Polling interval in seconds")] = 1.0,
    once: Annotated[bool, typer.Option("--once", help="Poll once and exit")] = False,
    format: Annotated[str, typer.Option("--format", "-f", help="Output format: text, json, csv")] = "text",
) -> None:
    """
    Continuously read every configured signal at the given interval.

    Outputs format:
    - text: timestamp + name=ON|OFF pairs (default)
    - json: NDJSON with {"timestamp": "...", "status": "...", "values": {...}} per line
    - csv: signal names as columns, one row per poll cycle

    A cycle where every read fails stops polling with exit code 3.
    Press Ctrl+C to stop gracefully.
    """
    setup_logging(verbose)

    if format not in ("text", "json", "csv"):
        typer.echo(f"Error: Invalid format '{format}'. Must be text, json, or csv.", err=True)
        raise typer.Exit(2)

    if interval <= 0:
        typer.echo(f"Error: Interval must be positive, got {interval}", err=True)
        raise typer.Exit(2)

    try:
        with open_device(device, config_dir, timeout) as dev:
            if format == "csv":
                typer.echo("timestamp," + ",".join(s.name for s in dev))

            for report in dev.poll_iter(interval):
                timestamp = datetime.now(timezone.utc).isoformat()
                if format == "text":
                    typer.echo(f"{timestamp} {format_report_text(report)}")
                elif format == "json":
                    typer.echo(json.dumps({"timestamp": timestamp, **report_to_dict(report)}))
                elif format == "csv":
                    cells = ["ERROR" if not o.ok else o.as_text() for o in report.outcomes]
                    typer.echo(timestamp + "," + ",".join(cells))

                if report.status is RefreshStatus.FAILED:
                    first = report.failures[0].error
                    typer.echo(f"Error: Connection/Modbus error: {first}", err=True)
                    raise typer.Exit(3)
                if once:
                    break
    except typer.Exit:
        raise
    except KeyboardInterrupt:
        typer.echo("\nStopped by user", err=True)
        raise typer.Exit(0)
    except Exception as e:
        fail(e, verbose)


@app.command()
def scan(
    host: Annotated[str, typer.Argument(help="IP address or hostname of the coupler")] = "192.168.0.1",
    address: Annotated[int, typer.Option("--address", "-a", help="Discrete input address (zero-indexed)")] = 16,
    port: Annotated[int, typer.Option("--port", "-p", help="Modbus TCP port")] = DEFAULT_PORT,
    unit_id: Annotated[int, typer.Option("--unit-id", "-u", help="Modbus unit ID")] = 1,
    timeout: TimeoutOption = DEFAULT_CONNECT_TIMEOUT,
    verbose: VerboseOption = False,
) -> None:
    """
    Read one discrete input straight from a coupler, without a device configuration.
    """
    setup_logging(verbose)

    typer.echo(f"Using device address of: {host}")
    try:
        with ModbusTransport.connect(host, TransportConfig(connect_timeout=timeout, port=port, unit_id=unit_id)) as t:
            coils = t.read_discrete_inputs(address, 1)
            typer.echo("ON" if coils[0] is Coil.ON else "OFF")
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    except Exception as e:
        fail(e, verbose)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"modbus-signals {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """modbus-signals - read-only monitor for discrete inputs on a Modbus TCP coupler."""
    pass


if __name__ == "__main__":
    app()
