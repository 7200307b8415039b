#!/usr/bin/env python3
"""Example: open a configured device, read one signal by name, then refresh all of them."""

import sys

from modbus_signals import SignalDevice
from modbus_signals.errors import ConfigError, ModbusIOError, UnknownSignalError


def main() -> None:
    device_name = "panel_a"  # reads examples/config/panel_a.yaml
    config_dir = "examples/config"

    try:
        with SignalDevice.open(device_name, config_dir=config_dir, connect_timeout=1.0) as dev:
            print(f"{dev.device_name}: coupler {dev.coupler_address} ({dev.resource_location})")

            # Single signal by its configured name
            dev.refresh_signal("door_open")
            print(f"door_open = {dev.get_signal('door_open').as_text()}")

            # Every signal; failed reads are reported, not raised
            report = dev.refresh_all()
            for name, outcome in report.items():
                print(f"  {name:<20} {outcome.as_text()}")
            print(f"refresh: {report.status.value}")
    except ConfigError as e:
        print(f"Configuration/connection error: {e}", file=sys.stderr)
        sys.exit(1)
    except UnknownSignalError as e:
        print(f"Unknown signal: {e}", file=sys.stderr)
        sys.exit(1)
    except ModbusIOError as e:
        print(f"Modbus error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
