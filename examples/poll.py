#!/usr/bin/env python3
"""Example: poll every configured signal on an interval using poll_iter; graceful shutdown on Ctrl+C."""

import sys

from modbus_signals import SignalDevice
from modbus_signals.errors import ConfigError


def main() -> None:
    device_name = "panel_a"
    config_dir = "examples/config"
    interval_s = 1.0

    try:
        with SignalDevice.open(device_name, config_dir=config_dir) as dev:
            print(f"Polling {len(dev)} signals on {dev.coupler_address} every {interval_s}s (Ctrl+C to stop)...")
            for report in dev.poll_iter(interval_s):
                print({name: o.as_text() for name, o in report.items()})
    except KeyboardInterrupt:
        print("\nStopped.")
    except ConfigError as e:
        print(f"Configuration/connection error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
