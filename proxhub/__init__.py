"""proxhub: proximity telemetry hub for BLE scanners and live viewers."""

__version__ = "2.0.0"
