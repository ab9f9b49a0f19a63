from __future__ import annotations
from enum import Enum


class ProducerRole(str, Enum):
    """Telemetry producers whose liveness is tracked."""

    SCANNER = "scanner"  # continuous scanner, submits device batches
    NOTIFIER = "notifier"  # threshold notifier, submits explicit events
