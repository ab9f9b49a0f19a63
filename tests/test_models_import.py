"""Simple smoke test to ensure the value types import and serialise."""
from datetime import datetime, timezone

from proxhub.models import DeviceRecord, NotificationOrigin, ProducerRole, normalize_address


def test_imports():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    record = DeviceRecord(
        address=normalize_address("00:11:22:aa:bb:cc"),
        distance=1.0,
        last_updated=now,
        source=ProducerRole.SCANNER.value,
        was_in_range=True,
    )
    assert record.address == "00:11:22:AA:BB:CC"
    assert record.display_name == "00:11:22:AA:BB:CC"
    assert record.to_dict(is_priority=True)["isPriority"] is True
    assert record.to_dict(is_priority=False)["lastUpdated"] == "2024-01-01T00:00:00.000+00:00"
    assert NotificationOrigin.SYSTEM_TIMEOUT.value == "system-timeout"


if __name__ == "__main__":
    test_imports()
    print("models import smoke test: OK")
