"""演示数据。"""

from __future__ import annotations

from home_control.models import DeviceRecord, DirectorySnapshot, Zone

DEMO_ZONES = [
    Zone(id="zone-living", name="Vardagsrum"),
    Zone(id="zone-kitchen", name="Kök"),
    Zone(id="zone-garden", name="Trägården"),
    Zone(id="zone-bedroom", name="Bedroom"),
]


def build_demo_snapshot() -> DirectorySnapshot:
    """构造演示用快照；每次调用返回新的设备对象。"""
    devices = [
        DeviceRecord(
            id="light-living-ceiling",
            name="Taklampa",
            zone_id="zone-living",
            device_class="light",
            capabilities=frozenset({"onoff", "dim"}),
            values={"onoff": False, "dim": 0.6},
        ),
        DeviceRecord(
            id="light-living-floor",
            name="Golvlampa",
            zone_id="zone-living",
            device_class="light",
            capabilities=frozenset({"onoff", "dim"}),
            values={"onoff": False, "dim": 1.0},
        ),
        DeviceRecord(
            id="speaker-living",
            name="Sonos Vardagsrum",
            zone_id="zone-living",
            device_class="speaker",
            capabilities=frozenset({"speaker_playing", "volume_set"}),
            values={"speaker_playing": False},
        ),
        DeviceRecord(
            id="socket-living-lamp",
            name="Table Lamp Socket",
            zone_id="zone-living",
            device_class="socket",
            capabilities=frozenset({"onoff"}),
            values={"onoff": False},
        ),
        DeviceRecord(
            id="light-kitchen",
            name="Köksbelysning",
            zone_id="zone-kitchen",
            device_class="light",
            capabilities=frozenset({"onoff", "dim"}),
            values={"onoff": True, "dim": 0.8},
        ),
        DeviceRecord(
            id="socket-kitchen-coffee",
            name="Kitchen Coffee Machine",
            zone_id="zone-kitchen",
            device_class="socket",
            capabilities=frozenset({"onoff"}),
            values={"onoff": False},
        ),
        DeviceRecord(
            id="socket-kitchen-kettle",
            name="Vattenkokare",
            zone_id="zone-kitchen",
            device_class="socket",
            capabilities=frozenset({"onoff"}),
            values={"onoff": False},
        ),
        DeviceRecord(
            id="light-garden",
            name="Trädgårdsbelysning",
            zone_id="zone-garden",
            device_class="light",
            capabilities=frozenset({"onoff"}),
            values={"onoff": False},
        ),
        DeviceRecord(
            id="thermostat-bedroom",
            name="Bedroom Thermostat",
            zone_id="zone-bedroom",
            device_class="thermostat",
            capabilities=frozenset({"target_temperature", "measure_temperature"}),
            values={"target_temperature": 19.0, "measure_temperature": 20.5},
        ),
        DeviceRecord(
            id="blinds-bedroom",
            name="Bedroom Blinds",
            zone_id="zone-bedroom",
            device_class="blinds",
            capabilities=frozenset({"windowcoverings_set"}),
            values={"windowcoverings_set": 0.0},
        ),
    ]
    return DirectorySnapshot.from_lists(list(DEMO_ZONES), devices)
