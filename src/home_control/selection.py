"""目标设备解析。

将校验后的命令描述解析为具体设备集合：
房间目标经分层匹配定位区域，再按能力与设备类型过滤；
设备 ID 目标直接查快照，未知 ID 记为失败而不是致命错误。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from home_control.appliances import (
    TypeFilter,
    device_matches_type,
    filter_by_type,
    resolve_type_filter,
)
from home_control.capabilities import LIGHT_ACTIONS, supports_action
from home_control.config import PipelineConfig
from home_control.matcher import match
from home_control.models import (
    CommandDescriptor,
    CommandError,
    Device,
    DirectorySnapshot,
    ExecutionOutcome,
    MatchResult,
    SemanticOracle,
)
from home_control.text import fold
from home_control.vocabulary import ALL_ROOMS_TERMS

logger = logging.getLogger(__name__)

LIGHT_FILTER = TypeFilter(kind="type", key="light", query="light")
_ALL_ROOMS = frozenset(fold(term) for term in ALL_ROOMS_TERMS)

# 待写入的设备，或已确定结果（未找到/不支持/不可用）的条目
SelectionEntry = Union[Device, ExecutionOutcome]


@dataclass
class TargetSelection:
    """目标解析结果，entries 保持目标顺序。"""

    entries: list[SelectionEntry] = field(default_factory=list)
    error: CommandError | None = None
    room_match: MatchResult | None = None

    @property
    def writable(self) -> list[Device]:
        return [entry for entry in self.entries if not isinstance(entry, ExecutionOutcome)]


def _unsupported(device: Device, action: str) -> ExecutionOutcome:
    return ExecutionOutcome(device.id, device.name, "unsupported", f"does not support {action}")


def _unavailable(device: Device) -> ExecutionOutcome:
    return ExecutionOutcome(device.id, device.name, "failure", "device is unavailable")


def _entry_for(device: Device) -> SelectionEntry:
    return device if device.available else _unavailable(device)


def prefer_lights(
    devices: list[Device],
    action: str,
    ratio: float | None,
    language: str = "en",
) -> list[Device]:
    """泛指房间命令时，灯光设备占比达到阈值则只保留灯光。"""
    if ratio is None or action not in LIGHT_ACTIONS or not devices:
        return devices
    lights = [device for device in devices if device_matches_type(device, LIGHT_FILTER, language)]
    if lights and len(lights) / len(devices) >= ratio:
        logger.info(
            "light_preference lights=%d eligible=%d ratio=%.2f",
            len(lights),
            len(devices),
            ratio,
        )
        return lights
    return devices


def select_by_ids(
    device_ids: list[str],
    action: str,
    snapshot: DirectorySnapshot,
) -> TargetSelection:
    """按设备 ID 选取；重复 ID 只保留一次。"""
    selection = TargetSelection()
    seen: set[str] = set()
    for device_id in device_ids:
        if device_id in seen:
            continue
        seen.add(device_id)
        device = snapshot.devices.get(device_id)
        if device is None:
            selection.entries.append(
                ExecutionOutcome(device_id, device_id, "failure", "device not found")
            )
        elif not supports_action(device, action):
            selection.entries.append(_unsupported(device, action))
        else:
            selection.entries.append(_entry_for(device))
    return selection


async def _resolve_zone_ids(
    room: str,
    snapshot: DirectorySnapshot,
    language: str,
    oracle: SemanticOracle | None,
    config: PipelineConfig,
) -> tuple[set[str], MatchResult | None, CommandError | None]:
    if fold(room) in _ALL_ROOMS:
        return set(snapshot.zones), None, None

    room_names = snapshot.room_names
    result = await match(room, room_names, language, oracle, timeout=config.oracle_timeout)
    resolved = result.resolved
    if resolved is None:
        message = f'No room matching "{room}" found.'
        if room_names:
            message += f" Available rooms: {', '.join(room_names)}"
        return set(), result, CommandError("no_match", message, candidates=room_names)
    return {zone.id for zone in snapshot.zones_named(resolved)}, result, None


async def select_by_room(
    descriptor: CommandDescriptor,
    snapshot: DirectorySnapshot,
    language: str,
    oracle: SemanticOracle | None = None,
    config: PipelineConfig | None = None,
) -> TargetSelection:
    """按房间选取设备。

    有 device_filter 时，类型命中但缺少能力的设备记为 unsupported；
    无 device_filter 时只保留支持该动作的设备，并应用灯光优先策略。
    """
    config = config or PipelineConfig()
    room = descriptor.room or ""
    action = descriptor.action

    zone_ids, room_match, error = await _resolve_zone_ids(room, snapshot, language, oracle, config)
    selection = TargetSelection(room_match=room_match)
    if error is not None:
        selection.error = error
        return selection

    zone_devices = snapshot.devices_in_zones(zone_ids)

    if descriptor.device_filter:
        type_filter = resolve_type_filter(descriptor.device_filter, language)
        if type_filter is None:
            selection.error = CommandError(
                "no_match", f'Unknown device type "{descriptor.device_filter}".'
            )
            return selection
        typed = filter_by_type(zone_devices, type_filter, language)
        supported = [device for device in typed if supports_action(device, action)]
        supported_ids = {device.id for device in supported}
        if supported:
            for device in typed:
                if device.id in supported_ids:
                    selection.entries.append(_entry_for(device))
                else:
                    selection.entries.append(_unsupported(device, action))
    else:
        supported = [device for device in zone_devices if supports_action(device, action)]
        supported = prefer_lights(supported, action, config.light_preference_ratio, language)
        selection.entries.extend(_entry_for(device) for device in supported)

    logger.info(
        "select_room room=%s zones=%d zone_devices=%d eligible=%d filter=%s",
        room,
        len(zone_ids),
        len(zone_devices),
        len(supported),
        descriptor.device_filter or "-",
    )

    if not supported:
        selection.entries = []
        selection.error = CommandError(
            "validation",
            f'No devices with required capabilities found in room "{room}" '
            f'for command "{action}".',
        )
    return selection


async def select_targets(
    descriptor: CommandDescriptor,
    snapshot: DirectorySnapshot,
    language: str,
    oracle: SemanticOracle | None = None,
    config: PipelineConfig | None = None,
) -> TargetSelection:
    if descriptor.room is not None:
        return await select_by_room(descriptor, snapshot, language, oracle, config)
    if descriptor.device_ids is not None:
        return select_by_ids(list(descriptor.device_ids), descriptor.action, snapshot)
    if descriptor.device_id is not None:
        return select_by_ids([descriptor.device_id], descriptor.action, snapshot)
    return TargetSelection(
        error=CommandError(
            "validation",
            'Invalid command format: must include "room", "device_ids", or "device_id".',
        )
    )
