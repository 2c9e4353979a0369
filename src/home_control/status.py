"""设备状态查询。

识别 "is the kitchen light on?"、"vad är status för trädgården?" 这类问句，
解析为房间、设备类型、全屋或具体设备四种查询，读取设备当前能力值并格式化为报告。
查询只读，不写入任何设备。
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from home_control.appliances import SOCKET_CLASS, describe_socket, filter_by_type, resolve_type_filter
from home_control.config import PipelineConfig
from home_control.extractor import extract_entities, extract_modifiers, normalize_phrases
from home_control.matcher import match
from home_control.models import CommandError, Device, DirectorySnapshot, MatchResult, SemanticOracle
from home_control.planner import find_literal_room
from home_control.text import contains_term, fold
from home_control.vocabulary import ALL_ROOMS_TERMS, DEFAULT_LANGUAGE, resolve_language

logger = logging.getLogger(__name__)

ROOM_STATUS = "room_status"
DEVICE_TYPE_STATUS = "device_type_status"
GLOBAL_STATUS = "global_status"
DEVICE_STATUS = "device_status"

MAX_STATUS_DEVICES = 50
_MIN_NAME_TOKEN = 4

# 问句模式（已折叠：小写、无变音符）
STATUS_QUERY_PATTERNS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "en": (
            r"\b(?:status|state of)\b",
            r"^(?:is|are)\b",
            r"^(?:what's|whats|what is|what are|how is|how are)\b",
            r"^(?:show|list|check|tell me about)\b",
        ),
        "es": (
            r"\b(?:estado|estatus)\b",
            r"^(?:esta|estan)\b",
            r"^(?:como esta|como estan|cual es|que tal)\b",
            r"^(?:muestra|muestrame|lista|verifica)\b",
        ),
        "fr": (
            r"\b(?:statut|etat)\b",
            r"^(?:est-ce que|est ce que)\b",
            r"^(?:quel est|comment est|comment sont|comment va|comment vont)\b",
            r"^(?:montre|montre-moi|liste|affiche|verifie)\b",
        ),
        "de": (
            r"\b(?:status|zustand)\b",
            r"^(?:ist|sind)\b",
            r"^(?:wie ist|wie sind|was ist)\b",
            r"^(?:zeige|zeig|liste|prufe)\b",
        ),
        "it": (
            r"\b(?:stato)\b",
            r"^(?:com'e|come sono|come va|qual e)\b",
            r"^(?:mostra|mostrami|elenca|controlla)\b",
        ),
        "pt": (
            r"\b(?:estado|status)\b",
            r"^(?:esta|estao)\b",
            r"^(?:como esta|como estao|qual e)\b",
            r"^(?:mostra|mostre|lista|verifica)\b",
        ),
        "nl": (
            r"\b(?:status|toestand)\b",
            r"^(?:is|zijn|staat|staan)\b",
            r"^(?:hoe is|hoe zijn|wat is)\b",
            r"^(?:toon|laat zien|controleer)\b",
        ),
        "sv": (
            r"\b(?:status|tillstand)\b",
            r"^(?:ar)\b",
            r"^(?:hur ar|vad ar)\b",
            r"^(?:visa|lista|kolla)\b",
        ),
    }
)

_COMPILED_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    code: tuple(re.compile(pattern) for pattern in patterns)
    for code, patterns in STATUS_QUERY_PATTERNS.items()
}
_EXPLICIT_STATUS_RE = re.compile(r"\b(?:status|state|statut|etat|zustand|estado|estatus|stato|toestand|tillstand)\b")


@dataclass
class StatusQuery:
    """解析后的状态查询（尚未对照目录）。"""

    kind: str
    text: str
    language: str
    room: str | None = None
    device_type: str | None = None
    confidence: float = 0.8


@dataclass
class DeviceStatus:
    device_id: str
    name: str
    device_class: str
    online: bool
    values: dict[str, Any] = field(default_factory=dict)
    summary: str = ""

    @property
    def line(self) -> str:
        icon = "✅" if self.online else "❌"
        return f"{icon} {self.name}: {self.summary}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.device_id,
            "name": self.name,
            "class": self.device_class,
            "online": self.online,
            "values": dict(self.values),
            "summary": self.summary,
        }


@dataclass
class StatusReport:
    """状态查询结果。

    `text` 首行为范围与在线数，随后每台设备一行，错误以 ❌ 行附在末尾。
    """

    query: StatusQuery | None = None
    scope: str = ""
    devices: list[DeviceStatus] = field(default_factory=list)
    errors: list[CommandError] = field(default_factory=list)
    room_match: MatchResult | None = None
    truncated: bool = False

    @property
    def online_count(self) -> int:
        return sum(1 for device in self.devices if device.online)

    @property
    def header(self) -> str:
        return f"{self.scope} ({self.online_count}/{len(self.devices)} devices online)"

    @property
    def text(self) -> str:
        lines: list[str] = []
        if self.devices:
            lines.append(self.header)
            lines.extend(device.line for device in self.devices)
            if self.truncated:
                lines.append(f"… showing the first {len(self.devices)} devices")
        lines.extend(error.user_message for error in self.errors)
        return "\n".join(lines)


def _status_patterns(language: str) -> tuple[re.Pattern[str], ...]:
    patterns = _COMPILED_PATTERNS.get(language, ())
    if language != DEFAULT_LANGUAGE:
        patterns = patterns + _COMPILED_PATTERNS[DEFAULT_LANGUAGE]
    return patterns


def _mentions_everything(folded: str) -> bool:
    if "all" in extract_modifiers(folded):
        return True
    return any(contains_term(folded, fold(term), whole_word=True) for term in ALL_ROOMS_TERMS)


def parse_status_query(text: str, language: str | None = "en") -> StatusQuery | None:
    """判断文本是否为状态问句并粗分查询类型。

    Args:
        text: 用户文本
        language: 声明语言；声明语言的模式未命中时再试英语模式

    Returns:
        StatusQuery；不是状态问句时返回 None
    """
    code = resolve_language(language)
    folded = fold(normalize_phrases(text or ""))
    if not folded:
        return None
    if not any(pattern.search(folded) for pattern in _status_patterns(code)):
        return None

    extraction = extract_entities(folded, code)
    room = extraction.rooms[0].surface if extraction.rooms else None
    device_type = extraction.device_types[0].canonical if extraction.device_types else None

    if device_type is not None:
        kind = DEVICE_TYPE_STATUS
    elif room is not None:
        kind = ROOM_STATUS
    elif _mentions_everything(folded):
        kind = GLOBAL_STATUS
    else:
        kind = DEVICE_STATUS

    confidence = 0.9 if _EXPLICIT_STATUS_RE.search(folded) else 0.8
    query = StatusQuery(kind, text, code, room=room, device_type=device_type, confidence=confidence)
    logger.info(
        "status_query kind=%s room=%s type=%s language=%s",
        kind,
        room or "-",
        device_type or "-",
        code,
    )
    return query


def is_status_query(text: str, language: str | None = "en") -> bool:
    return parse_status_query(text, language) is not None


def _read_values(device: Device) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for capability in sorted(device.capabilities):
        try:
            value = device.get_capability_value(capability)
        except Exception as exc:
            logger.warning("status_read_failed device=%s capability=%s error=%s", device.id, capability, exc)
            continue
        if value is not None:
            values[capability] = value
    return values


def _percent(value: Any) -> int:
    return round(float(value) * 100)


def summarize_device(device: Device, values: Mapping[str, Any], language: str = "en") -> str:
    """按设备类别生成一行状态摘要，如 "on, 80% brightness"。"""
    device_class = fold(device.device_class)
    parts: list[str] = []
    onoff = values.get("onoff")

    if device_class == "light":
        if onoff is not None:
            parts.append("on" if onoff else "off")
        if onoff and "dim" in values:
            parts.append(f"{_percent(values['dim'])}% brightness")
        if "light_temperature" in values:
            parts.append(f"{values['light_temperature']}K color temp")
    elif device_class == SOCKET_CLASS:
        if onoff is not None:
            parts.append("on" if onoff else "off")
        if "measure_power" in values:
            parts.append(f"{values['measure_power']}W")
        parts.append(describe_socket(device, language))
    elif device_class == "thermostat":
        if "target_temperature" in values:
            parts.append(f"set to {values['target_temperature']}°C")
        if "measure_temperature" in values:
            parts.append(f"currently {values['measure_temperature']}°C")
    elif device_class == "speaker":
        if "speaker_playing" in values:
            parts.append("playing" if values["speaker_playing"] else "stopped")
        if "volume_set" in values:
            parts.append(f"volume {_percent(values['volume_set'])}%")
    elif device_class == "sensor":
        if "measure_temperature" in values:
            parts.append(f"{values['measure_temperature']}°C")
        if "measure_humidity" in values:
            parts.append(f"{values['measure_humidity']}% humidity")
        if "alarm_motion" in values:
            parts.append("motion detected" if values["alarm_motion"] else "no motion")
        if "alarm_contact" in values:
            parts.append("open" if values["alarm_contact"] else "closed")
    elif device_class == "lock":
        if "locked" in values:
            parts.append("locked" if values["locked"] else "unlocked")
    elif device_class in ("curtain", "blinds"):
        if "windowcoverings_set" in values:
            parts.append(f"{_percent(values['windowcoverings_set'])}% open")
    elif device_class == "fan":
        if onoff is not None:
            parts.append("on" if onoff else "off")
        if onoff and "fan_speed" in values:
            parts.append(f"speed {_percent(values['fan_speed'])}%")
    elif onoff is not None:
        parts.append("on" if onoff else "off")

    if not getattr(device, "available", True):
        parts.insert(0, "offline")
    return ", ".join(parts) if parts else "no status available"


def device_status(device: Device, language: str = "en") -> DeviceStatus:
    """读取单台设备的当前状态。"""
    values = _read_values(device)
    return DeviceStatus(
        device_id=device.id,
        name=device.name,
        device_class=device.device_class,
        online=bool(getattr(device, "available", True)),
        values=values,
        summary=summarize_device(device, values, language),
    )


def _devices_named_in(folded: str, devices: list[Device]) -> list[Device]:
    """文本中完整出现名称的设备。"""
    return [device for device in devices if fold(device.name) and contains_term(folded, fold(device.name))]


def _devices_by_token(folded: str, devices: list[Device]) -> list[Device]:
    """名称中任一较长的词在文本中出现的设备。"""
    found: list[Device] = []
    for device in devices:
        tokens = [token for token in re.split(r"\W+", fold(device.name)) if len(token) >= _MIN_NAME_TOKEN]
        if any(contains_term(folded, token, whole_word=True) for token in tokens):
            found.append(device)
    return found


def _no_room_error(query: str, room_names: list[str]) -> CommandError:
    message = f'No room matching "{query}" found.'
    if room_names:
        message += f" Available rooms: {', '.join(room_names)}"
    return CommandError("no_match", message, candidates=list(room_names))


async def answer_status_query(
    text: str,
    snapshot: DirectorySnapshot,
    language: str | None = None,
    oracle: SemanticOracle | None = None,
    config: PipelineConfig | None = None,
) -> StatusReport:
    """回答一条状态问句。

    房间先查目录房间名原文，再用词表说法走分层匹配；设备类型经 resolve_type_filter
    解析，插座按所接电器归类。文本中完整出现的设备名优先于房间与类型。

    Args:
        text: 用户文本
        snapshot: 区域与设备快照
        language: 声明语言
        oracle: 可选的异步语义 oracle（用于房间匹配）
        config: 管线配置

    Returns:
        StatusReport；无法回答时 errors 非空
    """
    config = config or PipelineConfig()
    code = resolve_language(language or config.default_language)
    query = parse_status_query(text, code)
    report = StatusReport(query=query)
    if query is None:
        report.errors.append(CommandError("validation", "Not recognized as a status query."))
        return report

    folded = fold(normalize_phrases(text))
    all_devices = list(snapshot.devices.values())
    room_names = snapshot.room_names
    kind = query.kind

    # 1. 完整设备名
    named = _devices_named_in(folded, all_devices) if kind != GLOBAL_STATUS else []
    if named:
        kind = DEVICE_STATUS
        scope_devices = named
        report.scope = "Matched devices"
    else:
        # 2. 房间
        room_name = None
        literal = find_literal_room(folded, room_names)
        if literal is not None:
            room_name = literal
            report.room_match = MatchResult(literal, literal, 1.0, "exact", language=code, candidates=room_names)
            if kind in (DEVICE_STATUS, GLOBAL_STATUS):
                kind = ROOM_STATUS
        elif query.room is not None:
            result = await match(query.room, room_names, code, oracle, timeout=config.oracle_timeout)
            report.room_match = result
            if result.resolved is None:
                report.errors.append(_no_room_error(query.room, room_names))
                return report
            room_name = result.resolved

        if room_name is not None:
            zone_ids = {zone.id for zone in snapshot.zones_named(room_name)}
            scope_devices = snapshot.devices_in_zones(zone_ids)
            report.scope = room_name
        else:
            scope_devices = all_devices
            report.scope = "All rooms"

        # 3. 设备类型
        if kind == DEVICE_TYPE_STATUS:
            type_filter = resolve_type_filter(query.device_type, code)
            if type_filter is None:
                report.errors.append(
                    CommandError("no_match", f'Unknown device type "{query.device_type}".')
                )
                return report
            scope_devices = filter_by_type(scope_devices, type_filter, code)
            report.scope = f"{type_filter.key} in {room_name}" if room_name else type_filter.key
        elif kind == DEVICE_STATUS:
            # 4. 名称中的词
            scope_devices = _devices_by_token(folded, all_devices)
            report.scope = "Matched devices"
            if not scope_devices:
                report.errors.append(
                    CommandError(
                        "no_match",
                        f'Could not find a device or room in "{text.strip()}".',
                        candidates=list(room_names),
                    )
                )
                return report

    if not scope_devices:
        report.errors.append(CommandError("no_match", f"No devices found in {report.scope}."))
        return report

    if len(scope_devices) > MAX_STATUS_DEVICES:
        report.truncated = True
        scope_devices = scope_devices[:MAX_STATUS_DEVICES]

    report.devices = [device_status(device, code) for device in scope_devices]
    logger.info(
        "status_answered kind=%s scope=%s devices=%d online=%d",
        kind,
        report.scope,
        len(report.devices),
        report.online_count,
    )
    return report
