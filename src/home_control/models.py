"""核心数据模型定义。

包含区域、设备、匹配结果、命令描述、执行结果与错误等数据结构。
除设备外均为单次请求内创建、请求结束即丢弃的值对象。
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Mapping, Protocol, runtime_checkable

SIMILARITY_THRESHOLD = 0.6

MatchMethod = Literal["exact", "alias", "fuzzy", "semantic", "none"]
OutcomeStatus = Literal["success", "failure", "unsupported"]
ErrorKind = Literal[
    "validation",
    "no_match",
    "unsupported_action",
    "oracle_failure",
    "device_write_failure",
    "invalid_input",
]

STATUS_ICONS: dict[str, str] = {
    "success": "✅",
    "failure": "❌",
    "unsupported": "⚠️",
}

CapabilityWriter = Callable[[str, Any], Any]


@dataclass(frozen=True)
class Zone:
    """区域（房间）。"""

    id: str
    name: str


@runtime_checkable
class Device(Protocol):
    """设备接口。

    目录服务提供的任何对象只要满足该协议即可被执行引擎使用。
    `set_capability_value` 返回 False 或抛出异常均视为写入失败。
    """

    id: str
    name: str
    zone_id: str
    device_class: str
    capabilities: frozenset[str]
    available: bool

    def get_capability_value(self, capability: str) -> Any:
        ...

    async def set_capability_value(self, capability: str, value: Any) -> Any:
        ...


@dataclass
class DeviceRecord:
    """基于字典的设备实现。

    Args:
        writer: 可注入的写入函数（同步或异步），用于对接真实目录服务或测试
    """

    id: str
    name: str
    zone_id: str
    device_class: str
    capabilities: frozenset[str] = field(default_factory=frozenset)
    available: bool = True
    values: dict[str, Any] = field(default_factory=dict)
    writer: CapabilityWriter | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.capabilities = frozenset(self.capabilities)

    def get_capability_value(self, capability: str) -> Any:
        return self.values.get(capability)

    async def set_capability_value(self, capability: str, value: Any) -> Any:
        if capability not in self.capabilities:
            raise ValueError(f"capability {capability} is not supported")
        result: Any = True
        if self.writer is not None:
            result = self.writer(capability, value)
            if inspect.isawaitable(result):
                result = await result
        if result is not False:
            self.values[capability] = value
        return result


@dataclass
class DirectorySnapshot:
    """某一时刻的区域与设备快照（只读使用）。"""

    zones: dict[str, Zone] = field(default_factory=dict)
    devices: dict[str, Device] = field(default_factory=dict)

    @classmethod
    def from_lists(cls, zones: list[Zone], devices: list[Device]) -> "DirectorySnapshot":
        return cls(
            zones={zone.id: zone for zone in zones},
            devices={device.id: device for device in devices},
        )

    @property
    def room_names(self) -> list[str]:
        """去重后的房间名，保持目录顺序。"""
        names: list[str] = []
        for zone in self.zones.values():
            if zone.name not in names:
                names.append(zone.name)
        return names

    def zones_named(self, name: str) -> list[Zone]:
        return [zone for zone in self.zones.values() if zone.name == name]

    def devices_in_zones(self, zone_ids: set[str]) -> list[Device]:
        return [device for device in self.devices.values() if device.zone_id in zone_ids]


@dataclass
class MatchResult:
    """房间/设备类型匹配结果。

    构造时强制 `match is None` 与 `confidence == 0` 等价，并将置信度截断到 [0, 1]。
    低于阈值的结果仍会带出 `match` 供展示，但 `resolved` 为 None。
    """

    query: str
    match: str | None
    confidence: float
    method: MatchMethod
    reasoning: str = ""
    language: str | None = None
    candidates: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        confidence = max(0.0, min(1.0, float(self.confidence or 0.0)))
        if self.match is None or confidence == 0.0:
            self.match = None
            confidence = 0.0
            self.method = "none"
        self.confidence = confidence

    @classmethod
    def no_match(
        cls,
        query: str,
        candidates: list[str] | None = None,
        *,
        reasoning: str = "",
        language: str | None = None,
    ) -> "MatchResult":
        return cls(
            query=query,
            match=None,
            confidence=0.0,
            method="none",
            reasoning=reasoning,
            language=language,
            candidates=list(candidates or []),
        )

    @property
    def is_confident(self) -> bool:
        return self.match is not None and self.confidence >= SIMILARITY_THRESHOLD

    @property
    def resolved(self) -> str | None:
        """达到阈值时返回匹配名，否则视为未匹配。"""
        return self.match if self.is_confident else None


@dataclass(frozen=True)
class AppliancePattern:
    """插座所接电器的识别模式。"""

    key: str
    category: str
    terms: Mapping[str, tuple[str, ...]]
    common_actions: tuple[str, ...] = ("turn_on", "turn_off")


@dataclass
class EntityMention:
    """文本中识别出的一个词表实体。"""

    surface: str
    canonical: str
    language: str
    start: int = 0


@dataclass
class ExtractionResult:
    """实体抽取结果。

    `matched_languages` 记录每个类别最终命中的语言，便于诊断跨语言回退。
    """

    language: str
    rooms: list[EntityMention] = field(default_factory=list)
    actions: list[EntityMention] = field(default_factory=list)
    device_types: list[EntityMention] = field(default_factory=list)
    matched_languages: dict[str, str] = field(default_factory=dict)

    @property
    def room_forms(self) -> list[str]:
        return [mention.surface for mention in self.rooms]

    @property
    def action_forms(self) -> list[str]:
        return [mention.surface for mention in self.actions]

    @property
    def device_type_forms(self) -> list[str]:
        return [mention.surface for mention in self.device_types]

    @property
    def used_fallback(self) -> bool:
        return any(code != self.language for code in self.matched_languages.values())

    @property
    def total_matches(self) -> int:
        return len(self.rooms) + len(self.actions) + len(self.device_types)


@dataclass
class CommandDescriptor:
    """单条原子命令。

    目标为 room / device_ids / device_id 三者之一；校验由 validator 负责。
    """

    action: str
    room: str | None = None
    device_ids: list[str] | None = None
    device_id: str | None = None
    parameters: dict[str, Any] = field(default_factory=dict)
    device_filter: str | None = None

    @property
    def target_kind(self) -> str | None:
        if self.room is not None:
            return "room"
        if self.device_ids is not None:
            return "device_ids"
        if self.device_id is not None:
            return "device_id"
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.room is not None:
            data["room"] = self.room
        if self.device_ids is not None:
            data["device_ids"] = list(self.device_ids)
        if self.device_id is not None:
            data["device_id"] = self.device_id
        data["command"] = self.action
        if self.device_filter:
            data["device_filter"] = self.device_filter
        if self.parameters:
            data["parameters"] = dict(self.parameters)
        return data


@dataclass
class CommandEnvelope:
    """命令信封：单条命令或 `commands` 复合命令，二者互斥。"""

    descriptor: CommandDescriptor | None = None
    commands: list[CommandDescriptor] | None = None

    @property
    def is_compound(self) -> bool:
        return self.commands is not None

    def descriptors(self) -> list[CommandDescriptor]:
        if self.commands is not None:
            return list(self.commands)
        if self.descriptor is not None:
            return [self.descriptor]
        return []

    def to_dict(self) -> dict[str, Any]:
        if self.commands is not None:
            return {"commands": [command.to_dict() for command in self.commands]}
        if self.descriptor is not None:
            return self.descriptor.to_dict()
        return {}


@dataclass
class CommandError:
    """以数据形式返回给调用方的错误。"""

    kind: ErrorKind
    message: str
    candidates: list[str] = field(default_factory=list)

    @property
    def user_message(self) -> str:
        return f"❌ {self.message}"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"error": self.message, "kind": self.kind}
        if self.candidates:
            data["candidates"] = list(self.candidates)
        return data


@dataclass
class ExecutionOutcome:
    """单个设备的执行结果。"""

    device_id: str
    device_name: str
    status: OutcomeStatus
    message: str

    @property
    def line(self) -> str:
        return f"{STATUS_ICONS[self.status]} {self.device_name}: {self.message}"


@dataclass
class ExecutionReport:
    """执行汇总。

    `text` 是传输层原样转发给用户的报告字符串。
    """

    outcomes: list[ExecutionOutcome] = field(default_factory=list)
    errors: list[CommandError] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == "success")

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def summary(self) -> str:
        return f"{self.success_count}/{self.total} devices updated"

    @property
    def text(self) -> str:
        lines: list[str] = []
        if self.outcomes:
            lines.append(self.summary)
            lines.extend(outcome.line for outcome in self.outcomes)
        lines.extend(error.user_message for error in self.errors)
        return "\n".join(lines)

    def extend(self, other: "ExecutionReport") -> None:
        self.outcomes.extend(other.outcomes)
        self.errors.extend(other.errors)


class InvalidCommandInput(ValueError):
    """调用方输入本身无效（非字符串、空白或过长）。"""


OracleReply = Mapping[str, Any]
SemanticOracle = Callable[[str, list[str]], Awaitable[OracleReply]]
