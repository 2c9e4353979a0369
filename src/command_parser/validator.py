"""命令结构校验。

校验决策步骤产出的命令对象：目标字段（room / device_ids / device_id / commands）
必须恰好出现一个，每条原子命令必须带非空动作。
校验失败以 CommandError 数据返回，不抛异常。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from home_control.models import CommandDescriptor, CommandEnvelope, CommandError

logger = logging.getLogger(__name__)

FORMAT_ERROR = 'Invalid command format: must include "room", "device_ids", "device_id", or "commands".'
MULTIPLE_TARGETS_ERROR = (
    'Invalid command format: must include exactly one of "room", "device_ids", '
    '"device_id", or "commands".'
)
MISSING_ACTION_ERROR = "Missing action in command."
MISSING_SUB_ACTION_ERROR = "Missing action in one of the parsed commands."
EMPTY_COMMANDS_ERROR = 'Invalid command format: "commands" must be a non-empty list.'
DEVICE_IDS_ERROR = 'Invalid "device_ids": expected a non-empty list of device ids.'
PARAMETERS_ERROR = 'Invalid "parameters": expected an object.'

# 字段别名（兼容驼峰写法与旧字段名）
_KEY_ALIASES: dict[str, tuple[str, ...]] = {
    "room": ("room",),
    "device_ids": ("device_ids", "deviceIds"),
    "device_id": ("device_id", "deviceId"),
    "commands": ("commands",),
    "action": ("command", "action"),
    "parameters": ("parameters", "params"),
    "device_filter": ("device_filter", "deviceFilter"),
}
_TARGET_KEYS = ("room", "device_ids", "device_id", "commands")


@dataclass
class ValidationResult:
    valid: bool
    envelope: CommandEnvelope | None = None
    error: CommandError | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.valid and self.envelope is not None:
            return self.envelope.to_dict()
        return self.error.to_dict() if self.error else {}


class _Invalid(Exception):
    """内部使用：携带校验错误信息。"""


def _has_value(value: object) -> bool:
    """判断字段是否存在且非空。"""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _get(item: Mapping[str, Any], key: str) -> Any:
    for alias in _KEY_ALIASES[key]:
        if alias in item and _has_value(item[alias]):
            return item[alias]
    return None


def _normalize_action(value: object) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower().replace(" ", "_")


def _convert_onoff(action: str, parameters: dict[str, Any]) -> tuple[str, dict[str, Any]]:
    """将旧式 onoff 动作转为 turn_on / turn_off。"""
    if action != "onoff" or not isinstance(parameters.get("onoff"), bool):
        return action, parameters
    remaining = {key: value for key, value in parameters.items() if key != "onoff"}
    return ("turn_on" if parameters["onoff"] else "turn_off"), remaining


def _parse_descriptor(item: Mapping[str, Any], *, nested: bool) -> CommandDescriptor:
    targets = [key for key in ("room", "device_ids", "device_id") if _get(item, key) is not None]
    if nested and _get(item, "commands") is not None:
        raise _Invalid(MULTIPLE_TARGETS_ERROR)
    if not targets:
        raise _Invalid(FORMAT_ERROR)
    if len(targets) > 1:
        raise _Invalid(MULTIPLE_TARGETS_ERROR)

    action = _normalize_action(_get(item, "action"))
    if not action:
        raise _Invalid(MISSING_SUB_ACTION_ERROR if nested else MISSING_ACTION_ERROR)

    raw_parameters = _get(item, "parameters")
    if raw_parameters is None:
        parameters: dict[str, Any] = {}
    elif isinstance(raw_parameters, Mapping):
        parameters = dict(raw_parameters)
    else:
        raise _Invalid(PARAMETERS_ERROR)
    action, parameters = _convert_onoff(action, parameters)

    device_filter = _get(item, "device_filter")
    descriptor = CommandDescriptor(
        action=action,
        parameters=parameters,
        device_filter=device_filter.strip() if isinstance(device_filter, str) else None,
    )

    target = targets[0]
    value = _get(item, target)
    if target == "room":
        if not isinstance(value, str):
            raise _Invalid(FORMAT_ERROR)
        descriptor.room = value.strip()
    elif target == "device_id":
        descriptor.device_id = str(value).strip()
    else:
        if isinstance(value, str) or not isinstance(value, (list, tuple)):
            raise _Invalid(DEVICE_IDS_ERROR)
        device_ids = [str(device_id).strip() for device_id in value if _has_value(device_id)]
        if not device_ids:
            raise _Invalid(DEVICE_IDS_ERROR)
        descriptor.device_ids = device_ids
    return descriptor


def _as_mapping(envelope: object) -> Mapping[str, Any] | None:
    if isinstance(envelope, CommandEnvelope):
        return envelope.to_dict()
    if isinstance(envelope, CommandDescriptor):
        return envelope.to_dict()
    if isinstance(envelope, Mapping):
        return envelope
    return None


def validate_envelope(envelope: CommandEnvelope | CommandDescriptor | Mapping[str, Any]) -> ValidationResult:
    """校验命令信封。

    Args:
        envelope: CommandEnvelope、CommandDescriptor 或原始字典

    Returns:
        ValidationResult；合法时 envelope 为规整后的新信封
    """
    item = _as_mapping(envelope)
    if item is None:
        return _reject(FORMAT_ERROR)

    if "error" in item and _has_value(item.get("error")):
        return _reject(str(item["error"]).strip())

    present = [key for key in _TARGET_KEYS if _get(item, key) is not None]
    if not present:
        return _reject(FORMAT_ERROR)
    if len(present) > 1:
        return _reject(MULTIPLE_TARGETS_ERROR)

    try:
        if present[0] == "commands":
            commands = item["commands"]
            if not isinstance(commands, (list, tuple)) or not commands:
                raise _Invalid(EMPTY_COMMANDS_ERROR)
            descriptors = []
            for sub in commands:
                if not isinstance(sub, Mapping):
                    raise _Invalid(FORMAT_ERROR)
                descriptors.append(_parse_descriptor(sub, nested=True))
            result = CommandEnvelope(commands=descriptors)
        else:
            result = CommandEnvelope(descriptor=_parse_descriptor(item, nested=False))
    except _Invalid as exc:
        return _reject(str(exc))

    logger.info(
        "validate_ok compound=%s commands=%d",
        result.is_compound,
        len(result.descriptors()),
    )
    return ValidationResult(valid=True, envelope=result)


def _reject(message: str) -> ValidationResult:
    logger.info("validate_rejected message=%s", message)
    return ValidationResult(valid=False, error=CommandError("validation", message))
