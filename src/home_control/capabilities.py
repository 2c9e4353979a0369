"""动作到设备能力的映射。

能力分派只查设备声明的能力集合，不在运行时探测属性。
"""

from __future__ import annotations

from typing import Any, Mapping

from home_control.models import Device

SPEAKER_CLASS = "speaker"
DEFAULT_DIM_STEP = 0.2
MIN_DIM_LEVEL = 0.01

# 动作 -> 候选能力（按优先级）
ACTION_CAPABILITIES: dict[str, tuple[str, ...]] = {
    "turn_on": ("onoff",),
    "turn_off": ("onoff",),
    "dim": ("dim",),
    "brighten": ("dim",),
    "set_temperature": ("target_temperature",),
    "play_music": ("speaker_playing",),
    "stop_music": ("speaker_playing",),
    "open": ("windowcoverings_set", "windowcoverings_state"),
    "close": ("windowcoverings_set", "windowcoverings_state"),
    "lock": ("locked",),
    "unlock": ("locked",),
}

# 适合"优先灯光"启发式的动作
LIGHT_ACTIONS = frozenset({"turn_on", "turn_off", "dim", "brighten"})

_FIXED_VALUES: dict[tuple[str, str], Any] = {
    ("turn_on", "onoff"): True,
    ("turn_off", "onoff"): False,
    ("turn_on", "speaker_playing"): True,
    ("turn_off", "speaker_playing"): False,
    ("play_music", "speaker_playing"): True,
    ("stop_music", "speaker_playing"): False,
    ("open", "windowcoverings_set"): 1.0,
    ("close", "windowcoverings_set"): 0.0,
    ("open", "windowcoverings_state"): "up",
    ("close", "windowcoverings_state"): "down",
    ("lock", "locked"): True,
    ("unlock", "locked"): False,
}

_LEVEL_KEYS = ("brightness", "level", "percentage", "dim", "value")
# 这些键的数值一律是 0-100 百分数
_PERCENT_KEYS = frozenset({"brightness", "percentage"})


class CapabilityValueError(ValueError):
    """无法为动作确定写入值（缺少或非法参数）。"""


def capability_for_action(device: Device, action: str) -> str | None:
    """返回设备执行该动作应写入的能力；不支持时返回 None。

    开关动作优先 onoff，音箱没有 onoff 时退化为 speaker_playing；
    未登记的动作若与某个能力同名则直接使用该能力。
    """
    capabilities = device.capabilities
    for capability in ACTION_CAPABILITIES.get(action, ()):
        if capability in capabilities:
            return capability

    if action in ("turn_on", "turn_off"):
        if device.device_class == SPEAKER_CLASS and "speaker_playing" in capabilities:
            return "speaker_playing"
        return None

    if action not in ACTION_CAPABILITIES and action in capabilities:
        return action
    return None


def supports_action(device: Device, action: str) -> bool:
    return capability_for_action(device, action) is not None


def _as_level(value: Any, percent: bool = False) -> float:
    """将 0-1 小数或 0-100 百分数统一为 0-1。

    带 "%" 的字符串或 percent=True 时一律按百分数换算（1% 是 0.01），
    其余数值大于 1 时才视为百分数。
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise CapabilityValueError(f"invalid level {value!r}")
    raw = str(value).strip()
    if raw.endswith("%"):
        percent = True
        raw = raw[:-1].strip()
    try:
        number = float(raw)
    except ValueError as exc:
        raise CapabilityValueError(f"invalid level {value!r}") from exc
    if percent or number > 1.0:
        number = number / 100.0
    return max(0.0, min(1.0, number))


def _current_level(device: Device) -> float:
    current = device.get_capability_value("dim")
    if isinstance(current, (int, float)) and not isinstance(current, bool):
        return float(current)
    return 1.0


def value_for_action(
    device: Device,
    action: str,
    capability: str,
    parameters: Mapping[str, Any] | None = None,
    *,
    dim_step: float = DEFAULT_DIM_STEP,
) -> Any:
    """计算写入值。

    Args:
        device: 目标设备（dim/brighten 无参数时读取当前亮度）
        action: 规范动作
        capability: capability_for_action 选出的能力
        parameters: 命令参数
        dim_step: 无参数时亮度调整步长

    Raises:
        CapabilityValueError: 参数缺失或非法
    """
    params = parameters or {}

    fixed = _FIXED_VALUES.get((action, capability))
    if fixed is not None:
        return fixed

    if action in ("dim", "brighten"):
        for key in _LEVEL_KEYS:
            if key in params and params[key] is not None:
                return _as_level(params[key], percent=key in _PERCENT_KEYS)
        current = _current_level(device)
        if action == "dim":
            return round(max(MIN_DIM_LEVEL, current - dim_step), 2)
        return round(min(1.0, current + dim_step), 2)

    if action == "set_temperature":
        raw = params.get("temperature", params.get("value"))
        if raw is None or isinstance(raw, bool):
            raise CapabilityValueError("missing temperature parameter")
        try:
            return float(raw)
        except (TypeError, ValueError) as exc:
            raise CapabilityValueError(f"invalid temperature {raw!r}") from exc

    if "value" in params:
        return params["value"]
    if capability in params:
        return params[capability]
    raise CapabilityValueError(f"missing value for {capability}")
