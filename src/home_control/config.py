"""管线配置。"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Mapping

from home_control.capabilities import DEFAULT_DIM_STEP
from home_control.vocabulary import DEFAULT_LANGUAGE, resolve_language

logger = logging.getLogger(__name__)

DEFAULT_LIGHT_PREFERENCE_RATIO = 0.3
DEFAULT_ORACLE_TIMEOUT = 10.0
DEFAULT_MAX_COMMAND_CHARS = 10000

_DISABLED_VALUES = {"off", "none", "disabled", "false", ""}


@dataclass
class PipelineConfig:
    """可调的策略参数。

    `light_preference_ratio` 控制泛指房间命令时"优先灯光"的启发式，None 表示关闭。
    """

    default_language: str = DEFAULT_LANGUAGE
    light_preference_ratio: float | None = DEFAULT_LIGHT_PREFERENCE_RATIO
    oracle_timeout: float | None = DEFAULT_ORACLE_TIMEOUT
    dim_step: float = DEFAULT_DIM_STEP
    max_command_chars: int = DEFAULT_MAX_COMMAND_CHARS
    max_log_chars: int = 400

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PipelineConfig":
        """读取环境变量覆盖默认值，非法值记录后忽略。"""
        env = os.environ if environ is None else environ
        config = cls()

        language = env.get("HOME_CONTROL_LANGUAGE")
        if language:
            config.default_language = resolve_language(language)

        ratio = env.get("HOME_CONTROL_LIGHT_RATIO")
        if ratio is not None:
            if ratio.strip().lower() in _DISABLED_VALUES:
                config.light_preference_ratio = None
            else:
                config.light_preference_ratio = _parse_float(
                    "HOME_CONTROL_LIGHT_RATIO", ratio, config.light_preference_ratio
                )

        timeout = env.get("HOME_CONTROL_ORACLE_TIMEOUT")
        if timeout is not None:
            config.oracle_timeout = _parse_float(
                "HOME_CONTROL_ORACLE_TIMEOUT", timeout, config.oracle_timeout
            )

        step = env.get("HOME_CONTROL_DIM_STEP")
        if step is not None:
            config.dim_step = _parse_float("HOME_CONTROL_DIM_STEP", step, config.dim_step)

        max_chars = env.get("HOME_CONTROL_MAX_CHARS")
        if max_chars is not None:
            try:
                config.max_command_chars = int(max_chars)
            except ValueError:
                logger.warning("config_invalid key=HOME_CONTROL_MAX_CHARS value=%s", max_chars)

        logger.info(
            "config_loaded %s",
            " ".join(f"{item.name}={getattr(config, item.name)}" for item in fields(config)),
        )
        return config


def _parse_float(key: str, raw: str, default: float | None) -> float | None:
    try:
        value = float(raw)
    except ValueError:
        logger.warning("config_invalid key=%s value=%s", key, raw)
        return default
    if value < 0:
        logger.warning("config_invalid key=%s value=%s", key, raw)
        return default
    return value
