"""命令执行引擎。

对每个目标设备并发写入能力值，单个设备的失败只影响该设备的结果行，
不会中断同一命令中其他设备的写入。复合命令按顺序逐条执行并汇总为一份报告。
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from home_control.capabilities import (
    CapabilityValueError,
    capability_for_action,
    value_for_action,
)
from home_control.config import PipelineConfig
from home_control.models import (
    CommandDescriptor,
    CommandEnvelope,
    Device,
    DirectorySnapshot,
    ExecutionOutcome,
    ExecutionReport,
    SemanticOracle,
)
from home_control.selection import select_targets
from home_control.vocabulary import resolve_language

logger = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ExecutionEngine:
    """将命令信封应用到目录快照中的设备。

    Args:
        snapshot: 区域与设备快照
        language: 房间匹配使用的声明语言
        oracle: 可选的异步语义 oracle
        config: 管线配置
    """

    def __init__(
        self,
        snapshot: DirectorySnapshot,
        language: str | None = "en",
        oracle: SemanticOracle | None = None,
        config: PipelineConfig | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.language = resolve_language(language)
        self.oracle = oracle
        self.config = config or PipelineConfig()

    async def execute(self, envelope: CommandEnvelope) -> ExecutionReport:
        """执行单条或复合命令。"""
        report = ExecutionReport()
        for descriptor in envelope.descriptors():
            report.extend(await self.execute_descriptor(descriptor))
        logger.info(
            "execute_done commands=%d success=%d total=%d errors=%d",
            len(envelope.descriptors()),
            report.success_count,
            report.total,
            len(report.errors),
        )
        return report

    async def execute_descriptor(self, descriptor: CommandDescriptor) -> ExecutionReport:
        report = ExecutionReport()
        selection = await select_targets(
            descriptor,
            self.snapshot,
            self.language,
            self.oracle,
            self.config,
        )
        if selection.error is not None:
            logger.info(
                "execute_rejected action=%s kind=%s message=%s",
                descriptor.action,
                selection.error.kind,
                selection.error.message,
            )
            report.errors.append(selection.error)
            return report

        writes = [
            self._write_one(entry, descriptor)
            for entry in selection.entries
            if not isinstance(entry, ExecutionOutcome)
        ]
        results = await asyncio.gather(*writes, return_exceptions=True)

        written = iter(results)
        for entry in selection.entries:
            if isinstance(entry, ExecutionOutcome):
                report.outcomes.append(entry)
                continue
            result = next(written)
            if isinstance(result, BaseException):
                # _write_one 已兜底，这里只会是取消等非常规异常
                report.outcomes.append(
                    ExecutionOutcome(entry.id, entry.name, "failure", str(result) or type(result).__name__)
                )
            else:
                report.outcomes.append(result)
        return report

    async def _write_one(self, device: Device, descriptor: CommandDescriptor) -> ExecutionOutcome:
        action = descriptor.action
        capability = capability_for_action(device, action)
        if capability is None:
            return ExecutionOutcome(device.id, device.name, "unsupported", f"does not support {action}")

        try:
            value = value_for_action(
                device,
                action,
                capability,
                descriptor.parameters,
                dim_step=self.config.dim_step,
            )
        except CapabilityValueError as exc:
            return ExecutionOutcome(device.id, device.name, "failure", str(exc))

        try:
            result = await device.set_capability_value(capability, value)
        except Exception as exc:
            logger.warning(
                "device_write_failed device=%s capability=%s error=%s",
                device.id,
                capability,
                exc,
            )
            return ExecutionOutcome(device.id, device.name, "failure", str(exc) or type(exc).__name__)

        if result is False:
            logger.warning("device_write_rejected device=%s capability=%s", device.id, capability)
            return ExecutionOutcome(device.id, device.name, "failure", "write rejected")

        logger.info(
            "device_write device=%s capability=%s value=%s",
            device.id,
            capability,
            value,
        )
        return ExecutionOutcome(
            device.id,
            device.name,
            "success",
            f"{capability} set to {_format_value(value)}",
        )


async def execute_envelope(
    envelope: CommandEnvelope,
    snapshot: DirectorySnapshot,
    language: str | None = "en",
    oracle: SemanticOracle | None = None,
    config: PipelineConfig | None = None,
) -> ExecutionReport:
    """便捷入口：构造引擎并执行。"""
    engine = ExecutionEngine(snapshot, language, oracle, config)
    return await engine.execute(envelope)
