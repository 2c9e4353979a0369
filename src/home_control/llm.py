"""LLM 适配层。

提供 LLM 客户端协议、测试用 FakeLLM、基于 dashscope 的实现，
以及基于 LLM 的语义匹配 oracle 与决策步骤。
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from typing import TYPE_CHECKING, Any, Protocol

from command_parser.prompt import build_decision_prompt, build_semantic_match_prompt
from home_control.injection import (
    summarize_candidates_for_prompt,
    summarize_directory_for_prompt,
)

if TYPE_CHECKING:
    from home_control.planner import CommandPlan

logger = logging.getLogger(__name__)

FALLBACK_REPLY: dict[str, Any] = {"confidence": 0.0}


class LLMClient(Protocol):
    """LLM 客户端协议。"""

    def generate_with_prompt(self, text: str, system_prompt: str) -> str:
        """生成文本（带 system prompt）。"""
        ...

    def parse(self, text: str) -> dict[str, Any]:
        """解析文本，返回 JSON 对象。"""
        ...

    def parse_with_prompt(self, text: str, system_prompt: str) -> dict[str, Any]:
        """解析文本（可覆盖 system prompt）。"""
        ...


class FakeLLM(LLMClient):
    """用于测试和离线 demo 的假 LLM。"""

    def __init__(self, preset_responses: dict[str, Any] | None = None):
        """初始化。

        Args:
            preset_responses: 预设响应映射，key 是输入文本，value 是字典或原始文本
        """
        self._presets = preset_responses or {}
        self.calls: list[tuple[str, str]] = []

    def parse(self, text: str) -> dict[str, Any]:
        """返回预设的字典响应或 fallback。"""
        preset = self._presets.get(text)
        if isinstance(preset, dict):
            return preset
        return dict(FALLBACK_REPLY)

    def parse_with_prompt(self, text: str, system_prompt: str) -> dict[str, Any]:
        """解析文本（记录 system prompt，便于测试断言注入内容）。"""
        self.calls.append((text, system_prompt))
        return self.parse(text)

    def generate_with_prompt(self, text: str, system_prompt: str) -> str:
        """返回预设的原始文本。"""
        self.calls.append((text, system_prompt))
        preset = self._presets.get(text)
        if isinstance(preset, str):
            return preset
        if isinstance(preset, (list, dict)):
            return json.dumps(preset, ensure_ascii=False)
        return '{"error": "Command not understood."}'


class DashScopeLLM(LLMClient):
    """基于 dashscope 的 LLM 客户端。

    通过 qwen 模型返回 JSON 文本。
    """

    def __init__(
        self,
        model: str = "qwen-flash",
        api_key: str | None = None,
        generation_client: Any | None = None,
        system_prompt: str | None = None,
    ):
        """初始化。

        Args:
            model: dashscope 模型名称
            api_key: API Key，未提供时从环境变量 `DASHSCOPE_API_KEY` 读取
            generation_client: 可注入的 Generation 客户端，便于测试
            system_prompt: 可选默认 system prompt
        """
        self.model = model
        self._system_prompt = system_prompt or ""

        if generation_client is not None:
            self._generation = generation_client
            return

        try:
            import dashscope
            from dashscope import Generation
        except ImportError as exc:  # pragma: no cover - 依赖缺失时提示
            raise ImportError("需要安装 dashscope 才能使用 DashScopeLLM") from exc

        api_key = api_key or os.getenv("DASHSCOPE_API_KEY")
        if api_key:
            dashscope.api_key = api_key

        self._generation = Generation

    def parse(self, text: str) -> dict[str, Any]:
        return self.parse_with_prompt(text, self._system_prompt)

    def parse_with_prompt(self, text: str, system_prompt: str) -> dict[str, Any]:
        """调用 dashscope 并解析 JSON（可覆盖 system prompt）。"""
        content = self.generate_with_prompt(text, system_prompt)
        return self._safe_json_loads(content)

    def generate_with_prompt(self, text: str, system_prompt: str) -> str:
        """调用 dashscope 返回原始文本。"""
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": text},
        ]

        response = self._generation.call(
            model=self.model,
            messages=messages,  # type: ignore
            result_format="message",
        )

        return self._extract_content(response)

    def _extract_content(self, response: Any) -> str:
        """从 dashscope 响应中提取文本内容。

        dashscope 响应结构：response.output.choices[0].message.content
        """
        if response.status_code != 200:
            raise RuntimeError(
                f"dashscope 调用失败: code={response.code}, message={response.message}"
            )
        return response.output.choices[0].message.content

    def _safe_json_loads(self, content: str) -> dict[str, Any]:
        """解析 JSON 对象，失败时返回 fallback。"""
        if not content:
            return dict(FALLBACK_REPLY)

        try:
            parsed = json.loads(content)
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

        # 提取首个 JSON 对象片段
        match = re.search(r"{.*}", content, re.DOTALL)
        if match:
            try:
                parsed = json.loads(match.group(0))
                if isinstance(parsed, dict):
                    logger.debug("llm_json_extracted length=%d", len(content))
                    return parsed
            except json.JSONDecodeError:
                pass

        return dict(FALLBACK_REPLY)


class LLMSemanticOracle:
    """基于 LLM 的语义匹配 oracle。

    满足 `SemanticOracle` 签名：`await oracle(query, candidates)` 返回
    `{"match", "confidence", "reasoning"}`。阻塞的客户端调用放到线程中执行，
    客户端抛出的异常原样向上传播，由匹配器捕获并降级。
    """

    def __init__(self, llm: LLMClient, system_prompt: str | None = None):
        self._llm = llm
        self._system_prompt = system_prompt

    async def __call__(self, query: str, candidates: list[str]) -> dict[str, Any]:
        prompt = build_semantic_match_prompt(
            summarize_candidates_for_prompt(query, candidates),
            self._system_prompt,
        )
        reply = await asyncio.to_thread(self._llm.parse_with_prompt, query, prompt)
        logger.info(
            "semantic_oracle query=%s match=%s confidence=%s",
            query,
            reply.get("match") if isinstance(reply, dict) else None,
            reply.get("confidence") if isinstance(reply, dict) else None,
        )
        return reply


class LLMDecider:
    """基于 LLM 的决策步骤：根据命令文本与目录摘要生成命令对象。

    返回模型原始输出，由 `command_parser.parse_envelope_output` 解析与校验。
    """

    def __init__(self, llm: LLMClient, system_prompt: str | None = None):
        self._llm = llm
        self._system_prompt = system_prompt

    def build_prompt(self, plan: "CommandPlan") -> str:
        directory = summarize_directory_for_prompt(plan.snapshot, plan.language)
        return build_decision_prompt(directory, self._system_prompt)

    async def __call__(self, plan: "CommandPlan") -> str:
        prompt = self.build_prompt(plan)
        return await asyncio.to_thread(self._llm.generate_with_prompt, plan.text, prompt)
