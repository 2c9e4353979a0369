"""
MCP Server exposing the home-control command operations.

The tools wrap pure functions and hold no state between calls.
Run with: python src/mcp_server.py
"""
from __future__ import annotations

import logging
import os
from typing import Any

import uvicorn
from mcp.server.fastmcp import FastMCP

from command_parser.splitter import detect_multi_command, split_command as split_text
from command_parser.validator import validate_envelope
from home_control.appliances import category_group, identify_category
from home_control.config import PipelineConfig
from home_control.demo_data import build_demo_snapshot
from home_control.extractor import extract_entities as extract_text_entities
from home_control.matcher import match_sync
from home_control.models import InvalidCommandInput
from home_control.pipeline import check_command_text, run_command
from home_control.status import answer_status_query
from home_control.vocabulary import resolve_language

logger = logging.getLogger(__name__)

# 创建 MCP 服务器实例
mcp = FastMCP("home-control")


@mcp.tool()
def match_room(query: str, candidates: list[str], language: str = "en") -> dict[str, Any]:
    """将房间说法匹配到候选房间名（精确、别名、模糊三层）。

    Args:
        query: 用户说法，如 "trädgården"
        candidates: 目录中的房间名
        language: 语言代码
    """
    result = match_sync(query, candidates, language)
    return {
        "query": result.query,
        "match": result.resolved,
        "confidence": result.confidence,
        "method": result.method,
        "language": result.language,
    }


@mcp.tool()
def extract_entities(text: str, language: str = "en") -> dict[str, Any]:
    """抽取命令中的房间、动作与设备类型。"""
    result = extract_text_entities(text, language)
    return {
        "language": result.language,
        "rooms": [mention.canonical for mention in result.rooms],
        "actions": [mention.canonical for mention in result.actions],
        "device_types": [mention.canonical for mention in result.device_types],
        "matched_languages": dict(result.matched_languages),
    }


@mcp.tool()
def split_command(text: str, language: str = "en") -> dict[str, Any]:
    """检测并拆分多命令文本。"""
    is_multi = detect_multi_command(text, language)
    segments = split_text(text, language) if is_multi else [text.strip()]
    return {"is_multi_command": is_multi and len(segments) > 1, "segments": segments}


@mcp.tool()
def validate_command(command: dict[str, Any]) -> dict[str, Any]:
    """校验命令对象，返回规整后的命令或 {"error": ...}。"""
    result = validate_envelope(command)
    return {"valid": result.valid, "result": result.to_dict()}


@mcp.tool()
def identify_appliance(device_name: str, language: str = "en") -> dict[str, Any]:
    """根据插座名称推断所接电器及其分组。"""
    key = identify_category(device_name, resolve_language(language))
    return {"appliance": key, "category": category_group(key) if key else None}


@mcp.tool()
async def run_demo_command(text: str, language: str = "en") -> str:
    """在演示家庭目录上执行命令，返回报告字符串。

    每次调用读取 HOME_CONTROL_* 环境变量作为管线配置。
    """
    config = PipelineConfig.from_env()
    try:
        result = await run_command(text, build_demo_snapshot(), language, config=config)
    except InvalidCommandInput as exc:
        return f"❌ {exc}"
    return result.reply


@mcp.tool()
async def query_demo_status(text: str, language: str = "en") -> str:
    """回答演示家庭目录上的状态问句（只读），如 "is the kitchen light on?"。"""
    config = PipelineConfig.from_env()
    try:
        check_command_text(text, config)
    except InvalidCommandInput as exc:
        return f"❌ {exc}"
    report = await answer_status_query(text, build_demo_snapshot(), language, config=config)
    return report.text


def main():
    app = mcp.streamable_http_app()
    host = os.getenv("MCP_HOST", "0.0.0.0")
    port = int(os.getenv("MCP_PORT", "8002"))
    logger.info("mcp_server_start host=%s port=%d", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main()
