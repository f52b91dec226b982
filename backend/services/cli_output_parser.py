"""
MCP命令输出解析器

外部CLI的 `mcp list` / `mcp get` 只有面向人类阅读的文本输出，
这里的解析是尽力而为的文本抓取，输出格式在CLI版本之间不保证稳定。
网关只依赖 MCPOutputParser 接口，CLI提供结构化输出后替换实现即可。
"""
import json
import re
from abc import ABC, abstractmethod
from typing import Dict, Any, List

from ..utils.logger import get_logger
from .dto import MCPServerSummary

logger = get_logger(__name__)

ANSI_ESCAPE_PATTERN = re.compile(r"\x1b\[[0-9;]*m")
STATUS_GLYPH_PATTERN = re.compile(r"^[✗✓]\s*")
JSON_BLOCK_PATTERN = re.compile(r"\{[\s\S]*\}")

ACTIVE_GLYPH = "✓"
BANNER_MARKERS = ("Configured MCP servers", "Loaded cached credentials")
DETAIL_LABELS = (
    ("Name:", "name"),
    ("Type:", "type"),
    ("Command:", "command"),
    ("URL:", "url"),
)


def strip_ansi(text: str) -> str:
    """移除终端颜色转义序列"""
    return ANSI_ESCAPE_PATTERN.sub("", text)


class MCPOutputParser(ABC):
    """MCP命令输出解析器基类"""

    @abstractmethod
    def parse_list(self, output: str) -> List[MCPServerSummary]:
        """
        解析 `mcp list` 输出

        Args:
            output: CLI标准输出

        Returns:
            MCP Server摘要列表
        """
        pass

    @abstractmethod
    def parse_get(self, output: str) -> Dict[str, Any]:
        """
        解析 `mcp get <name>` 输出

        解析失败时不抛出异常，原始文本放在 raw_output 字段

        Args:
            output: CLI标准输出

        Returns:
            Server详情字典
        """
        pass


class GeminiTextOutputParser(MCPOutputParser):
    """Gemini CLI 文本输出解析器"""

    def parse_list(self, output: str) -> List[MCPServerSummary]:
        servers = []
        lines = [line for line in strip_ansi(output).split("\n") if line.strip()]

        for line in lines:
            if any(marker in line for marker in BANNER_MARKERS):
                continue

            if ":" not in line:
                continue

            raw_name, rest = line.split(":", 1)
            name = STATUS_GLYPH_PATTERN.sub("", raw_name.strip()).strip()
            if not name:
                continue

            servers.append(MCPServerSummary(
                name=name,
                type=self._infer_transport(rest.strip()),
                status="active" if ACTIVE_GLYPH in line else "inactive",
            ))

        logger.debug(f"解析MCP Server列表: count={len(servers)}")
        return servers

    def parse_get(self, output: str) -> Dict[str, Any]:
        match = JSON_BLOCK_PATTERN.search(output)
        if match:
            try:
                return json.loads(match.group(0))
            except json.JSONDecodeError as e:
                logger.warning(f"MCP Server详情中的JSON无法解析: {e}")
                return {"raw_output": output, "parse_error": str(e)}

        server: Dict[str, Any] = {"raw_output": output}
        for line in strip_ansi(output).split("\n"):
            for label, field in DETAIL_LABELS:
                if line.strip().startswith(label):
                    server[field] = line.split(":", 1)[1].strip()
                    break
        return server

    @staticmethod
    def _infer_transport(rest: str) -> str:
        if "(SSE)" in rest or "(sse)" in rest:
            return "sse"
        if "(HTTP)" in rest or "(http)" in rest or rest.startswith("http"):
            return "http"
        return "stdio"
