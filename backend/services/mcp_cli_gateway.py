"""
MCP CLI网关
把 list/add/remove/get 四个操作转换为外部CLI调用，并把文本输出转换为结构化结果
"""
from typing import List, Optional

from ..utils.logger import get_logger, log_cli_error
from .cli_output_parser import MCPOutputParser, GeminiTextOutputParser
from .cli_runner import CLIRunner
from .dto import MCPServerDescriptor, ToolResponse, CLIResult
from .errors import ValidationError, ToolExecutionError

logger = get_logger(__name__)

SUPPORTED_TRANSPORTS = ("stdio", "http", "sse")


class MCPCliGateway:
    """MCP CLI网关类"""

    def __init__(self, runner: CLIRunner, parser: Optional[MCPOutputParser] = None):
        """
        初始化网关

        Args:
            runner: 外部CLI调用器
            parser: 输出解析器，默认使用 GeminiTextOutputParser
        """
        self.runner = runner
        self.parser = parser or GeminiTextOutputParser()

    async def list_servers(self) -> ToolResponse:
        """列出外部CLI中配置的MCP Server"""
        result = await self._execute(["mcp", "list"], failure_status=500)
        servers = self.parser.parse_list(result.stdout)
        logger.info(f"MCP Server列表获取成功: count={len(servers)}")
        return ToolResponse(output=result.stdout, servers=servers)

    async def add_server(self, descriptor: MCPServerDescriptor) -> ToolResponse:
        """
        添加MCP Server

        Raises:
            ValidationError: 描述不完整
            ToolExecutionError: CLI退出码非零（400）
        """
        args = self.build_add_args(descriptor)
        result = await self._execute(args, failure_status=400)
        logger.info(f"MCP Server添加成功: name={descriptor.name}, type={descriptor.type}")
        return ToolResponse(
            output=result.stdout,
            message=f'MCP server "{descriptor.name}" added successfully',
        )

    async def remove_server(self, name: str) -> ToolResponse:
        """删除MCP Server"""
        self._validate_name(name)
        result = await self._execute(["mcp", "remove", name], failure_status=400)
        logger.info(f"MCP Server删除成功: name={name}")
        return ToolResponse(
            output=result.stdout,
            message=f'MCP server "{name}" removed successfully',
        )

    async def get_server(self, name: str) -> ToolResponse:
        """获取MCP Server详情，CLI失败时视为不存在（404）"""
        self._validate_name(name)
        result = await self._execute(["mcp", "get", name], failure_status=404)
        return ToolResponse(output=result.stdout, server=self.parser.parse_get(result.stdout))

    def build_add_args(self, descriptor: MCPServerDescriptor) -> List[str]:
        """
        根据传输类型构建 `mcp add` 参数列表

        stdio:    mcp add <name> [-e K=V]... <command> [args...]
        http/sse: mcp add --transport <type> <name> <url> [--header "K: V"]...
        """
        self._validate_name(descriptor.name)
        transport = descriptor.type or "stdio"
        if transport not in SUPPORTED_TRANSPORTS:
            raise ValidationError(f"Unsupported transport type: {transport}")

        args = ["mcp", "add"]
        if transport == "stdio":
            if not descriptor.command:
                raise ValidationError("Command is required for stdio servers")
            args.append(descriptor.name)
            for key, value in descriptor.env.items():
                args.extend(["-e", f"{key}={value}"])
            args.append(descriptor.command)
            args.extend(descriptor.args)
        else:
            if not descriptor.url:
                raise ValidationError(f"URL is required for {transport} servers")
            args.extend(["--transport", transport, descriptor.name, descriptor.url])
            for key, value in descriptor.headers.items():
                args.extend(["--header", f"{key}: {value}"])
        return args

    @staticmethod
    def _validate_name(name: Optional[str]):
        if not name or not name.strip():
            raise ValidationError("Server name is required")
        # 以 '-' 开头会被CLI当作选项解析
        if name.startswith("-"):
            raise ValidationError("Server name must not start with '-'")

    async def _execute(self, args: List[str], failure_status: int) -> CLIResult:
        # 进程无法启动时 runner 抛出的 ToolExecutionError 保持 500
        result = await self.runner.run(args)

        if not result.ok:
            error = ToolExecutionError(details=result.diagnostic, status_code=failure_status)
            log_cli_error(logger, args, result.returncode, result.stderr, error)
            raise error
        return result
