"""
MCP CLI网关测试
"""
import pytest

from backend.services.dto import MCPServerDescriptor
from backend.services.errors import ValidationError, ToolExecutionError
from backend.services.mcp_cli_gateway import MCPCliGateway


@pytest.fixture
def gateway(mock_runner):
    return MCPCliGateway(mock_runner)


@pytest.mark.asyncio
async def test_list_servers(gateway, mock_runner, cli_result):
    """列出MCP Server"""
    stdout = "Configured MCP servers:\n\n✓ my-server: (HTTP) https://x\n✗ other: /usr/bin/foo\n"
    mock_runner.run.return_value = cli_result(stdout=stdout)

    result = await gateway.list_servers()

    mock_runner.run.assert_awaited_once_with(["mcp", "list"])
    assert result.output == stdout
    assert [s.name for s in result.servers] == ["my-server", "other"]


@pytest.mark.asyncio
async def test_list_servers_failure(gateway, mock_runner, cli_result):
    """非零退出码返回500并携带stderr"""
    mock_runner.run.return_value = cli_result(stderr="boom", returncode=1)

    with pytest.raises(ToolExecutionError) as exc_info:
        await gateway.list_servers()

    assert exc_info.value.status_code == 500
    assert exc_info.value.details == "boom"


@pytest.mark.asyncio
async def test_add_stdio_server(gateway, mock_runner, cli_result):
    """stdio: name, -e 环境变量, command, 参数"""
    descriptor = MCPServerDescriptor(
        name="fs",
        type="stdio",
        command="npx",
        args=["-y", "@modelcontextprotocol/server-filesystem", "/tmp"],
        env={"DEBUG": "1"},
    )
    mock_runner.run.return_value = cli_result(stdout="added")

    result = await gateway.add_server(descriptor)

    mock_runner.run.assert_awaited_once_with([
        "mcp", "add", "fs", "-e", "DEBUG=1", "npx",
        "-y", "@modelcontextprotocol/server-filesystem", "/tmp",
    ])
    assert result.output == "added"
    assert result.message == 'MCP server "fs" added successfully'


@pytest.mark.asyncio
@pytest.mark.parametrize("transport", ["http", "sse"])
async def test_add_remote_server(gateway, mock_runner, transport):
    """http/sse: --transport, name, url, --header"""
    descriptor = MCPServerDescriptor(
        name="remote",
        type=transport,
        url="https://example.com/mcp",
        headers={"Authorization": "Bearer abc"},
    )

    await gateway.add_server(descriptor)

    mock_runner.run.assert_awaited_once_with([
        "mcp", "add", "--transport", transport, "remote", "https://example.com/mcp",
        "--header", "Authorization: Bearer abc",
    ])


def test_shell_metacharacters_stay_single_arguments(gateway):
    """参数逐个传递，特殊字符不会被拆分"""
    descriptor = MCPServerDescriptor(name="evil", command="echo", args=["a'; rm -rf / #", "$(whoami)"])

    args = gateway.build_add_args(descriptor)

    assert args[-2:] == ["a'; rm -rf / #", "$(whoami)"]


@pytest.mark.parametrize("descriptor,match", [
    (MCPServerDescriptor(type="stdio", command="npx"), "name is required"),
    (MCPServerDescriptor(name="-x", command="npx"), "must not start"),
    (MCPServerDescriptor(name="fs", type="websocket", url="ws://x"), "Unsupported transport"),
    (MCPServerDescriptor(name="fs", type="stdio"), "Command is required"),
    (MCPServerDescriptor(name="remote", type="http"), "URL is required"),
])
def test_add_validation(gateway, descriptor, match):
    with pytest.raises(ValidationError, match=match):
        gateway.build_add_args(descriptor)


@pytest.mark.asyncio
async def test_add_failure_is_client_error(gateway, mock_runner, cli_result):
    mock_runner.run.return_value = cli_result(stdout="already exists", returncode=1)

    with pytest.raises(ToolExecutionError) as exc_info:
        await gateway.add_server(MCPServerDescriptor(name="fs", command="npx"))

    assert exc_info.value.status_code == 400
    assert exc_info.value.details == "already exists"


@pytest.mark.asyncio
async def test_remove_server(gateway, mock_runner):
    result = await gateway.remove_server("fs")

    mock_runner.run.assert_awaited_once_with(["mcp", "remove", "fs"])
    assert result.message == 'MCP server "fs" removed successfully'


@pytest.mark.asyncio
async def test_remove_failure(gateway, mock_runner, cli_result):
    mock_runner.run.return_value = cli_result(stderr="not found", returncode=1)

    with pytest.raises(ToolExecutionError) as exc_info:
        await gateway.remove_server("fs")

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_get_server(gateway, mock_runner, cli_result):
    mock_runner.run.return_value = cli_result(stdout="Name: fs\nCommand: npx\n")

    result = await gateway.get_server("fs")

    mock_runner.run.assert_awaited_once_with(["mcp", "get", "fs"])
    assert result.server["name"] == "fs"
    assert result.server["command"] == "npx"


@pytest.mark.asyncio
async def test_get_server_not_found(gateway, mock_runner, cli_result):
    mock_runner.run.return_value = cli_result(stderr="Server fs not found", returncode=1)

    with pytest.raises(ToolExecutionError) as exc_info:
        await gateway.get_server("fs")

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_runner_error_stays_internal(gateway, mock_runner):
    """可执行文件不存在属于服务端错误"""
    mock_runner.run.side_effect = ToolExecutionError("External CLI executable not found")

    with pytest.raises(ToolExecutionError) as exc_info:
        await gateway.remove_server("fs")

    assert exc_info.value.status_code == 500
