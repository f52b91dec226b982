"""
外部CLI调用器测试（使用当前Python解释器作为外部命令）
"""
import shlex
import sys

import pytest

from backend.services.cli_runner import CLIRunner
from backend.services.errors import ToolExecutionError


@pytest.fixture
def python_runner():
    return CLIRunner(command=shlex.quote(sys.executable))


@pytest.mark.asyncio
async def test_captures_stdout_and_stderr(python_runner):
    script = "import sys; print('out'); print('err', file=sys.stderr)"

    result = await python_runner.run(["-c", script])

    assert result.ok
    assert result.stdout.strip() == "out"
    assert result.stderr.strip() == "err"
    assert result.args == ["-c", script]


@pytest.mark.asyncio
async def test_nonzero_exit_is_returned(python_runner):
    result = await python_runner.run(["-c", "import sys; sys.exit(3)"])

    assert result.returncode == 3
    assert not result.ok


@pytest.mark.asyncio
async def test_arguments_are_not_shell_expanded(python_runner):
    result = await python_runner.run(["-c", "import sys; print(sys.argv[1])", "$(whoami); echo hi"])

    assert result.stdout.strip() == "$(whoami); echo hi"


@pytest.mark.asyncio
async def test_cwd(python_runner, tmp_path):
    result = await python_runner.run(["-c", "import os; print(os.getcwd())"], cwd=str(tmp_path))

    assert result.stdout.strip() == str(tmp_path.resolve())


@pytest.mark.asyncio
async def test_missing_executable():
    runner = CLIRunner(command="definitely-not-a-real-cli-binary-12345")

    with pytest.raises(ToolExecutionError) as exc_info:
        await runner.run(["mcp", "list"])

    assert exc_info.value.message == "External CLI executable not found"
    assert "definitely-not" not in str(exc_info.value.to_dict())


@pytest.mark.asyncio
async def test_timeout():
    runner = CLIRunner(command=shlex.quote(sys.executable), timeout=0.5)

    with pytest.raises(ToolExecutionError, match="timed out"):
        await runner.run(["-c", "import time; time.sleep(10)"])


def test_command_from_environment(monkeypatch):
    monkeypatch.setenv("GEMINI_CLI_COMMAND", "node /opt/gemini/index.js")
    monkeypatch.delenv("GEMINI_CLI_TIMEOUT", raising=False)

    runner = CLIRunner()

    assert runner.base_command == ["node", "/opt/gemini/index.js"]
    assert runner.timeout is None
