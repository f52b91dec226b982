"""
外部CLI调用器
以参数数组方式启动外部CLI进程（不经过shell），捕获stdout/stderr
"""
import asyncio
import os
import shlex
from typing import List, Optional

from ..utils.logger import get_logger
from .dto import CLIResult
from .errors import ToolExecutionError

logger = get_logger(__name__)


class CLIRunner:
    """外部CLI调用器类"""

    def __init__(self, command: Optional[str] = None, timeout: Optional[float] = None):
        """
        初始化调用器

        Args:
            command: CLI命令（可包含前置参数，如 "node /path/to/index.js"），
                     如果为None则从环境变量GEMINI_CLI_COMMAND读取，默认 "gemini"
            timeout: 超时时间（秒），如果为None则从环境变量GEMINI_CLI_TIMEOUT读取，
                     未设置时一直等待进程退出
        """
        if command is None:
            command = os.getenv("GEMINI_CLI_COMMAND", "gemini")
        self.base_command = shlex.split(command)
        if not self.base_command:
            raise ValueError("GEMINI_CLI_COMMAND 不能为空")

        if timeout is None:
            timeout_env = os.getenv("GEMINI_CLI_TIMEOUT")
            timeout = float(timeout_env) if timeout_env else None
        self.timeout = timeout

    async def run(self, args: List[str], cwd: Optional[str] = None) -> CLIResult:
        """
        执行一次CLI调用

        Args:
            args: 参数列表，每个元素作为独立的进程参数传递
            cwd: 工作目录（可选）

        Returns:
            CLIResult（非零退出码不会抛出异常，由调用方判断）

        Raises:
            ToolExecutionError: 可执行文件不存在或超时
        """
        argv = [*self.base_command, *[str(arg) for arg in args]]
        logger.debug(f"执行外部CLI: args={args}, cwd={cwd}")

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=cwd,
            )
        except FileNotFoundError:
            logger.error(f"外部CLI可执行文件不存在: {self.base_command[0]}")
            raise ToolExecutionError("External CLI executable not found")
        except PermissionError:
            logger.error(f"外部CLI可执行文件无执行权限: {self.base_command[0]}")
            raise ToolExecutionError("External CLI executable is not runnable")

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.error(f"外部CLI执行超时: args={args}, timeout={self.timeout}s")
            raise ToolExecutionError("External CLI command timed out", details=f"Timed out after {self.timeout}s")

        result = CLIResult(
            args=list(args),
            returncode=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        logger.debug(f"外部CLI退出: args={args}, returncode={result.returncode}")
        return result
