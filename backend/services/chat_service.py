"""
对话转发服务
带上会话历史调用外部CLI，并把问答记录到会话注册表
"""
import os
from typing import Dict, Any, Optional

from ..utils.logger import get_logger, log_cli_error
from .cli_runner import CLIRunner
from .errors import ValidationError, ToolExecutionError
from .session_registry import SessionRegistry

logger = get_logger(__name__)


class ChatService:
    """对话转发服务类"""

    def __init__(self, runner: CLIRunner, registry: SessionRegistry):
        self.runner = runner
        self.registry = registry

    async def send_message(self, session_id: str, project_path: Optional[str], message: str) -> Dict[str, Any]:
        """
        发送一条用户消息

        Args:
            session_id: 会话ID
            project_path: 项目路径，存在时作为CLI工作目录
            message: 用户消息

        Returns:
            {"sessionId", "response"}
        """
        if not session_id:
            raise ValidationError("Session id is required")
        if not message or not message.strip():
            raise ValidationError("Message is required")

        if self.registry.get_session(session_id) is None:
            self.registry.create_session(session_id, project_path or "")

        # 本轮提问在CLI成功后才记录，失败重试时不会重复
        prompt = self.registry.build_context_prefix(session_id, pending_message=message)

        cwd = project_path if project_path and os.path.isdir(project_path) else None
        args = ["--prompt", prompt]
        result = await self.runner.run(args, cwd=cwd)

        if not result.ok:
            error = ToolExecutionError(details=result.diagnostic)
            # 提示词可能很长，日志中只保留选项名
            log_cli_error(logger, ["--prompt", "<prompt>"], result.returncode, result.stderr, error)
            raise error

        response = result.stdout.strip()
        self.registry.append_message(session_id, "user", message)
        self.registry.append_message(session_id, "assistant", response)
        logger.info(f"对话完成: session_id={session_id}, response_length={len(response)}")
        return {"sessionId": session_id, "response": response}
