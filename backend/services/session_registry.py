"""
会话注册表
内存中维护会话，启动时从外部CLI的会话文件目录重建（只读，不回写）
"""
import json
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional, Any

from ..utils.logger import get_logger
from ..utils.datetime_helper import utc_now, parse_iso_datetime, to_iso_string
from .dto import ChatMessage, ChatSession, SessionSummary

logger = get_logger(__name__)

SUMMARY_MAX_LENGTH = 50
EMPTY_SESSION_SUMMARY = "New Session"
TRANSCRIPT_DIR_NAME = "chats"
# CLI会话文件中的消息类型 -> 角色
MESSAGE_TYPE_ROLES = {
    "user": "user",
    "gemini": "assistant",
}


def project_name_from_path(project_path: str) -> str:
    """取路径最后一段作为项目名"""
    if not project_path:
        return ""
    return os.path.basename(project_path.rstrip("/\\"))


class SessionRegistry:
    """会话注册表类"""

    def __init__(self, base_dir: Optional[str] = None):
        """
        初始化会话注册表

        Args:
            base_dir: 会话文件根目录，如果为None则从环境变量GEMINI_SESSIONS_DIR读取，
                      默认 ~/.gemini/tmp
        """
        if base_dir is None:
            base_dir = os.getenv("GEMINI_SESSIONS_DIR", str(Path.home() / ".gemini" / "tmp"))
        self.base_dir = Path(base_dir).expanduser()
        self._sessions: Dict[str, ChatSession] = {}
        self._lock = threading.RLock()

    def create_session(self, session_id: str, project_path: str) -> ChatSession:
        """创建空会话，已存在时直接覆盖"""
        now = utc_now()
        session = ChatSession(
            id=session_id,
            project_path=project_path or "",
            project_name=project_name_from_path(project_path),
            created_at=now,
            last_activity=now,
        )
        with self._lock:
            self._sessions[session_id] = session
        logger.debug(f"创建会话: session_id={session_id}, project={session.project_name}")
        return session

    def append_message(self, session_id: str, role: str, content: str) -> ChatSession:
        """追加消息，会话不存在时先以空项目路径创建"""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = self.create_session(session_id, "")
            now = utc_now()
            session.messages.append(ChatMessage(role=role, content=content, timestamp=now))
            session.last_activity = now
            return session

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def list_project_sessions(self, project_path: str) -> List[SessionSummary]:
        """
        列出项目下的会话，按最后活动时间倒序

        Args:
            project_path: 项目路径（只比较最后一段）

        Returns:
            会话摘要列表
        """
        project_name = project_name_from_path(project_path)
        with self._lock:
            summaries = [
                SessionSummary(
                    id=session.id,
                    summary=self.summarize(session),
                    message_count=len(session.messages),
                    last_activity=session.last_activity,
                )
                for session in self._sessions.values()
                if session.project_name == project_name
            ]
        summaries.sort(key=lambda item: item.last_activity, reverse=True)
        return summaries

    @staticmethod
    def summarize(session: ChatSession) -> str:
        """第一条用户消息（超过50字符截断），没有时返回占位文本"""
        for message in session.messages:
            if message.role == "user":
                text = message.content
                if len(text) > SUMMARY_MAX_LENGTH:
                    return text[:SUMMARY_MAX_LENGTH] + "..."
                return text
        return EMPTY_SESSION_SUMMARY

    def load_from_disk(self) -> int:
        """
        扫描 <base_dir>/<project>/chats/*.json 重建会话

        缺失或无法读取的目录、格式错误的文件都会被跳过

        Returns:
            加载的会话数量
        """
        loaded = 0
        try:
            if not self.base_dir.is_dir():
                logger.info(f"会话目录不存在，跳过加载: {self.base_dir}")
                return 0
            project_dirs = sorted(self.base_dir.iterdir())
        except OSError as e:
            logger.warning(f"无法读取会话目录: {e}")
            return 0

        for project_dir in project_dirs:
            chats_dir = project_dir / TRANSCRIPT_DIR_NAME
            try:
                if not chats_dir.is_dir():
                    continue
                files = sorted(chats_dir.glob("*.json"))
            except OSError as e:
                logger.debug(f"跳过无法读取的项目目录: {project_dir.name}, error={e}")
                continue

            for file_path in files:
                try:
                    session = self._read_transcript(file_path, project_dir.name)
                except (TypeError, ValueError) as e:
                    logger.warning(f"跳过无法重建的会话文件: {file_path.name}, error={e}")
                    continue
                if session is None:
                    continue
                with self._lock:
                    self._sessions[session.id] = session
                loaded += 1

        logger.info(f"从磁盘加载会话完成: count={loaded}, base_dir={self.base_dir}")
        return loaded

    def _read_transcript(self, file_path: Path, project_name: str) -> Optional[ChatSession]:
        try:
            data = json.loads(file_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"跳过无法解析的会话文件: {file_path.name}, error={e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"跳过格式错误的会话文件: {file_path.name}")
            return None

        created_at = parse_iso_datetime(data.get("startTime")) or utc_now()
        last_activity = parse_iso_datetime(data.get("lastUpdated")) or created_at

        raw_messages = data.get("messages") or []
        if not isinstance(raw_messages, list):
            logger.warning(f"跳过格式错误的会话文件: {file_path.name}, messages 不是列表")
            return None

        messages = []
        for item in raw_messages:
            if not isinstance(item, dict):
                continue
            role = MESSAGE_TYPE_ROLES.get(item.get("type"))
            if role is None:
                continue
            messages.append(ChatMessage(
                role=role,
                content=self._flatten_content(item.get("content")),
                timestamp=parse_iso_datetime(item.get("timestamp")) or last_activity,
            ))

        return ChatSession(
            id=str(data.get("sessionId") or file_path.stem),
            project_path="",
            project_name=project_name,
            messages=messages,
            created_at=created_at,
            last_activity=last_activity,
        )

    @staticmethod
    def _flatten_content(content: Any) -> str:
        """结构化内容块按换行拼接为文本"""
        if isinstance(content, list):
            parts = []
            for block in content:
                if isinstance(block, dict):
                    parts.append(str(block.get("text") or ""))
                else:
                    parts.append(str(block))
            return "\n".join(parts)
        if content is None:
            return ""
        return str(content)

    def render_transcript(self, session_id: str) -> List[Dict[str, Any]]:
        """会话消息的只读视图，用于API响应"""
        session = self.get_session(session_id)
        if session is None:
            return []
        return [
            {
                "type": "message",
                "message": {"role": message.role, "content": message.content},
                "timestamp": to_iso_string(message.timestamp),
            }
            for message in session.messages
        ]

    def build_context_prefix(self, session_id: str, pending_message: Optional[str] = None) -> str:
        """
        把历史消息拼接为下一次CLI调用的上下文前缀

        外部CLI在两次调用之间不保留状态，需要由调用方带上历史对话

        Args:
            session_id: 会话ID
            pending_message: 尚未记录的本轮用户消息，拼接在历史之后
        """
        session = self.get_session(session_id)
        history = session.messages if session is not None else []

        turns = [
            f"{'User' if message.role == 'user' else 'Assistant'}: {message.content}"
            for message in history
        ]
        if pending_message is not None:
            turns.append(f"User: {pending_message}")
        if not turns:
            return ""
        return "\n\n".join(turns) + "\n\nAssistant: "
