"""
数据传输对象 (Data Transfer Objects)
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


class UserRecord(BaseModel):
    """用户记录（来自凭证存储）"""
    id: int
    username: str
    password_hash: str
    is_active: bool = True
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class TokenClaims(BaseModel):
    """令牌声明"""
    user_id: int
    username: str
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class MCPServerDescriptor(BaseModel):
    """MCP Server描述（由外部CLI持久化，本系统只做转发）"""
    name: Optional[str] = None
    type: str = "stdio"  # 'stdio', 'http' or 'sse'
    command: Optional[str] = None
    args: List[str] = Field(default_factory=list)
    url: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    env: Dict[str, str] = Field(default_factory=dict)


class MCPServerSummary(BaseModel):
    """`mcp list` 输出中的一行"""
    name: str
    type: str  # 'stdio', 'http' or 'sse'
    status: str  # 'active' or 'inactive'


class CLIResult(BaseModel):
    """外部CLI一次调用的结果"""
    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def diagnostic(self) -> str:
        """错误诊断输出：优先stderr，为空时使用stdout"""
        return self.stderr.strip() or self.stdout.strip()


class ChatMessage(BaseModel):
    """会话消息"""
    role: str  # 'user' or 'assistant'
    content: str
    timestamp: datetime


class ChatSession(BaseModel):
    """会话"""
    id: str
    project_path: str = ""
    project_name: str = ""
    messages: List[ChatMessage] = Field(default_factory=list)
    created_at: datetime
    last_activity: datetime


class SessionSummary(BaseModel):
    """项目会话列表项"""
    id: str
    summary: str
    message_count: int
    last_activity: datetime


class ToolResponse(BaseModel):
    """网关操作结果"""
    output: str
    message: Optional[str] = None
    servers: Optional[List[MCPServerSummary]] = None
    server: Optional[Dict[str, Any]] = None
