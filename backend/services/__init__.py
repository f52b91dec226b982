"""
服务层包
"""
from .errors import (
    AppError,
    ValidationError,
    SetupAlreadyComplete,
    DuplicateUsername,
    InvalidCredentials,
    MissingToken,
    InvalidToken,
    TokenExpired,
    ToolExecutionError,
    InternalError,
)
from .user_store import UserStore
from .auth_service import AuthService
from .cli_runner import CLIRunner
from .cli_output_parser import MCPOutputParser, GeminiTextOutputParser
from .mcp_cli_gateway import MCPCliGateway
from .session_registry import SessionRegistry
from .chat_service import ChatService
from .dto import (
    UserRecord,
    TokenClaims,
    MCPServerDescriptor,
    MCPServerSummary,
    CLIResult,
    ChatMessage,
    ChatSession,
    SessionSummary,
    ToolResponse,
)

__all__ = [
    "AppError",
    "ValidationError",
    "SetupAlreadyComplete",
    "DuplicateUsername",
    "InvalidCredentials",
    "MissingToken",
    "InvalidToken",
    "TokenExpired",
    "ToolExecutionError",
    "InternalError",
    "UserStore",
    "AuthService",
    "CLIRunner",
    "MCPOutputParser",
    "GeminiTextOutputParser",
    "MCPCliGateway",
    "SessionRegistry",
    "ChatService",
    "UserRecord",
    "TokenClaims",
    "MCPServerDescriptor",
    "MCPServerSummary",
    "CLIResult",
    "ChatMessage",
    "ChatSession",
    "SessionSummary",
    "ToolResponse",
]
