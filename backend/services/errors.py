"""
服务层异常定义
每个异常携带对应的HTTP状态码，由 main.py 中的异常处理器统一转换为JSON响应
"""
from typing import Any, Optional


class AppError(Exception):
    """服务层异常基类"""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Any = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """转换为响应体"""
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    """请求参数不合法"""
    status_code = 400
    default_message = "Invalid request"


class SetupAlreadyComplete(AppError):
    """单用户系统已完成初始化"""
    status_code = 403
    default_message = "User already exists. This is a single-user system."


class DuplicateUsername(AppError):
    """用户名已存在"""
    status_code = 409
    default_message = "Username already exists"


class InvalidCredentials(AppError):
    status_code = 401
    default_message = "Invalid username or password"


class MissingToken(AppError):
    status_code = 401
    default_message = "Access denied. No token provided."


class InvalidToken(AppError):
    status_code = 401
    default_message = "Invalid token"


class TokenExpired(AppError):
    status_code = 401
    default_message = "Token expired"


class ToolExecutionError(AppError):
    """
    外部CLI执行失败

    状态码由调用方按操作决定（list 500，add/remove 400，get 404）
    """
    status_code = 500
    default_message = "Gemini CLI command failed"


class InternalError(AppError):
    status_code = 500
    default_message = "Internal server error"
