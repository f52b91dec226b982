"""
认证API路由
"""
from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from ..middleware.auth import authenticate_token, extract_bearer_token, get_auth_service
from ..services.auth_service import AuthService
from ..services.errors import AppError, InternalError
from ..utils.logger import get_logger
from ..utils.datetime_helper import to_iso_string

logger = get_logger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


# ============ Request/Response Models ============

class CredentialsRequest(BaseModel):
    """注册/登录请求（字段校验在服务层完成，缺失时返回400）"""
    username: Optional[str] = Field(None, description="用户名")
    password: Optional[str] = Field(None, description="密码")


class AuthUser(BaseModel):
    id: int
    username: str


class AuthResponse(BaseModel):
    """注册/登录响应"""
    success: bool
    user: AuthUser
    token: str


class StatusResponse(BaseModel):
    needsSetup: bool
    isAuthenticated: bool


# ============ API Endpoints ============

@router.get("/status", response_model=StatusResponse, status_code=status.HTTP_200_OK)
async def get_auth_status(req: Request, auth_service: AuthService = Depends(get_auth_service)):
    """
    获取认证状态（是否需要首次设置）
    """
    try:
        return auth_service.status(extract_bearer_token(req))
    except AppError:
        raise
    except Exception as e:
        logger.error(f"获取认证状态失败: {str(e)}", exc_info=True)
        raise InternalError()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_200_OK)
def register(request: CredentialsRequest, auth_service: AuthService = Depends(get_auth_service)):
    """
    注册唯一用户（仅在系统中没有用户时允许）
    """
    try:
        logger.info(f"收到注册请求: username={request.username}")
        result = auth_service.register(request.username, request.password)
        return AuthResponse(success=True, **result)
    except AppError as e:
        logger.info(f"注册失败: username={request.username}, reason={e.message}")
        raise
    except Exception as e:
        logger.error(f"注册失败: {str(e)}", exc_info=True)
        raise InternalError()


@router.post("/login", response_model=AuthResponse, status_code=status.HTTP_200_OK)
def login(request: CredentialsRequest, auth_service: AuthService = Depends(get_auth_service)):
    """
    用户登录
    """
    try:
        logger.info(f"收到登录请求: username={request.username}")
        result = auth_service.login(request.username, request.password)
        return AuthResponse(success=True, **result)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"登录失败: {str(e)}", exc_info=True)
        raise InternalError()


@router.get("/user", status_code=status.HTTP_200_OK)
async def get_user(user: dict = Depends(authenticate_token)):
    """
    获取当前用户
    """
    return {
        "user": {
            "id": user["id"],
            "username": user["username"],
            "created_at": to_iso_string(user.get("created_at")),
            "last_login": to_iso_string(user.get("last_login")),
        }
    }


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    user: dict = Depends(authenticate_token),
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    登出（令牌无状态，由客户端删除令牌）
    """
    logger.info(f"用户登出: username={user['username']}")
    return auth_service.logout()
