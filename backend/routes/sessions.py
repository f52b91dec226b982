"""
会话管理API路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from ..middleware.auth import authenticate_token
from ..services.chat_service import ChatService
from ..services.errors import AppError, InternalError
from ..services.session_registry import SessionRegistry
from ..utils.logger import get_logger
from ..utils.datetime_helper import to_iso_string

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["sessions"], dependencies=[Depends(authenticate_token)])


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.session_registry


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


# ============ Request/Response Models ============

class SessionListItem(BaseModel):
    """项目会话列表项"""
    id: str
    summary: str
    messageCount: int
    lastActivity: str


class SessionListResponse(BaseModel):
    sessions: List[SessionListItem]


class ChatRequest(BaseModel):
    """对话请求"""
    sessionId: Optional[str] = Field(None, description="会话ID")
    projectPath: Optional[str] = Field(None, description="项目路径")
    message: Optional[str] = Field(None, description="用户消息")


class ChatResponse(BaseModel):
    success: bool
    sessionId: str
    response: str


# ============ API Endpoints ============

@router.get("/projects/{project_name}/sessions", response_model=SessionListResponse, status_code=status.HTTP_200_OK)
async def list_project_sessions(project_name: str, registry: SessionRegistry = Depends(get_session_registry)):
    """
    获取项目下的会话列表（按最后活动时间倒序）
    """
    summaries = registry.list_project_sessions(project_name)
    logger.info(f"返回项目会话列表: project={project_name}, count={len(summaries)}")
    return SessionListResponse(sessions=[
        SessionListItem(
            id=item.id,
            summary=item.summary,
            messageCount=item.message_count,
            lastActivity=to_iso_string(item.last_activity),
        )
        for item in summaries
    ])


@router.get("/projects/{project_name}/sessions/{session_id}/messages", status_code=status.HTTP_200_OK)
async def get_session_messages(
    project_name: str,
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    """
    获取会话消息
    """
    messages = registry.render_transcript(session_id)
    logger.info(f"返回会话消息: project={project_name}, session_id={session_id}, count={len(messages)}")
    return {"messages": messages}


@router.post("/chat", response_model=ChatResponse, status_code=status.HTTP_200_OK)
async def chat(request: ChatRequest, chat_service: ChatService = Depends(get_chat_service)):
    """
    发送消息到外部CLI（带上会话历史）
    """
    try:
        logger.info(f"收到对话请求: session_id={request.sessionId}, project={request.projectPath}")
        result = await chat_service.send_message(request.sessionId, request.projectPath, request.message)
        return ChatResponse(success=True, **result)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"对话失败: {str(e)}", exc_info=True)
        raise InternalError("Failed to run chat command")
