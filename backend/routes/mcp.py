"""
MCP Server管理API路由
通过外部CLI管理MCP Server配置
"""
from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from ..middleware.auth import authenticate_token
from ..services.dto import MCPServerDescriptor, MCPServerSummary
from ..services.errors import AppError, InternalError
from ..services.mcp_cli_gateway import MCPCliGateway
from ..utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(
    prefix="/api/mcp",
    tags=["mcp"],
    dependencies=[Depends(authenticate_token)],
)


def get_mcp_gateway(request: Request) -> MCPCliGateway:
    return request.app.state.mcp_gateway


# ============ Request/Response Models ============

class AddMCPServerRequest(BaseModel):
    """添加MCP Server请求"""
    name: Optional[str] = Field(None, description="MCP Server名称")
    type: str = Field("stdio", description="传输类型（stdio, http, sse）")
    command: Optional[str] = Field(None, description="stdio命令")
    args: List[str] = Field(default_factory=list, description="stdio命令参数")
    url: Optional[str] = Field(None, description="http/sse地址")
    headers: Dict[str, str] = Field(default_factory=dict, description="http/sse请求头")
    env: Dict[str, str] = Field(default_factory=dict, description="stdio环境变量")


class ListServersResponse(BaseModel):
    success: bool
    output: str
    servers: List[MCPServerSummary]


class CommandResponse(BaseModel):
    success: bool
    output: str
    message: str


class GetServerResponse(BaseModel):
    success: bool
    output: str
    server: dict


# ============ API Endpoints ============

@router.get("/cli/list", response_model=ListServersResponse, status_code=status.HTTP_200_OK)
async def list_mcp_servers(gateway: MCPCliGateway = Depends(get_mcp_gateway)):
    """
    列出MCP Server
    """
    try:
        logger.info("收到获取MCP Server列表请求")
        result = await gateway.list_servers()
        return ListServersResponse(success=True, output=result.output, servers=result.servers)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"获取MCP Server列表失败: {str(e)}", exc_info=True)
        raise InternalError("Failed to list MCP servers")


@router.post("/cli/add", response_model=CommandResponse, status_code=status.HTTP_200_OK)
async def add_mcp_server(request: AddMCPServerRequest, gateway: MCPCliGateway = Depends(get_mcp_gateway)):
    """
    添加MCP Server
    """
    try:
        logger.info(f"收到添加MCP Server请求: name={request.name}, type={request.type}")
        descriptor = MCPServerDescriptor(**request.model_dump())
        result = await gateway.add_server(descriptor)
        return CommandResponse(success=True, output=result.output, message=result.message)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"添加MCP Server失败: {str(e)}", exc_info=True)
        raise InternalError("Failed to add MCP server")


@router.delete("/cli/remove/{name}", response_model=CommandResponse, status_code=status.HTTP_200_OK)
async def remove_mcp_server(name: str, gateway: MCPCliGateway = Depends(get_mcp_gateway)):
    """
    删除MCP Server
    """
    try:
        logger.info(f"收到删除MCP Server请求: name={name}")
        result = await gateway.remove_server(name)
        return CommandResponse(success=True, output=result.output, message=result.message)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"删除MCP Server失败: {str(e)}", exc_info=True)
        raise InternalError("Failed to remove MCP server")


@router.get("/cli/get/{name}", response_model=GetServerResponse, status_code=status.HTTP_200_OK)
async def get_mcp_server(name: str, gateway: MCPCliGateway = Depends(get_mcp_gateway)):
    """
    获取MCP Server详情
    """
    try:
        logger.info(f"收到获取MCP Server详情请求: name={name}")
        result = await gateway.get_server(name)
        return GetServerResponse(success=True, output=result.output, server=result.server)
    except AppError:
        raise
    except Exception as e:
        logger.error(f"获取MCP Server详情失败: {str(e)}", exc_info=True)
        raise InternalError("Failed to get MCP server details")
