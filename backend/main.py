"""
Gemini CLI UI - 后端主入口
"""
import sys
from pathlib import Path
from contextlib import asynccontextmanager
from typing import Optional

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
import os

from backend.database import Database, init_database
from backend.utils.logger import setup_logger
from backend.middleware import RequestLogMiddleware
from backend.services import (
    AppError,
    UserStore,
    AuthService,
    CLIRunner,
    MCPCliGateway,
    SessionRegistry,
    ChatService,
)
from backend.routes import auth_router, mcp_router, sessions_router

# 加载环境变量
load_dotenv()

# 初始化日志
logger = setup_logger()

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"


def create_app(
    database: Optional[Database] = None,
    session_registry: Optional[SessionRegistry] = None,
    cli_runner: Optional[CLIRunner] = None,
    auth_service: Optional[AuthService] = None,
) -> FastAPI:
    """
    创建应用，组件实例挂在 app.state 上，由路由通过依赖注入获取

    Args:
        database: 数据库实例（默认按环境变量创建）
        session_registry: 会话注册表（默认按环境变量创建）
        cli_runner: 外部CLI调用器（默认按环境变量创建）
        auth_service: 认证服务（默认基于 database 创建）
    """
    database = database or Database()
    session_registry = session_registry or SessionRegistry()
    cli_runner = cli_runner or CLIRunner()
    auth_service = auth_service or AuthService(UserStore(database))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        worker_id = os.getpid()
        logger.info(f"Worker {worker_id} 正在启动...")

        try:
            init_database(database)
        except Exception as e:
            logger.error(f"Worker {worker_id} 数据库初始化失败: {e}", exc_info=True)
            raise

        loaded = session_registry.load_from_disk()
        logger.info(f"Worker {worker_id} 启动完成，已加载会话: {loaded}")

        yield

        logger.info(f"Worker {worker_id} 正在关闭...")
        database.dispose()

    app = FastAPI(
        title="Gemini CLI UI API",
        description="Gemini CLI 聊天界面后端：单用户认证、MCP Server管理和会话记录",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.database = database
    app.state.auth_service = auth_service
    app.state.session_registry = session_registry
    app.state.mcp_gateway = MCPCliGateway(cli_runner)
    app.state.chat_service = ChatService(cli_runner, session_registry)

    # 注册路由
    app.include_router(auth_router)
    app.include_router(mcp_router)
    app.include_router(sessions_router)

    # === EXCEPTION HANDLERS ===

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg")}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request body", "details": errors},
        )

    # === MIDDLEWARE REGISTRATION ===

    app.add_middleware(RequestLogMiddleware)

    cors_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
        if origin.strip()
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        return {"message": "Gemini CLI UI API", "status": "running"}

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    host = os.getenv("BACKEND_HOST", "0.0.0.0")
    port = int(os.getenv("BACKEND_PORT", 8000))
    workers = int(os.getenv("BACKEND_WORKERS", 1))
    log_level = os.getenv("LOG_LEVEL", "info").lower()

    logger.info(f"启动服务器: {host}:{port}, workers={workers}, log_level={log_level}")

    # 会话注册表在进程内存中，多 worker 时各自独立加载
    if workers > 1:
        uvicorn.run(
            "backend.main:app",
            host=host,
            port=port,
            workers=workers,
            log_level=log_level,
            access_log=log_level == "debug"
        )
    else:
        uvicorn.run(
            "backend.main:app",
            host=host,
            port=port,
            log_level=log_level,
            access_log=log_level == "debug",
            reload=True
        )
