"""
数据库初始化和连接管理
"""
import os
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session as SQLAlchemySession
from sqlalchemy.pool import QueuePool
from contextlib import contextmanager
from typing import Generator

from .models.base import Base
from .models import User  # noqa: F401  注册表结构
from .utils.logger import get_logger

logger = get_logger(__name__)


class Database:
    """数据库管理类"""

    def __init__(self, db_url: str = None):
        """
        初始化数据库连接

        Args:
            db_url: 数据库URL，如果为None则从环境变量读取
        """
        if db_url is None:
            # database.py 位于 <repo>/backend/
            project_root = Path(__file__).resolve().parent.parent
            default_db_path = project_root / "data" / "geminicliui_auth.db"

            db_path = os.getenv("AUTH_DB_PATH", str(default_db_path))
            os.makedirs(os.path.dirname(db_path), exist_ok=True)
            db_url = f"sqlite:///{db_path}"

        pool_config = {
            "poolclass": QueuePool,
            "pool_size": 5,
            "max_overflow": 10,
            "pool_timeout": 30,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
            "echo": False,
        }

        # SQLite特殊配置
        if db_url.startswith("sqlite"):
            pool_config["connect_args"] = {"check_same_thread": False}

        self.db_url = db_url
        self.engine = create_engine(db_url, **pool_config)

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            expire_on_commit=False  # 提交后不过期对象，便于在会话外读取
        )

    def create_tables(self):
        """创建所有表（已存在的表保持不变）"""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self):
        """删除所有表（谨慎使用）"""
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self):
        """释放连接池"""
        self.engine.dispose()

    @contextmanager
    def get_session(self) -> Generator[SQLAlchemySession, None, None]:
        """
        获取数据库会话的上下文管理器

        Yields:
            SQLAlchemy会话对象
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def init_database(database: Database):
    """初始化数据库（创建所有表）"""
    database.create_tables()
    logger.info(f"数据库初始化完成: {database.engine.url.render_as_string(hide_password=True)}")


if __name__ == "__main__":
    # 直接运行此脚本时初始化数据库
    init_database(Database())
