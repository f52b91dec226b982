"""
测试公共夹具
"""
import sys
from pathlib import Path
from unittest.mock import Mock, AsyncMock

import pytest

# 添加项目根目录到Python路径
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from backend.database import Database
from backend.services.auth_service import AuthService
from backend.services.cli_runner import CLIRunner
from backend.services.dto import CLIResult
from backend.services.session_registry import SessionRegistry
from backend.services.user_store import UserStore


def make_cli_result(stdout: str = "", stderr: str = "", returncode: int = 0, args=None) -> CLIResult:
    """构造CLI调用结果"""
    return CLIResult(args=args or [], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def database(tmp_path):
    """每个测试使用独立的SQLite文件"""
    db = Database(f"sqlite:///{tmp_path / 'auth_test.db'}")
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def user_store(database):
    return UserStore(database)


@pytest.fixture
def auth_service(user_store):
    """低成本因子的认证服务，加快测试"""
    return AuthService(user_store, secret_key="test-secret", expire_hours=1, bcrypt_rounds=4)


@pytest.fixture
def sessions_dir(tmp_path):
    path = tmp_path / "gemini_tmp"
    path.mkdir()
    return path


@pytest.fixture
def session_registry(sessions_dir):
    return SessionRegistry(base_dir=str(sessions_dir))


@pytest.fixture
def mock_runner():
    """模拟的外部CLI调用器，默认返回成功的空输出"""
    runner = Mock(spec=CLIRunner)
    runner.run = AsyncMock(return_value=make_cli_result())
    return runner


@pytest.fixture
def cli_result():
    """CLI调用结果工厂"""
    return make_cli_result
