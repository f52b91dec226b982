"""
凭证存储
单用户部署下的用户记录读写
"""
from typing import Optional, Dict, Any
from sqlalchemy import select, insert, update, exists, literal, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..database import Database
from ..models.user import User
from ..utils.logger import get_logger
from .dto import UserRecord
from .errors import DuplicateUsername, SetupAlreadyComplete

logger = get_logger(__name__)


class UserStore:
    """用户凭证存储类"""

    def __init__(self, database: Database):
        """
        初始化凭证存储

        Args:
            database: 数据库实例
        """
        self.db = database

    def has_any_user(self) -> bool:
        """是否已存在任何用户记录"""
        with self.db.get_session() as session:
            count = session.query(func.count(User.id)).scalar()
        logger.debug(f"用户数量: {count}")
        return count > 0

    def create_user(self, username: str, password_hash: str) -> UserRecord:
        """
        创建用户

        插入语句带有“表为空”条件，检查与插入在同一条SQL中完成，
        并发注册时只有一个请求能成功。

        Args:
            username: 用户名
            password_hash: 密码哈希

        Returns:
            新建的用户记录

        Raises:
            SetupAlreadyComplete: 已存在用户
            DuplicateUsername: 用户名违反唯一约束
        """
        users = User.__table__
        stmt = insert(users).from_select(
            ["username", "password_hash"],
            select(literal(username), literal(password_hash)).where(
                ~exists().select_from(users)
            ),
        )

        try:
            with self.db.get_session() as session:
                result = session.execute(stmt)
                if result.rowcount == 0:
                    raise SetupAlreadyComplete()
                user = session.query(User).filter(User.username == username).one()
                record = self._to_record(user)
        except IntegrityError as e:
            logger.warning(f"创建用户失败，用户名冲突: username={username}, error={e.orig}")
            raise DuplicateUsername()

        logger.info(f"用户创建成功: id={record.id}, username={username}")
        return record

    def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        """
        按用户名获取启用状态的用户

        Args:
            username: 用户名

        Returns:
            用户记录，不存在时返回None
        """
        with self.db.get_session() as session:
            user = session.query(User).filter(
                User.username == username,
                User.is_active.is_(True)
            ).first()
            return self._to_record(user) if user else None

    def get_user_by_id(self, user_id: int) -> Optional[Dict[str, Any]]:
        """
        按ID获取启用状态的用户（不含密码哈希）

        Args:
            user_id: 用户ID

        Returns:
            包含 id, username, created_at, last_login 的字典，不存在时返回None
        """
        with self.db.get_session() as session:
            user = session.query(User).filter(
                User.id == user_id,
                User.is_active.is_(True)
            ).first()
            return user.to_safe_dict() if user else None

    def touch_last_login(self, user_id: int):
        """
        更新最后登录时间

        失败只记录日志，不影响调用方的响应
        """
        try:
            with self.db.get_session() as session:
                session.execute(
                    update(User)
                    .where(User.id == user_id)
                    .values(last_login=func.current_timestamp())
                    .execution_options(synchronize_session=False)
                )
        except SQLAlchemyError as e:
            logger.error(f"更新最后登录时间失败: user_id={user_id}, error={e}", exc_info=True)

    @staticmethod
    def _to_record(user: User) -> UserRecord:
        return UserRecord(
            id=user.id,
            username=user.username,
            password_hash=user.password_hash,
            is_active=bool(user.is_active),
            created_at=user.created_at,
            last_login=user.last_login,
        )
