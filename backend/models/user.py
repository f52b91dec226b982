"""
用户模型
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func, text
from .base import Base


class User(Base):
    """用户表（单用户部署，最多一条记录）"""
    __tablename__ = "geminicliui_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, server_default=text("1"))
    created_at = Column(DateTime, nullable=False, server_default=func.current_timestamp())
    last_login = Column(DateTime, nullable=True)

    def to_safe_dict(self) -> dict:
        """不含密码哈希的字段子集"""
        return {
            "id": self.id,
            "username": self.username,
            "created_at": self.created_at,
            "last_login": self.last_login,
        }

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"
