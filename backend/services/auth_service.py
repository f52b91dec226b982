"""
认证服务
单用户注册、登录和JWT令牌签发/校验
"""
import os
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

import bcrypt
from jose import jwt, JWTError, ExpiredSignatureError

from ..utils.logger import get_logger
from .dto import TokenClaims
from .errors import (
    ValidationError,
    SetupAlreadyComplete,
    InvalidCredentials,
    InvalidToken,
    TokenExpired,
)
from .user_store import UserStore

logger = get_logger(__name__)

DEFAULT_JWT_SECRET = "geminicliui-dev-secret-change-in-production"
JWT_ALGORITHM = "HS256"
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
# bcrypt 只使用密码的前72字节
BCRYPT_MAX_BYTES = 72


class AuthService:
    """认证服务类"""

    def __init__(
        self,
        user_store: UserStore,
        secret_key: Optional[str] = None,
        expire_hours: Optional[float] = None,
        bcrypt_rounds: Optional[int] = None
    ):
        """
        初始化认证服务

        Args:
            user_store: 凭证存储
            secret_key: JWT签名密钥，如果为None则从环境变量JWT_SECRET_KEY读取
            expire_hours: 令牌有效期（小时），默认从环境变量JWT_EXPIRE_HOURS读取
            bcrypt_rounds: bcrypt成本因子，默认从环境变量BCRYPT_ROUNDS读取
        """
        self.user_store = user_store

        if secret_key is None:
            secret_key = os.getenv("JWT_SECRET_KEY")
            if not secret_key:
                logger.warning("未设置JWT_SECRET_KEY环境变量，使用开发用默认密钥")
                secret_key = DEFAULT_JWT_SECRET
        self.secret_key = secret_key

        if expire_hours is None:
            expire_hours = float(os.getenv("JWT_EXPIRE_HOURS", "168"))
        self.expire_delta = timedelta(hours=expire_hours)

        if bcrypt_rounds is None:
            bcrypt_rounds = int(os.getenv("BCRYPT_ROUNDS", "12"))
        self.bcrypt_rounds = bcrypt_rounds

        self._dummy_hash: Optional[str] = None

    # ============ 密码 ============

    def hash_password(self, password: str) -> str:
        """使用bcrypt生成带盐哈希"""
        hashed = bcrypt.hashpw(self._password_bytes(password), bcrypt.gensalt(rounds=self.bcrypt_rounds))
        return hashed.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """常量时间比较密码与哈希"""
        try:
            return bcrypt.checkpw(self._password_bytes(password), password_hash.encode("utf-8"))
        except ValueError:
            logger.warning("密码哈希格式无效")
            return False

    @staticmethod
    def _password_bytes(password: str) -> bytes:
        return password.encode("utf-8")[:BCRYPT_MAX_BYTES]

    def _burn_password_check(self, password: str):
        """用户不存在时也做一次哈希比较，使两种失败耗时一致"""
        if self._dummy_hash is None:
            self._dummy_hash = self.hash_password("dummy-password-for-timing")
        self.verify_password(password, self._dummy_hash)

    # ============ 令牌 ============

    def create_token(self, user_id: int, username: str, expires_delta: Optional[timedelta] = None) -> str:
        """
        签发JWT令牌

        Args:
            user_id: 用户ID
            username: 用户名
            expires_delta: 有效期，默认使用服务配置

        Returns:
            编码后的令牌
        """
        issued_at = datetime.now(timezone.utc)
        claims = {
            "userId": user_id,
            "username": username,
            "iat": issued_at,
            "exp": issued_at + (expires_delta if expires_delta is not None else self.expire_delta),
        }
        return jwt.encode(claims, self.secret_key, algorithm=JWT_ALGORITHM)

    def decode_token(self, token: str) -> TokenClaims:
        """
        校验并解析令牌

        Raises:
            TokenExpired: 令牌已过期
            InvalidToken: 签名错误或格式不正确
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[JWT_ALGORITHM])
        except ExpiredSignatureError:
            raise TokenExpired()
        except JWTError as e:
            logger.info(f"令牌校验失败: {e}")
            raise InvalidToken()

        user_id = payload.get("userId")
        username = payload.get("username")
        if not isinstance(user_id, int) or not isinstance(username, str):
            raise InvalidToken()

        return TokenClaims(
            user_id=user_id,
            username=username,
            issued_at=_from_timestamp(payload.get("iat")),
            expires_at=_from_timestamp(payload.get("exp")),
        )

    def authenticate(self, token: str) -> Dict[str, Any]:
        """
        校验令牌并加载当前用户

        Returns:
            用户信息（不含密码哈希）

        Raises:
            TokenExpired, InvalidToken
        """
        claims = self.decode_token(token)
        user = self.user_store.get_user_by_id(claims.user_id)
        if not user:
            raise InvalidToken("Invalid token. User not found.")
        return user

    # ============ 业务操作 ============

    def status(self, token: Optional[str] = None) -> Dict[str, bool]:
        """返回是否需要首次设置，以及可选令牌是否有效"""
        is_authenticated = False
        if token:
            try:
                self.authenticate(token)
                is_authenticated = True
            except (InvalidToken, TokenExpired):
                is_authenticated = False

        return {
            "needsSetup": not self.user_store.has_any_user(),
            "isAuthenticated": is_authenticated,
        }

    def register(self, username: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        """
        注册唯一用户

        Returns:
            {"user": {"id", "username"}, "token"}

        Raises:
            ValidationError, SetupAlreadyComplete, DuplicateUsername
        """
        self._require_credentials(username, password)

        if len(username) < MIN_USERNAME_LENGTH or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                "Username must be at least 3 characters, password at least 6 characters"
            )

        if self.user_store.has_any_user():
            logger.info(f"注册被拒绝，系统已存在用户: username={username}")
            raise SetupAlreadyComplete()

        password_hash = self.hash_password(password)
        user = self.user_store.create_user(username, password_hash)

        token = self.create_token(user.id, user.username)
        self.user_store.touch_last_login(user.id)

        logger.info(f"注册成功: username={username}")
        return {"user": {"id": user.id, "username": user.username}, "token": token}

    def login(self, username: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        """
        登录

        未知用户与密码错误返回同一个错误

        Raises:
            ValidationError, InvalidCredentials
        """
        self._require_credentials(username, password)

        user = self.user_store.get_user_by_username(username)
        if not user:
            self._burn_password_check(password)
            logger.info(f"登录失败: username={username}")
            raise InvalidCredentials()

        if not self.verify_password(password, user.password_hash):
            logger.info(f"登录失败: username={username}")
            raise InvalidCredentials()

        token = self.create_token(user.id, user.username)
        self.user_store.touch_last_login(user.id)

        logger.info(f"登录成功: username={username}")
        return {"user": {"id": user.id, "username": user.username}, "token": token}

    def logout(self) -> Dict[str, Any]:
        """令牌无状态，登出只在客户端生效"""
        return {"success": True, "message": "Logged out successfully"}

    @staticmethod
    def _require_credentials(username: Optional[str], password: Optional[str]):
        if not username or not password:
            raise ValidationError("Username and password are required")


def _from_timestamp(value: Any) -> Optional[datetime]:
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return None
