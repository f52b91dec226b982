"""
凭证存储测试
"""
import pytest

from backend.services.errors import SetupAlreadyComplete


def test_has_any_user_empty(user_store):
    """空库没有用户"""
    assert user_store.has_any_user() is False


def test_create_user(user_store):
    """创建用户并按用户名读取"""
    record = user_store.create_user("alice", "hash-value")

    assert record.id is not None
    assert record.username == "alice"
    assert record.is_active is True
    assert record.created_at is not None
    assert record.last_login is None
    assert user_store.has_any_user() is True

    fetched = user_store.get_user_by_username("alice")
    assert fetched is not None
    assert fetched.id == record.id
    assert fetched.password_hash == "hash-value"


def test_create_second_user_rejected(user_store):
    """已有用户时存储层拒绝再次插入"""
    user_store.create_user("alice", "hash-1")

    with pytest.raises(SetupAlreadyComplete):
        user_store.create_user("bob", "hash-2")

    assert user_store.get_user_by_username("bob") is None


def test_get_user_by_username_unknown(user_store):
    assert user_store.get_user_by_username("nobody") is None


def test_get_user_by_id_excludes_password_hash(user_store):
    """按ID读取只返回安全字段"""
    record = user_store.create_user("alice", "hash-value")

    user = user_store.get_user_by_id(record.id)

    assert user["id"] == record.id
    assert user["username"] == "alice"
    assert "password_hash" not in user
    assert set(user.keys()) == {"id", "username", "created_at", "last_login"}


def test_get_user_by_id_unknown(user_store):
    assert user_store.get_user_by_id(999) is None


def test_inactive_user_hidden(user_store, database):
    """停用的用户对读取操作不可见"""
    from backend.models.user import User

    record = user_store.create_user("alice", "hash-value")
    with database.get_session() as session:
        session.query(User).filter(User.id == record.id).update({"is_active": False})

    assert user_store.get_user_by_username("alice") is None
    assert user_store.get_user_by_id(record.id) is None


def test_touch_last_login(user_store):
    """更新最后登录时间"""
    record = user_store.create_user("alice", "hash-value")

    user_store.touch_last_login(record.id)

    assert user_store.get_user_by_id(record.id)["last_login"] is not None


def test_touch_last_login_swallows_errors(user_store, database):
    """更新失败只记录日志"""
    database.drop_tables()

    user_store.touch_last_login(1)
