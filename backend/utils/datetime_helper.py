"""
日期时间辅助工具
用于统一处理时间序列化，确保前端能正确识别时区
"""
from datetime import datetime, timezone
from typing import Optional, Any


def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
    """
    将 datetime 对象转换为 ISO 8601 格式字符串（带 UTC 时区标识）

    Args:
        dt: datetime 对象（可以为 None）

    Returns:
        ISO 8601 格式字符串，带 'Z' 后缀表示 UTC 时区
        如果输入为 None，返回 None

    Examples:
        >>> dt = datetime(2024, 11, 3, 6, 30, 0)
        >>> to_iso_string(dt)
        '2024-11-03T06:30:00Z'
    """
    if dt is None:
        return None

    # 如果 datetime 对象没有时区信息，假设为 UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    dt_utc = dt.astimezone(timezone.utc)

    return dt_utc.replace(microsecond=0).isoformat().replace('+00:00', 'Z')


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """
    解析CLI会话文件中的 ISO 8601 时间字符串

    Args:
        value: 时间字符串，如 '2025-01-01T08:00:00.000Z'

    Returns:
        带 UTC 时区信息的 datetime 对象，无法解析时返回 None
    """
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'

    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    """
    获取当前 UTC 时间（带时区信息）

    Returns:
        带 UTC 时区信息的 datetime 对象
    """
    return datetime.now(timezone.utc)
