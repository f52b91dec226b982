from .auth import authenticate_token, extract_bearer_token, get_auth_service
from .request_log import RequestLogMiddleware

__all__ = [
    "authenticate_token",
    "extract_bearer_token",
    "get_auth_service",
    "RequestLogMiddleware",
]
