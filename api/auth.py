"""
管理員驗證（HTTP Basic）

只有 force-rotate 與佇列管理需要；其餘 endpoint 都是公開的
"""
import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from database import get_settings

UNAUTHENTICATED = "unauthenticated"

security = HTTPBasic(auto_error=False)


def require_admin(credentials: HTTPBasicCredentials = Depends(security)) -> str:
    """
    FastAPI dependency：驗證管理員帳密

    返回：
        管理員帳號

    異常：
        HTTPException 401，detail.reason = "unauthenticated"
        （與「不需要輪替」的 rotated=False 明確區分）
    """
    settings = get_settings()
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"reason": UNAUTHENTICATED, "message": "Must be authenticated"},
            headers={"WWW-Authenticate": "Basic"},
        )

    username_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), settings.admin_username.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), settings.admin_password.encode("utf-8")
    )
    if not (username_ok and password_ok):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"reason": UNAUTHENTICATED, "message": "Invalid credentials"},
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
