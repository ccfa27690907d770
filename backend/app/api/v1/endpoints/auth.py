from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.logging_config import logger, set_user_id
from app.core.rate_limiter import limiter, LOGIN_LIMIT
from app.modules.auth.dependencies import get_current_session
from app.modules.auth.session import SessionUser
from app.schemas.auth import LoginRequest, UserOut
from app.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["Authentication"])


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
    )


@router.post("/login")
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Sign in with email and password (rate limited: 5/min)"""
    client_ip = request.client.host if request.client else "unknown"
    user, token = await AuthService(db).authenticate(credentials.email, credentials.password, client_ip=client_ip)
    set_user_id(user.id)
    set_session_cookie(response, token)
    return {
        "ok": True,
        "access_token": token,
        "token_type": "bearer",
        "user": UserOut.model_validate(user).model_dump(mode="json"),
    }


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    logger.log_auth_event(event="logout", success=True)
    return {"ok": True}


@router.get("/session")
async def get_session(session: SessionUser = Depends(get_current_session)):
    """The caller's resolved session"""
    return {"ok": True, "session": session.to_dict()}
