"""Dashboard API over FastAPI: session login and the monthly summary."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

import bcrypt
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from config import SECRET_KEY, SESSION_MAX_AGE, configure_logging, is_development
from database import User, get_db, init_db
from schemas import DashboardSummary, ErrorResponse
from service import dashboard_for_user

configure_logging()
logger = logging.getLogger(__name__)

SUMMARY_ERROR = "Erro ao buscar dados do dashboard"


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Family Finance API", version="0.1.0", lifespan=lifespan)
app.add_middleware(SessionMiddleware, secret_key=SECRET_KEY, max_age=SESSION_MAX_AGE, same_site="lax")


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(exclude_none=True),
        headers=getattr(exc, "headers", None),
    )


def get_clock() -> datetime:
    """Request time; overridden in tests to pin the month."""
    return datetime.now()


def current_user_id(request: Request) -> int:
    user_id = request.session.get("user_id")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Não autorizado")
    return int(user_id)


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    user_id: int
    name: Optional[str] = None


@app.post("/api/auth/login", response_model=LoginResponse)
def login(req: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == req.email).first()
    if user and user.password_hash and bcrypt.checkpw(req.password.encode("utf-8"), user.password_hash.encode("utf-8")):
        request.session["user_id"] = user.id
        return LoginResponse(user_id=user.id, name=user.name)

    logger.warning("Failed login attempt for %s", req.email)
    raise HTTPException(status_code=401, detail="Credenciais inválidas")


@app.post("/api/auth/logout")
def logout(request: Request):
    request.session.clear()
    return {"status": "ok"}


@app.get("/api/dashboard/summary", response_model=DashboardSummary)
def dashboard_summary(
    user_id: int = Depends(current_user_id),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    try:
        return dashboard_for_user(db, user_id, now)
    except Exception as exc:
        logger.exception("Failed to build dashboard summary for user %s", user_id)
        message = str(exc) if is_development() else "Erro desconhecido"
        return JSONResponse(status_code=500, content=ErrorResponse(error=SUMMARY_ERROR, message=message).model_dump())


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server:app", host="0.0.0.0", port=8001, reload=True)
