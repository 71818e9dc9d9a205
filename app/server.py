from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from app.config import APP_TITLE, CORS_ORIGIN, SERVER_HOST, SERVER_PORT, logger
from backend.auth.errors import UserResponse
from backend.auth.service import AuthService
from backend.db import close_async_pool, ensure_schema


class RegisterInput(BaseModel):
    username: str
    password: str
    email: str


class LoginInput(BaseModel):
    username_or_email: str = Field(alias="usernameOrEmail")
    password: str


class ForgotPasswordInput(BaseModel):
    email: str


class ChangePasswordInput(BaseModel):
    token: str
    new_password: str = Field(alias="newPassword")


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _current_session(request: Request, service: AuthService) -> Optional[str]:
    return service.sessions.decode(request.cookies.get(service.sessions.cookie_name))


def _user_response(result: UserResponse, service: AuthService) -> JSONResponse:
    response = JSONResponse(result.to_dict())
    if result.session:
        sessions = service.sessions
        response.set_cookie(
            sessions.cookie_name,
            sessions.encode(result.session),
            max_age=sessions.max_age(),
            **sessions.cookie_kwargs(),
        )
    return response


AUTH_ROUTER = APIRouter(prefix="/auth")


@AUTH_ROUTER.post("/register")
async def register_route(
    body: RegisterInput, request: Request, service: AuthService = Depends(get_auth_service)
):
    result = await service.register(
        body.username, body.password, body.email, _current_session(request, service)
    )
    return _user_response(result, service)


@AUTH_ROUTER.post("/login")
async def login_route(
    body: LoginInput, request: Request, service: AuthService = Depends(get_auth_service)
):
    result = await service.login(
        body.username_or_email, body.password, _current_session(request, service)
    )
    return _user_response(result, service)


@AUTH_ROUTER.post("/logout")
async def logout_route(request: Request, service: AuthService = Depends(get_auth_service)):
    success = await service.logout(_current_session(request, service))
    response = JSONResponse(success)
    # the cookie goes regardless of whether the store cooperated
    cookie_kwargs = service.sessions.cookie_kwargs()
    response.delete_cookie(
        service.sessions.cookie_name,
        path=cookie_kwargs["path"],
        secure=cookie_kwargs["secure"],
        httponly=cookie_kwargs["httponly"],
        samesite=cookie_kwargs["samesite"],
    )
    return response


@AUTH_ROUTER.get("/me")
async def me_route(request: Request, service: AuthService = Depends(get_auth_service)):
    user = await service.me(_current_session(request, service))
    return JSONResponse(user.to_public() if user else None)


@AUTH_ROUTER.post("/forgot-password")
async def forgot_password_route(
    body: ForgotPasswordInput, service: AuthService = Depends(get_auth_service)
):
    return JSONResponse(await service.forgot_password(body.email))


@AUTH_ROUTER.post("/change-password")
async def change_password_route(
    body: ChangePasswordInput, request: Request, service: AuthService = Depends(get_auth_service)
):
    result = await service.change_password(
        body.token, body.new_password, _current_session(request, service)
    )
    return _user_response(result, service)


@AUTH_ROUTER.get("/health")
async def health() -> Response:
    return Response(status_code=204)


def create_app(service: Optional[AuthService] = None, *, manage_resources: bool = True) -> FastAPI:
    """Build the HTTP app around ``service``.

    With ``manage_resources`` the lifespan opens Postgres, applies the schema
    and closes Postgres and Redis on shutdown.
    """
    auth_service = service or AuthService()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_resources:
            await ensure_schema()
        logger.info("%s ready", APP_TITLE)
        try:
            yield
        finally:
            if manage_resources:
                await close_async_pool()
                await auth_service.sessions.store.close()

    fastapi_app = FastAPI(title=APP_TITLE, lifespan=lifespan)
    fastapi_app.state.auth_service = auth_service
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=[CORS_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    fastapi_app.include_router(AUTH_ROUTER)
    return fastapi_app


def launch():
    uvicorn.run(create_app(), host=SERVER_HOST, port=SERVER_PORT, log_level="info")
