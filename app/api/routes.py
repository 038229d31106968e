"""
FastAPI routes for the OAuth 1.0a login service.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from app.core.errors import MalformedCallback, OAuthFlowError, SignatureError
from app.dependencies import (
    get_app_settings,
    get_callback_handler,
    get_callback_url,
    get_presented_session_id,
    get_request_token_service,
    get_session_service,
)
from app.schemas import (
    AuthorizationStartResponse,
    CallbackSuccessPayload,
    ErrorPayload,
    SessionPayload,
    UserPayload,
)

router = APIRouter()
logger = logging.getLogger(__name__)

_CALLBACK_PARAMS = ("oauth_token", "oauth_verifier", "denied")


def _wants_html(request: Request) -> bool:
    accept_header = request.headers.get("accept", "")
    return "text/html" in accept_header.lower()


def _error_response(exc: OAuthFlowError) -> JSONResponse:
    payload = ErrorPayload(error=exc.reason)
    return JSONResponse(
        status_code=int(exc.status_code),
        content=payload.model_dump(by_alias=True),
    )


def _callback_params(request: Request) -> Dict[str, str]:
    """Flatten the callback query, rejecting repeated protocol parameters."""
    for name in _CALLBACK_PARAMS:
        if len(request.query_params.getlist(name)) > 1:
            raise MalformedCallback(f"Repeated callback parameter {name!r}.")
    return {name: request.query_params[name] for name in _CALLBACK_PARAMS if name in request.query_params}


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/auth/start", status_code=HTTPStatus.OK)
async def start_oauth_flow(
    request: Request,
    token_service: Annotated[Any, Depends(get_request_token_service)],
    callback_url: Annotated[str, Depends(get_callback_url)],
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the provider consent screen.",
    ),
) -> Response:
    """
    Obtain a request token and hand the user off to the provider.
    """
    try:
        request_token = await token_service.acquire_request_token(callback_url)
        authorization_url = token_service.authorization_url(request_token)
    except SignatureError as exc:
        logger.error("Request signing failed; check consumer configuration: %s", exc.message)
        return _error_response(exc)
    except OAuthFlowError as exc:
        logger.warning(
            "Could not start OAuth flow: %s (%s) retryable=%s",
            exc.reason,
            exc.message,
            exc.retryable,
        )
        return _error_response(exc)

    if redirect or _wants_html(request):
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.TEMPORARY_REDIRECT)

    payload = AuthorizationStartResponse(
        authorization_url=authorization_url, oauth_token=request_token.token
    )
    return JSONResponse(content=payload.model_dump(by_alias=True))


@router.get("/auth/callback", status_code=HTTPStatus.OK)
async def handle_oauth_callback(
    request: Request,
    handler: Annotated[Any, Depends(get_callback_handler)],
    settings: Annotated[Any, Depends(get_app_settings)],
    redirect: bool = Query(
        default=False,
        description="When true, redirect browser clients instead of returning JSON.",
    ),
) -> Response:
    """Complete the provider round trip and issue a local session."""
    try:
        params = _callback_params(request)
    except MalformedCallback as exc:
        return _error_response(exc)

    outcome = await handler.handle(params)
    if not outcome.succeeded:
        return _error_response(outcome.error)

    established = outcome.result
    session = established.session
    redirect_target = settings.frontend_base_url
    if redirect_target and (redirect or _wants_html(request)):
        response: Response = RedirectResponse(
            url=str(redirect_target), status_code=HTTPStatus.TEMPORARY_REDIRECT
        )
    else:
        payload = CallbackSuccessPayload(
            user=UserPayload.from_profile(established.profile),
            session_token=session.session_id,
            session_expires_at=session.expires_at,
        )
        response = JSONResponse(content=payload.model_dump(mode="json", by_alias=True))

    response.set_cookie(
        settings.session.cookie_name,
        session.session_id,
        max_age=settings.session.ttl_seconds,
        path="/",
        secure=settings.session.cookie_secure,
        httponly=True,
        samesite="lax",
    )
    return response


@router.get("/auth/session", status_code=HTTPStatus.OK)
async def read_current_session(
    session_service: Annotated[Any, Depends(get_session_service)],
    session_id: Annotated[Optional[str], Depends(get_presented_session_id)],
) -> dict:
    """Resolve the presented session to its local user."""
    resolved = session_service.resolve(session_id) if session_id else None
    if resolved is None:
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED,
            detail="No active session.",
        )
    session, user = resolved
    payload = SessionPayload(user=UserPayload.from_user(user), expires_at=session.expires_at)
    return payload.model_dump(mode="json", by_alias=True)


@router.post("/auth/logout", status_code=HTTPStatus.OK)
async def logout(
    session_service: Annotated[Any, Depends(get_session_service)],
    session_id: Annotated[Optional[str], Depends(get_presented_session_id)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> Response:
    """Revoke the presented session only; other sessions stay valid."""
    revoked = session_service.revoke(session_id) if session_id else False
    response = JSONResponse(content={"success": True, "revoked": revoked})
    response.delete_cookie(settings.session.cookie_name, path="/")
    return response
