"""
Route guard: guarded paths need a valid token, otherwise redirect to login.
Valid requests reach the handler with user-id / user-email headers attached.
"""
import logging

from fastapi import Request
from fastapi.responses import RedirectResponse

from config import settings
from auth.tokens import TokenError, verify_token

logger = logging.getLogger(__name__)


def extract_token(cookies, headers):
    token = cookies.get('token')
    if token:
        return token
    authorization = headers.get('authorization', '')
    scheme, _, credentials = authorization.partition(' ')
    if scheme.lower() == 'bearer' and credentials:
        return credentials.strip()
    return None


def install_route_guard(app, secret,
                        guarded=settings.GUARDED_ROUTES,
                        public=settings.PUBLIC_ROUTES,
                        login_route=settings.LOGIN_ROUTE):
    guarded = set(guarded)
    public = set(public)

    @app.middleware("http")
    async def route_guard(request: Request, call_next):
        path = request.url.path
        if path in public or path not in guarded:
            return await call_next(request)

        token = extract_token(request.cookies, request.headers)
        if not token:
            return RedirectResponse(login_route, status_code=307)

        try:
            identity = verify_token(token, secret)
        except TokenError as e:
            logger.info("Rejected token on %s: %s", path, e)
            return RedirectResponse(login_route, status_code=307)

        headers = [(k, v) for k, v in request.scope["headers"]
                   if k not in (b"user-id", b"user-email")]
        headers.append((b"user-id", identity["user_id"].encode("utf-8")))
        headers.append((b"user-email", identity["email"].encode("utf-8")))
        request.scope["headers"] = headers
        return await call_next(request)

    return route_guard


def forwarded_identity(headers):
    """user-id / user-email set by the guard. Header values are raw UTF-8 bytes."""
    def header(name):
        raw = headers.get(name)
        if raw is None:
            return None
        # Starlette decodes header bytes as latin-1
        return raw.encode("latin-1").decode("utf-8")
    return {"id": header("user-id"), "email": header("user-email")}
