import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from auth import (TokenError, extract_token, forwarded_identity, install_route_guard,
                  issue_token, verify_token)
from config import load_env_config, settings
from database import AccountDB, AccountExists

logger = logging.getLogger(__name__)


# ============================================================================
# DATA MODELS
# ============================================================================
class SignupRequest(BaseModel):
    business_unique_id: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


# ============================================================================
# WEBSOCKET MANAGER
# ============================================================================
class ConnectionManager:
    def __init__(self):
        self.active_connections = set()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.add(websocket)

    def disconnect(self, websocket: WebSocket):
        self.active_connections.discard(websocket)

    async def broadcast(self, message: dict):
        for connection in list(self.active_connections):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.info("Dropping websocket client: %s", e)
                self.disconnect(connection)


def display_message(display):
    return {"type": "display", "data": display.model_dump(mode="json")}


# ============================================================================
# APP FACTORY
# ============================================================================
def create_app(session_factory=None, accounts=None, conf=None):
    conf = conf or load_env_config()
    secret = conf.get("JWT_SECRET", "")
    if not secret:
        logger.warning("JWT_SECRET is not set, logins will fail")

    if session_factory is None:
        from app import build_session
        session_factory = lambda: build_session(conf)
    if accounts is None:
        accounts = AccountDB(conf.get("ACCOUNT_DB_PATH", settings.ACCOUNT_DB_PATH))

    manager = ConnectionManager()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session = session_factory()
        app.state.session = session

        # Display changes go out one at a time, in the order the session made them
        outbox = asyncio.Queue()

        async def broadcaster():
            while True:
                display = await outbox.get()
                await manager.broadcast(display_message(display))

        broadcast_task = asyncio.create_task(broadcaster())
        session.add_listener(outbox.put_nowait)
        session.start()
        try:
            yield
        finally:
            await session.aclose()
            broadcast_task.cancel()
            with suppress(asyncio.CancelledError):
                await broadcast_task

    app = FastAPI(lifespan=lifespan)
    app.state.accounts = accounts
    app.state.manager = manager
    install_route_guard(app, secret)

    # ------------------------------------------------------------------
    # KIOSK DISPLAY
    # ------------------------------------------------------------------
    def current_display(request: Request):
        session = request.app.state.session
        return {
            "display": session.display.model_dump(mode="json"),
            "state": session.state.value,
            "user": forwarded_identity(request.headers),
        }

    @app.get("/")
    async def index(request: Request):
        return current_display(request)

    @app.get("/api/session")
    async def get_session(request: Request):
        return current_display(request)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        token = extract_token(websocket.cookies, websocket.headers) or websocket.query_params.get("token")
        try:
            if not token:
                raise TokenError("missing token")
            verify_token(token, secret)
        except TokenError:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return

        await manager.connect(websocket)
        try:
            await websocket.send_json(display_message(websocket.app.state.session.display))
            while True:
                # Clients only listen; reading keeps the disconnect visible
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            manager.disconnect(websocket)

    # ------------------------------------------------------------------
    # AUTH
    # ------------------------------------------------------------------
    @app.get("/login")
    async def login_page():
        return {"message": "Login required", "endpoint": "/api/auth/login"}

    @app.get("/signup")
    async def signup_page():
        return {"message": "Create an account", "endpoint": "/api/auth/signup"}

    @app.post("/api/auth/signup")
    async def signup(req: SignupRequest):
        if not (req.business_unique_id and req.username and req.email and req.password):
            return JSONResponse({"error": "All fields are required"}, status_code=400)
        try:
            accounts.add_account(req.business_unique_id, req.username, req.email, req.password)
        except AccountExists:
            return JSONResponse({"error": "User already exists"}, status_code=400)
        except Exception:
            logger.exception("Signup failed")
            return JSONResponse({"error": "Something went wrong"}, status_code=500)
        return JSONResponse({"message": "User registered successfully"}, status_code=201)

    @app.post("/api/auth/login")
    async def login(req: LoginRequest):
        if not req.email or not req.password:
            return JSONResponse({"error": "Invalid credentials"}, status_code=400)
        try:
            account = accounts.get_by_email(req.email)
            if account is None or not accounts.verify_password(account, req.password):
                return JSONResponse({"error": "Invalid credentials"}, status_code=400)
            token = issue_token(account["id"], account["email"], secret)
        except Exception:
            logger.exception("Login failed")
            return JSONResponse({"error": "Something went wrong"}, status_code=500)

        response = JSONResponse({
            "message": "Login Successfully!",
            "status": True,
            "user": {"_id": account["id"], "email": account["email"]},
        })
        response.set_cookie("token", token, httponly=True, max_age=settings.TOKEN_TTL)
        return response

    return app


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
