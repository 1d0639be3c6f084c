import logging
from datetime import datetime, timezone
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.util import get_remote_address
from typing import Dict, Optional

from naitai.config.settings import settings, check_required_settings
from naitai.core.dependencies import get_optional_user
from naitai.core.errors import register_exception_handlers
from naitai.modules.habits import routes as habits_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])
app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
register_exception_handlers(app)


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"X-XSS-Protection", b"1; mode=block"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(habits_routes.router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    logger.info("Application startup")
    check_required_settings()
    logger.info("API endpoints: GET /api/health, GET /api/habits, POST /api/habits, "
                "PATCH /api/habits/{id}/toggle, DELETE /api/habits/{id}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/")
async def root(user_data: Optional[Dict] = Depends(get_optional_user)):
    return {
        "message": f"Welcome to {settings.app_name}",
        "authenticated": user_data is not None,
    }


@app.get("/api/health")
@limiter.exempt
async def health():
    timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return {"status": "OK", "timestamp": timestamp, "service": settings.app_name}


def run():
    """Console entry point: serve the API with uvicorn on the configured port."""
    import uvicorn

    check_required_settings()
    uvicorn.run("naitai.main:app", host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
