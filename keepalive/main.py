"""
FastAPI application factory
"""
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from keepalive.api.errors import register_error_handlers
from keepalive.api.v1 import tasks, strategies, stats
from keepalive.application.generation_locks import GenerationLocks
from keepalive.application.strategies import ensure_system_strategies
from keepalive.config import get_settings
from keepalive.infrastructure.db.session import check_db_connection, session_scope

logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Catches everything the domain error handlers did not, including sync routes"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return Response(content=f"Internal Server Error: {exc}", status_code=500)


@asynccontextmanager
async def _seed_lifespan(app: FastAPI):
    with session_scope() as db:
        ensure_system_strategies(db)
    yield


def create_app(seed_system_strategies: bool = True) -> FastAPI:
    """
    Application factory - создаёт и настраивает FastAPI приложение

    Args:
        seed_system_strategies: создать системные стратегии при старте (выключается в тестах)

    Returns:
        Настроенный FastAPI app
    """
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    app = FastAPI(
        title="KeepAlive",
        debug=settings.DEBUG,
        lifespan=_seed_lifespan if seed_system_strategies else None,
    )
    app.state.generation_locks = GenerationLocks()

    app.add_middleware(ErrorLoggingMiddleware)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY
    )
    register_error_handlers(app)

    # Routers
    app.include_router(tasks.router)
    app.include_router(strategies.router)
    app.include_router(stats.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (проверяет доступность БД)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "keepalive.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
