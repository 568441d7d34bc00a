"""
FastAPI dependencies (DB session, current user, generation locks)
"""
from fastapi import Request, HTTPException, status

from keepalive.application.generation_locks import GenerationLocks
from keepalive.infrastructure.db.session import get_db as _get_db


# Re-export get_db для удобства
get_db = _get_db


def get_current_user_id(request: Request) -> int:
    """
    user_id текущего пользователя из session

    Сессию выставляет внешний сервис аутентификации (общий SECRET_KEY).

    Raises:
        HTTPException(401): если не залогинен
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated"
        )
    return int(user_id)


def get_generation_locks(request: Request) -> GenerationLocks:
    """Process-wide lock registry, created once in create_app()"""
    return request.app.state.generation_locks
