"""
Strategy API endpoints
"""
from datetime import datetime

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from keepalive.api.deps import get_db, get_current_user_id
from keepalive.application.strategies import (
    StrategyReadService, CreateStrategyUseCase, UpdateStrategyUseCase, DeleteStrategyUseCase,
)
from keepalive.utils.validation import validate_and_normalize_amount, parse_time_of_day


router = APIRouter(prefix="/api/v1/strategies", tags=["strategies"])


# === Request/Response models ===

class _StrategyFields(BaseModel):
    interval_min: int | None = None
    interval_max: int | None = None
    time_start: str | None = None  # ЧЧ:ММ
    time_end: str | None = None
    skip_weekend: bool | None = None
    amount_min: str | None = None
    amount_max: str | None = None
    daily_limit: int | None = None

    @field_validator("amount_min", "amount_max")
    @classmethod
    def validate_amount(cls, v: str | None) -> str | None:
        """Валидация и нормализация суммы (точка/запятая, макс 2 знака)"""
        if v is None:
            return v
        return validate_and_normalize_amount(v, max_decimal_places=2)

    @field_validator("time_start", "time_end")
    @classmethod
    def validate_time(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return parse_time_of_day(v).strftime("%H:%M")


class CreateStrategyRequest(_StrategyFields):
    name: str


class UpdateStrategyRequest(_StrategyFields):
    name: str | None = None


class StrategyResponse(BaseModel):
    id: str
    name: str
    interval_min: int
    interval_max: int
    time_start: str
    time_end: str
    skip_weekend: bool
    amount_min: str  # Decimal as string
    amount_max: str
    daily_limit: int
    is_system: bool
    created_at: datetime
    updated_at: datetime


def _to_response(row) -> StrategyResponse:
    return StrategyResponse(
        id=row.id,
        name=row.name,
        interval_min=row.interval_min,
        interval_max=row.interval_max,
        time_start=row.time_start.strftime("%H:%M"),
        time_end=row.time_end.strftime("%H:%M"),
        skip_weekend=row.skip_weekend,
        amount_min=f"{row.amount_min:.2f}",
        amount_max=f"{row.amount_max:.2f}",
        daily_limit=row.daily_limit,
        is_system=row.is_system,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# === Endpoints ===

@router.get("", response_model=list[StrategyResponse])
def list_strategies(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Системные и собственные стратегии"""
    return [_to_response(r) for r in StrategyReadService(db).list_visible(user_id)]


@router.post("", response_model=StrategyResponse, status_code=201)
def create_strategy(
    req: CreateStrategyRequest,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Создать стратегию"""
    fields = req.model_dump(exclude={"name"})
    row = CreateStrategyUseCase(db).execute(user_id, req.name, **fields)
    return _to_response(row)


@router.get("/{strategy_id}", response_model=StrategyResponse)
def get_strategy(
    strategy_id: str,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return _to_response(StrategyReadService(db).get(strategy_id, user_id))


@router.put("/{strategy_id}", response_model=StrategyResponse)
def update_strategy(
    strategy_id: str,
    req: UpdateStrategyRequest,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Изменить стратегию (системные - 403)"""
    changes = req.model_dump(exclude_none=True)
    row = UpdateStrategyUseCase(db).execute(strategy_id, user_id, **changes)
    return _to_response(row)


@router.delete("/{strategy_id}", status_code=204)
def delete_strategy(
    strategy_id: str,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    DeleteStrategyUseCase(db).execute(strategy_id, user_id)
    return Response(status_code=204)
