"""
Transfer task API endpoints
"""
from datetime import date, datetime, time

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from keepalive.api.deps import get_db, get_current_user_id, get_generation_locks
from keepalive.application.accounts import AccountDirectory
from keepalive.application.dashboard import task_item
from keepalive.application.generation_locks import GenerationLocks
from keepalive.application.task_generator import GenerateTasksUseCase
from keepalive.application.task_store import TaskStore, TaskListFilter, DEFAULT_PAGE_SIZE
from keepalive.application.tasks_usecases import (
    CompleteTaskUseCase, SkipTaskUseCase, DeleteTaskUseCase,
    BatchDeleteTasksUseCase, CompleteTodayTasksUseCase, selector_from_request,
)
from keepalive.utils.clock import today_local


router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


# === Request/Response models ===

class GenerateTasksRequest(BaseModel):
    strategy_id: str
    group: str | None = None  # None / "" = все активные счета
    cycles: int | None = None  # по умолчанию DEFAULT_CYCLES
    seed: int | None = None  # для воспроизводимой генерации


class GenerateTasksResponse(BaseModel):
    created_count: int
    start_cycle: int
    end_cycle: int
    first_date: date
    last_date: date
    seed: int


class TaskResponse(BaseModel):
    id: str
    group_name: str
    cycle: int
    anchor_date: date
    exec_date: date
    exec_time: time
    from_account_id: str
    from_account_name: str | None
    to_account_id: str
    to_account_name: str | None
    amount: str  # Decimal as string
    memo: str | None
    notes: str | None
    status: str
    completed_at: datetime | None
    created_at: datetime


class TaskPageResponse(BaseModel):
    items: list[TaskResponse]
    total: int
    page: int
    page_size: int


class LastInfoResponse(BaseModel):
    has_tasks: bool
    last_cycle: int
    last_exec_date: date | None
    next_cycle: int


class CompleteTaskRequest(BaseModel):
    notes: str | None = None


class BatchDeleteRequest(BaseModel):
    task_ids: list[str] | None = None
    delete_all: bool = False
    delete_completed: bool = False
    delete_cycle: int | None = None


class BatchDeleteResponse(BaseModel):
    deleted_count: int
    failed_ids: list[str] = Field(default_factory=list)


class CompleteTodayResponse(BaseModel):
    completed_count: int


# === Helpers ===

def _task_response(db: Session, user_id: int, task) -> TaskResponse:
    names = AccountDirectory(db).names_by_id(user_id)
    return TaskResponse(**task_item(task, names))


# === Endpoints ===

@router.post("/generate", response_model=GenerateTasksResponse, status_code=201)
def generate_tasks(
    req: GenerateTasksRequest,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    locks: GenerationLocks = Depends(get_generation_locks),
):
    """Сгенерировать N циклов переводов"""
    result = GenerateTasksUseCase(db, locks).execute(
        user_id=user_id,
        strategy_id=req.strategy_id,
        today=today_local(),
        group=req.group,
        cycles=req.cycles,
        seed=req.seed,
    )
    return GenerateTasksResponse(
        created_count=result.created_count,
        start_cycle=result.start_cycle,
        end_cycle=result.end_cycle,
        first_date=result.first_date,
        last_date=result.last_date,
        seed=result.seed,
    )


@router.get("", response_model=TaskPageResponse)
def list_tasks(
    status: str | None = None,
    cycle: int | None = None,
    group: str | None = None,
    q: str | None = None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Список задач с фильтрами и пагинацией"""
    flt = TaskListFilter(status=status, cycle=cycle, group=group, query=q)
    result = TaskStore(db).list_page(user_id, flt, page=page, page_size=page_size)

    names = AccountDirectory(db).names_by_id(user_id)
    return TaskPageResponse(
        items=[TaskResponse(**task_item(t, names)) for t in result["items"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
    )


@router.get("/last-info", response_model=LastInfoResponse)
def last_info(
    group: str | None = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """С какого цикла продолжится следующая генерация"""
    return LastInfoResponse(**GenerateTasksUseCase(db).preview(user_id, group))


@router.get("/cycles", response_model=list[int])
def list_cycles(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    return TaskStore(db).list_cycles(user_id)


@router.put("/{task_id}/complete", response_model=TaskResponse)
def complete_task(
    task_id: str,
    req: CompleteTaskRequest | None = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Отметить перевод выполненным"""
    task = CompleteTaskUseCase(db).execute(
        task_id=task_id,
        user_id=user_id,
        notes=req.notes if req else None,
    )
    return _task_response(db, user_id, task)


@router.put("/{task_id}/skip", response_model=TaskResponse)
def skip_task(
    task_id: str,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Пропустить перевод"""
    task = SkipTaskUseCase(db).execute(task_id=task_id, user_id=user_id)
    return _task_response(db, user_id, task)


@router.delete("/{task_id}", status_code=204)
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    DeleteTaskUseCase(db).execute(task_id=task_id, user_id=user_id)
    return Response(status_code=204)


@router.post("/batch-delete", response_model=BatchDeleteResponse)
def batch_delete(
    req: BatchDeleteRequest,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Удалить задачи по списку id, все, выполненные или цикл"""
    selector = selector_from_request(
        task_ids=req.task_ids,
        delete_all=req.delete_all,
        delete_completed=req.delete_completed,
        delete_cycle=req.delete_cycle,
    )
    result = BatchDeleteTasksUseCase(db).execute(user_id=user_id, selector=selector)
    return BatchDeleteResponse(deleted_count=result.count, failed_ids=result.failed_ids)


@router.post("/complete-today", response_model=CompleteTodayResponse)
def complete_today(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """Отметить выполненными все ожидающие переводы на сегодня"""
    result = CompleteTodayTasksUseCase(db).execute(user_id=user_id, today=today_local())
    return CompleteTodayResponse(completed_count=result.count)
