"""Every module must import on the oldest supported interpreter"""
import importlib

import pytest

MODULES = [
    "keepalive.config",
    "keepalive.main",
    "keepalive.api.deps",
    "keepalive.api.errors",
    "keepalive.api.v1.tasks",
    "keepalive.api.v1.strategies",
    "keepalive.api.v1.stats",
    "keepalive.application.accounts",
    "keepalive.application.dashboard",
    "keepalive.application.generation_locks",
    "keepalive.application.strategies",
    "keepalive.application.task_generator",
    "keepalive.application.task_store",
    "keepalive.application.tasks_usecases",
    "keepalive.domain.calendar",
    "keepalive.domain.errors",
    "keepalive.domain.randomizer",
    "keepalive.domain.schedule",
    "keepalive.domain.strategy",
    "keepalive.domain.task",
    "keepalive.infrastructure.db.models",
    "keepalive.infrastructure.db.session",
    "keepalive.infrastructure.eventlog.repository",
    "keepalive.utils.clock",
    "keepalive.utils.validation",
]


@pytest.mark.parametrize("name", MODULES)
def test_module_imports(name):
    importlib.import_module(name)


def test_store_methods_do_not_shadow_builtins():
    from keepalive.application.strategies import StrategyReadService
    from keepalive.application.task_store import TaskStore

    for cls in (TaskStore, StrategyReadService):
        assert not {"list", "dict", "set", "type"} & set(vars(cls))
