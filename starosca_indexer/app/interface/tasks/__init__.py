from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from .domain.savings_pools_task import (
    index_savings_pools_once_task as domain__index_savings_pools_once_task,
    indexer_status_task as domain__indexer_status_task,
    init_store_task as domain__init_store_task,
    watch_savings_pools_task as domain__watch_savings_pools_task,
)

TaskFn = Callable[..., Awaitable[Any]]

TASKS: dict[str, TaskFn] = {
    "domain__watch_savings_pools_task": domain__watch_savings_pools_task,
    "domain__index_savings_pools_once_task": domain__index_savings_pools_once_task,
    "domain__indexer_status_task": domain__indexer_status_task,
    "domain__init_store_task": domain__init_store_task,
}
