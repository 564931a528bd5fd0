# taskhub/services/progress.py
"""
Progress engine for tasks.

A task's ``progress`` and ``status`` are derived from the sub-tasks stored in
its ``days``. They are recomputed on every sub-task write and persisted in the
same row update as the change that triggered them.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple

from taskhub.models.task import Task, TaskStatus
from taskhub.schemas.task import Day, SubTask


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer percentage numerator/denominator, halves rounded up; 0 for an empty denominator"""
    if denominator <= 0:
        return 0
    return (200 * numerator + denominator) // (2 * denominator)


def flatten_sub_tasks(days: Iterable[Day]) -> List[Tuple[Day, SubTask]]:
    """Sub-tasks in day order, then in their order within the day"""
    return [(day, sub_task) for day in days for sub_task in day.sub_tasks]


def compute_progress(days: Iterable[Day], today: Optional[date] = None) -> Tuple[int, TaskStatus]:
    """Return (progress, status) for the given day entries"""
    today = today or date.today()
    entries = flatten_sub_tasks(days)
    if not entries:
        return 0, TaskStatus.PENDING

    completed = sum(1 for _, s in entries if s.status == TaskStatus.COMPLETED)
    progress = round_half_up(completed, len(entries))

    if progress == 100:
        return progress, TaskStatus.COMPLETED
    if any(s.status == TaskStatus.DELAYED and day.date < today for day, s in entries):
        return progress, TaskStatus.DELAYED
    if any(s.status in (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED) for _, s in entries):
        return progress, TaskStatus.IN_PROGRESS
    return progress, TaskStatus.PENDING


def stamp_completion(sub_task: SubTask, now: Optional[datetime] = None) -> None:
    """Keep completed_at in line with the sub-task's own status"""
    if sub_task.status == TaskStatus.COMPLETED:
        if sub_task.completed_at is None:
            sub_task.completed_at = now or datetime.utcnow()
    else:
        sub_task.completed_at = None


def load_days(raw: Optional[list]) -> List[Day]:
    return [Day.model_validate(item) for item in (raw or [])]


def dump_days(days: Iterable[Day]) -> list:
    return [day.model_dump(mode="json") for day in days]


def apply_progress(
    task: Task,
    days: List[Day],
    trigger: Optional[SubTask] = None,
    now: Optional[datetime] = None,
    today: Optional[date] = None,
) -> Tuple[int, TaskStatus]:
    """Write days, progress and status onto the task row (not committed).

    When the task moves into ``completed``, the sub-task that caused it gets a
    ``completed_at`` stamp if it has none yet.
    """
    now = now or datetime.utcnow()
    previous = task.status
    progress, status = compute_progress(days, today=today)

    if (
        status == TaskStatus.COMPLETED
        and previous != TaskStatus.COMPLETED.value
        and trigger is not None
        and trigger.completed_at is None
    ):
        trigger.completed_at = now

    task.days = dump_days(days)
    task.progress = progress
    task.status = status.value
    return progress, status
