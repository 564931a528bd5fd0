# taskhub/services/subtasks.py
from datetime import datetime
from typing import List, Tuple

from taskhub.schemas.task import Day, SubTask, SubTaskCreate, SubTaskUpdate
from taskhub.services.progress import stamp_completion
from taskhub.utils.errors import NotFound


def add_sub_task(days: List[Day], payload: SubTaskCreate) -> SubTask:
    """Append a sub-task to the day for payload.date, creating the day if needed"""
    sub_task = SubTask(
        description=payload.description,
        hours_spent=payload.hours_spent,
        remarks=payload.remarks,
        status=payload.status,
    )
    stamp_completion(sub_task)

    day = next((d for d in days if d.date == payload.date), None)
    if day is None:
        day = Day(date=payload.date, sub_tasks=[])
        days.append(day)
        days.sort(key=lambda d: d.date)
    day.sub_tasks.append(sub_task)
    return sub_task


def find_sub_task(days: List[Day], sub_task_id: str) -> Tuple[Day, SubTask]:
    for day in days:
        for sub_task in day.sub_tasks:
            if sub_task.id == sub_task_id:
                return day, sub_task
    raise NotFound("Sub-task not found")


def update_sub_task(days: List[Day], sub_task_id: str, payload: SubTaskUpdate) -> SubTask:
    _, sub_task = find_sub_task(days, sub_task_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is None and key != "remarks":
            continue
        setattr(sub_task, key, value)
    sub_task.updated_at = datetime.utcnow()
    stamp_completion(sub_task)
    return sub_task


def remove_sub_task(days: List[Day], sub_task_id: str) -> SubTask:
    """Remove the sub-task; a day left without sub-tasks is dropped"""
    day, sub_task = find_sub_task(days, sub_task_id)
    day.sub_tasks.remove(sub_task)
    if not day.sub_tasks:
        days.remove(day)
    return sub_task
