# taskhub/routers/task.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from taskhub.database import get_db
from taskhub.models import Company, Task, User, UserRole
from taskhub.models.task import TaskStatus, TaskPriority
from taskhub.schemas.task import TaskCreate, TaskUpdate, TaskOut, SubTaskCreate, SubTaskUpdate
from taskhub.services.progress import apply_progress, load_days
from taskhub.services.subtasks import add_sub_task, update_sub_task, remove_sub_task
from taskhub.utils.auth import get_current_user, require_roles
from taskhub.utils.errors import Conflict, Forbidden, NotFound, ValidationError
from taskhub.utils.visibility import VisibilityScope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])

task_managers = require_roles(UserRole.ADMIN, UserRole.MANAGER)


def load_task(db: Session, task_id: int, scope: VisibilityScope) -> Task:
    task = db.query(Task).options(
        joinedload(Task.assignee),
        joinedload(Task.assigner),
    ).filter(Task.id == task_id).first()
    if not task or not scope.can_view_task(task):
        raise NotFound("Task not found")
    return task


def check_assignee(db: Session, user_id: int, company_id: int) -> User:
    assignee = db.query(User).filter(User.id == user_id).first()
    if not assignee:
        raise NotFound("Assigned user not found")
    if assignee.company_id != company_id:
        raise ValidationError("Assigned user does not belong to the task's company")
    if not assignee.is_active:
        raise ValidationError("Assigned user is not active")
    return assignee


def commit_task(db: Session, task: Task) -> None:
    """Commit a task write; a concurrent write on the same row wins and this one is refused"""
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning(f"Concurrent modification of task {task.id}")
        raise Conflict("Task was modified concurrently, reload and try again")
    db.refresh(task)


def task_response(task: Task) -> dict:
    return {"success": True, "task": TaskOut.model_validate(task)}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(task_managers),
):
    scope = VisibilityScope(current_user)
    company_id = task.company_id if task.company_id is not None else current_user.company_id
    if company_id is None:
        raise ValidationError("company_id is required")
    if scope.is_manager and company_id != current_user.company_id:
        raise Forbidden("Managers can only create tasks for their own company")
    if not db.query(Company).filter(Company.id == company_id).first():
        raise NotFound("Company not found")
    check_assignee(db, task.assigned_to, company_id)

    db_task = Task(
        title=task.title,
        description=task.description,
        company_id=company_id,
        assigned_to=task.assigned_to,
        assigned_by=current_user.id,
        start_date=task.start_date,
        end_date=task.end_date,
        priority=task.priority.value,
        tags=task.tags,
        status=TaskStatus.PENDING.value,
        progress=0,
        days=[],
    )
    db.add(db_task)
    db.commit()
    db.refresh(db_task)

    logger.info(f"Task {db_task.id} created by user {current_user.id} for user {task.assigned_to}")
    return task_response(db_task)


@router.get("/")
def get_tasks(
    search: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    assigned_to: Optional[int] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Tasks in the caller's scope, newest first.

    - admin: all tasks
    - manager: tasks of their company
    - staff: tasks assigned to them
    """
    scope = VisibilityScope(current_user)
    criteria = scope.task_filters(
        search=search,
        status=status.value if status else None,
        priority=priority.value if priority else None,
        assigned_to=assigned_to,
    )
    query = db.query(Task).filter(criteria)
    total = query.count()
    tasks = (
        query.options(joinedload(Task.assignee), joinedload(Task.assigner))
        .order_by(Task.created_at.desc(), Task.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return {
        "success": True,
        "count": len(tasks),
        "total": total,
        "tasks": [TaskOut.model_validate(t) for t in tasks],
    }


@router.get("/{task_id}")
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return task_response(load_task(db, task_id, VisibilityScope(current_user)))


@router.put("/{task_id}")
def update_task(
    task_id: int,
    task_update: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update task-level fields.

    Progress is not recomputed here; ``status`` and ``progress`` are only
    changed when the caller overrides them explicitly.
    """
    scope = VisibilityScope(current_user)
    task = load_task(db, task_id, scope)
    if not scope.can_edit_task(task):
        raise Forbidden("Not authorized to update this task")

    update_data = {k: v for k, v in task_update.model_dump(exclude_unset=True).items() if v is not None}

    start_date = update_data.get("start_date", task.start_date)
    end_date = update_data.get("end_date", task.end_date)
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")
    if "assigned_to" in update_data:
        check_assignee(db, update_data["assigned_to"], task.company_id)

    for key, value in update_data.items():
        if isinstance(value, (TaskStatus, TaskPriority)):
            value = value.value
        setattr(task, key, value)

    commit_task(db, task)
    return task_response(task)


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scope = VisibilityScope(current_user)
    task = load_task(db, task_id, scope)
    if not scope.can_edit_task(task):
        raise Forbidden("Not authorized to delete this task")

    db.delete(task)
    db.commit()

    logger.info(f"Task {task_id} deleted by user {current_user.id}")
    return {"success": True, "message": "Task deleted successfully"}


# Day entries and sub-tasks. Every change rewrites days, progress and status
# in a single versioned update of the task row.

def editable_task(db: Session, task_id: int, current_user: User) -> Task:
    scope = VisibilityScope(current_user)
    task = load_task(db, task_id, scope)
    if not scope.can_edit_sub_tasks(task):
        raise Forbidden("Not authorized to change this task's sub-tasks")
    return task


@router.post("/{task_id}/subtasks", status_code=status.HTTP_201_CREATED)
def create_sub_task(
    task_id: int,
    payload: SubTaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = editable_task(db, task_id, current_user)
    days = load_days(task.days)
    sub_task = add_sub_task(days, payload)
    apply_progress(task, days, trigger=sub_task)
    commit_task(db, task)
    return {**task_response(task), "sub_task_id": sub_task.id}


@router.put("/{task_id}/subtasks/{sub_task_id}")
def edit_sub_task(
    task_id: int,
    sub_task_id: str,
    payload: SubTaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = editable_task(db, task_id, current_user)
    days = load_days(task.days)
    sub_task = update_sub_task(days, sub_task_id, payload)
    apply_progress(task, days, trigger=sub_task)
    commit_task(db, task)
    return task_response(task)


@router.delete("/{task_id}/subtasks/{sub_task_id}")
def delete_sub_task(
    task_id: int,
    sub_task_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    task = editable_task(db, task_id, current_user)
    days = load_days(task.days)
    remove_sub_task(days, sub_task_id)
    apply_progress(task, days)
    commit_task(db, task)
    return task_response(task)
