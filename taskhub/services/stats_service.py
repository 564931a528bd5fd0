# taskhub/services/stats_service.py
"""
Company dashboard statistics.

Each figure comes from its own read on its own session. None depends on
another, so they are fanned out on the threadpool and joined before the
report is built.
"""

import asyncio
import logging
from typing import Callable, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, sessionmaker
from starlette.concurrency import run_in_threadpool

from taskhub.config.settings import settings
from taskhub.models import Task, TaskStatus, User
from taskhub.schemas.stats import CompanyStats, RecentTask, RoleCount
from taskhub.services.progress import round_half_up
from taskhub.utils.errors import InternalError

logger = logging.getLogger(__name__)


def count_users(db: Session, company_id: int) -> int:
    return db.query(func.count(User.id)).filter(User.company_id == company_id).scalar()


def count_active_users(db: Session, company_id: int) -> int:
    return db.query(func.count(User.id)).filter(
        User.company_id == company_id,
        User.is_active == True,
    ).scalar()


def count_tasks(db: Session, company_id: int) -> int:
    return db.query(func.count(Task.id)).filter(Task.company_id == company_id).scalar()


def count_tasks_with_status(status: TaskStatus) -> Callable[[Session, int], int]:
    def query(db: Session, company_id: int) -> int:
        return db.query(func.count(Task.id)).filter(
            Task.company_id == company_id,
            Task.status == status.value,
        ).scalar()

    return query


def role_distribution(db: Session, company_id: int) -> List[RoleCount]:
    rows = (
        db.query(User.role, func.count(User.id))
        .filter(User.company_id == company_id)
        .group_by(User.role)
        .all()
    )
    return [RoleCount(role=role, count=count) for role, count in rows]


def recent_tasks(db: Session, company_id: int) -> List[RecentTask]:
    tasks = (
        db.query(Task)
        .options(joinedload(Task.assignee), joinedload(Task.assigner))
        .filter(Task.company_id == company_id)
        .order_by(Task.created_at.desc(), Task.id.desc())
        .limit(settings.RECENT_TASKS_LIMIT)
        .all()
    )
    return [
        RecentTask(
            id=task.id,
            title=task.title,
            status=task.status,
            progress=task.progress,
            assigned_to=task.assignee.name if task.assignee else None,
            assigned_by=task.assigner.name if task.assigner else None,
            created_at=task.created_at,
        )
        for task in tasks
    ]


STATS_QUERIES: Dict[str, Callable[[Session, int], object]] = {
    "total_users": count_users,
    "active_users": count_active_users,
    "total_tasks": count_tasks,
    "completed_tasks": count_tasks_with_status(TaskStatus.COMPLETED),
    "pending_tasks": count_tasks_with_status(TaskStatus.PENDING),
    "in_progress_tasks": count_tasks_with_status(TaskStatus.IN_PROGRESS),
    "user_role_distribution": role_distribution,
    "recent_tasks": recent_tasks,
}


def run_query(session_factory: sessionmaker, query: Callable[[Session, int], object], company_id: int):
    with session_factory() as db:
        return query(db, company_id)


def build_report(results: Dict[str, object]) -> CompanyStats:
    total = results["total_tasks"]
    completed = results["completed_tasks"]
    pending = results["pending_tasks"]
    in_progress = results["in_progress_tasks"]
    return CompanyStats(
        total_users=results["total_users"],
        active_users=results["active_users"],
        total_tasks=total,
        completed_tasks=completed,
        pending_tasks=pending,
        in_progress_tasks=in_progress,
        delayed_tasks=total - (completed + pending + in_progress),
        completion_rate=round_half_up(completed, total),
        user_role_distribution=results["user_role_distribution"],
        recent_tasks=results["recent_tasks"],
    )


async def compute_stats(session_factory: sessionmaker, company_id: int) -> CompanyStats:
    """Build the dashboard report for one company; read-only.

    Does not check that the company exists: an unknown id yields zeros.
    """
    names = list(STATS_QUERIES)
    try:
        results = await asyncio.gather(*(
            run_in_threadpool(run_query, session_factory, STATS_QUERIES[name], company_id)
            for name in names
        ))
    except Exception as e:
        logger.error(f"Stats query failed for company {company_id}: {str(e)}")
        raise InternalError("Could not compute company statistics") from e

    return build_report(dict(zip(names, results)))
