# taskhub/utils/visibility.py
import logging
from typing import Optional

from sqlalchemy import and_, true
from sqlalchemy.sql.elements import ColumnElement

from taskhub.models import Company, Task, User, UserRole
from taskhub.utils.errors import Forbidden

logger = logging.getLogger(__name__)


class VisibilityScope:
    """Role-based query predicates for one caller.

    The caller's role is resolved once; every predicate is the scope ANDed
    with any caller-supplied filters, so a filter can narrow the scope but
    never widen it.

    - admin: everything
    - manager: rows belonging to their own company
    - staff: no company management; tasks assigned to them; only themselves
      among users
    """

    def __init__(self, caller: User):
        try:
            self.role = UserRole(caller.role)
        except ValueError:
            raise Forbidden(f"Unknown role '{caller.role}'") from None
        self.user_id = caller.id
        self.company_id = caller.company_id

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role is UserRole.MANAGER

    # Scope predicates

    def company_predicate(self) -> ColumnElement:
        if self.is_admin:
            return true()
        if self.is_manager:
            return Company.id == self.company_id
        logger.warning(f"Staff user {self.user_id} reached company management")
        raise Forbidden("Staff users cannot manage companies")

    def task_predicate(self) -> ColumnElement:
        if self.is_admin:
            return true()
        if self.is_manager:
            return Task.company_id == self.company_id
        return and_(Task.company_id == self.company_id, Task.assigned_to == self.user_id)

    def user_predicate(self) -> ColumnElement:
        if self.is_admin:
            return true()
        if self.is_manager:
            return User.company_id == self.company_id
        return User.id == self.user_id

    # Scope plus caller filters

    def company_filters(self, search: Optional[str] = None, is_active: Optional[bool] = None) -> ColumnElement:
        clauses = [self.company_predicate()]
        if search:
            clauses.append(Company.name.icontains(search, autoescape=True))
        if is_active is not None:
            clauses.append(Company.is_active == is_active)
        return and_(*clauses)

    def task_filters(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assigned_to: Optional[int] = None,
    ) -> ColumnElement:
        clauses = [self.task_predicate()]
        if search:
            clauses.append(Task.title.icontains(search, autoescape=True))
        if status:
            clauses.append(Task.status == status)
        if priority:
            clauses.append(Task.priority == priority)
        if assigned_to is not None:
            clauses.append(Task.assigned_to == assigned_to)
        return and_(*clauses)

    def user_filters(
        self,
        search: Optional[str] = None,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> ColumnElement:
        clauses = [self.user_predicate()]
        if search:
            clauses.append(User.name.icontains(search, autoescape=True))
        if role:
            clauses.append(User.role == role)
        if is_active is not None:
            clauses.append(User.is_active == is_active)
        return and_(*clauses)

    # Single-row checks

    def can_view_company(self, company: Company) -> bool:
        return self.is_admin or (self.is_manager and company.id == self.company_id)

    def can_manage_company(self, company: Company) -> bool:
        """Update/delete: admins, or whoever created the company"""
        return self.is_admin or company.created_by == self.user_id

    def can_view_task(self, task: Task) -> bool:
        if self.is_admin:
            return True
        if task.company_id != self.company_id:
            return False
        return self.is_manager or task.assigned_to == self.user_id

    def can_edit_task(self, task: Task) -> bool:
        """Task-level fields: admins and managers of the task's company"""
        return self.is_admin or (self.is_manager and task.company_id == self.company_id)

    def can_edit_sub_tasks(self, task: Task) -> bool:
        """Day entries: task editors plus the assignee"""
        return self.can_edit_task(task) or (
            task.assigned_to == self.user_id and task.company_id == self.company_id
        )

    def can_manage_user(self, user: User) -> bool:
        if self.is_admin:
            return True
        return self.is_manager and self.company_id is not None and user.company_id == self.company_id
