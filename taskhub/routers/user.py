# taskhub/routers/user.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskhub.database import get_db
from taskhub.models import Company, User, UserRole
from taskhub.schemas.user import UserCreate, UserOut, UserUpdate
from taskhub.utils.auth import get_current_user, require_roles
from taskhub.utils.errors import Conflict, Forbidden, NotFound, ValidationError
from taskhub.utils.visibility import VisibilityScope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])

user_managers = require_roles(UserRole.ADMIN, UserRole.MANAGER)


def adjust_user_count(db: Session, company_id: Optional[int], delta: int) -> None:
    if company_id is None:
        return
    db.query(Company).filter(Company.id == company_id).update(
        {Company.total_users: Company.total_users + delta},
        synchronize_session=False,
    )


def ensure_unique_email(db: Session, email: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise Conflict("Email already registered")


def commit_or_conflict(db: Session) -> None:
    """Commit; a unique email taken by a concurrent request becomes a Conflict"""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Email already registered")


def check_target(db: Session, scope: VisibilityScope, role: str, company_id: Optional[int]) -> None:
    """Validate the role/company a user is being created with or moved to"""
    if company_id is None:
        if role != UserRole.ADMIN.value:
            raise ValidationError("Managers and staff must belong to a company")
    elif not db.query(Company).filter(Company.id == company_id).first():
        raise NotFound("Company not found")

    if scope.is_manager:
        if role == UserRole.ADMIN.value:
            raise Forbidden("Managers cannot grant the admin role")
        if company_id != scope.company_id:
            raise Forbidden("Managers can only manage users of their own company")


@router.get("/")
def get_users(
    search: Optional[str] = None,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Users visible to the caller, newest first"""
    scope = VisibilityScope(current_user)
    users = (
        db.query(User)
        .filter(scope.user_filters(search=search, role=role, is_active=is_active))
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )
    return {"success": True, "count": len(users), "users": [UserOut.model_validate(u) for u in users]}


@router.get("/me")
def get_current_user_info(current_user: User = Depends(get_current_user)):
    return {"success": True, "user": UserOut.model_validate(current_user)}


@router.get("/{user_id}")
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    scope = VisibilityScope(current_user)
    user = db.query(User).filter(User.id == user_id, scope.user_predicate()).first()
    if not user:
        raise NotFound("User not found")
    return {"success": True, "user": UserOut.model_validate(user)}


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_user(
    user: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(user_managers),
):
    """Admins create users anywhere; managers only inside their company"""
    scope = VisibilityScope(current_user)
    company_id = user.company_id
    if scope.is_manager and company_id is None:
        company_id = scope.company_id
    check_target(db, scope, user.role, company_id)

    ensure_unique_email(db, user.email)

    db_user = User(
        name=user.name,
        email=user.email,
        role=user.role,
        company_id=company_id,
        is_active=user.is_active,
    )
    db.add(db_user)
    adjust_user_count(db, company_id, 1)
    commit_or_conflict(db)
    db.refresh(db_user)

    logger.info(f"User {db_user.id} ({db_user.role}) created by user {current_user.id}")
    return {"success": True, "user": UserOut.model_validate(db_user)}


@router.put("/{user_id}")
def update_user(
    user_id: int,
    user_update: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(user_managers),
):
    scope = VisibilityScope(current_user)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    if not scope.can_manage_user(user):
        raise Forbidden("Not authorized to update this user")

    update_data = {
        key: value
        for key, value in user_update.model_dump(exclude_unset=True).items()
        if value is not None or key == "company_id"
    }
    role = update_data.get("role", user.role)
    company_id = update_data.get("company_id", user.company_id)
    check_target(db, scope, role, company_id)

    if "email" in update_data:
        ensure_unique_email(db, update_data["email"], exclude_id=user.id)

    if company_id != user.company_id:
        adjust_user_count(db, user.company_id, -1)
        adjust_user_count(db, company_id, 1)

    for key, value in update_data.items():
        setattr(user, key, value)

    commit_or_conflict(db)
    db.refresh(user)
    return {"success": True, "user": UserOut.model_validate(user)}


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(user_managers),
):
    scope = VisibilityScope(current_user)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    if user.id == current_user.id:
        raise Conflict("You cannot delete your own account")
    if not scope.can_manage_user(user):
        raise Forbidden("Not authorized to delete this user")
    if user.assigned_tasks or user.created_tasks:
        raise Conflict("User still has tasks. Reassign or delete them first.")

    adjust_user_count(db, user.company_id, -1)
    db.delete(user)
    db.commit()

    logger.info(f"User {user_id} deleted by user {current_user.id}")
    return {"success": True, "message": "User deleted successfully"}
