# taskhub/routers/company.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload, selectinload, sessionmaker
from starlette.concurrency import run_in_threadpool

from taskhub.database import get_db, get_session_factory
from taskhub.models import Company, User, UserRole
from taskhub.schemas.company import (
    CompanyCreate, CompanyUpdate, CompanyOut, CompanyDetailedOut,
    CompanyMinimal, CompanyDropdown, ReturnType,
)
from taskhub.services.stats_service import compute_stats
from taskhub.utils.auth import require_roles
from taskhub.utils.errors import Conflict, Forbidden, NotFound
from taskhub.utils.visibility import VisibilityScope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/companies", tags=["companies"])

# Staff never reach company management
company_access = require_roles(UserRole.ADMIN, UserRole.MANAGER)


def get_company_or_404(db: Session, company_id: int) -> Company:
    company = db.query(Company).options(joinedload(Company.creator)).filter(Company.id == company_id).first()
    if not company:
        raise NotFound("Company not found")
    return company


def ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Company).filter(Company.name == name)
    if exclude_id is not None:
        query = query.filter(Company.id != exclude_id)
    if query.first():
        raise Conflict("Company already exists")


def commit_or_conflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Company already exists")


@router.post("/", status_code=status.HTTP_201_CREATED)
def create_company(
    company: CompanyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(company_access),
):
    """Create a company owned by the caller"""
    ensure_unique_name(db, company.name)

    db_company = Company(**company.model_dump(), created_by=current_user.id)
    db.add(db_company)
    commit_or_conflict(db)
    db.refresh(db_company)

    logger.info(f"Company {db_company.id} ({db_company.name}) created by user {current_user.id}")
    return {"success": True, "company": CompanyOut.model_validate(db_company)}


@router.get("/")
def get_companies(
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    return_type: ReturnType = "full",
    db: Session = Depends(get_db),
    current_user: User = Depends(company_access),
):
    """List companies in the caller's scope.

    ``return_type`` only shapes the response:
    - full: every field plus the creator
    - detailed: full plus the company's users and tasks
    - minimal: flat summary with a user count
    - dropdown: label/value pairs
    """
    scope = VisibilityScope(current_user)

    options = [joinedload(Company.creator)]
    if return_type == "detailed":
        options += [selectinload(Company.users), selectinload(Company.tasks)]

    companies = (
        db.query(Company)
        .options(*options)
        .filter(scope.company_filters(search=search, is_active=is_active))
        .order_by(Company.created_at.desc(), Company.id.desc())
        .all()
    )

    if return_type == "minimal":
        user_counts = dict(
            db.query(User.company_id, func.count(User.id))
            .filter(User.company_id.in_([c.id for c in companies]))
            .group_by(User.company_id)
            .all()
        )
        formatted = [
            CompanyMinimal(
                id=c.id,
                name=c.name,
                email=c.email,
                phone=c.phone,
                is_active=c.is_active,
                user_count=user_counts.get(c.id, 0),
                created_by=c.creator.name if c.creator else "Unknown",
            )
            for c in companies
        ]
    elif return_type == "dropdown":
        formatted = [CompanyDropdown(label=c.name, value=c.id, is_active=c.is_active) for c in companies]
    elif return_type == "detailed":
        formatted = [CompanyDetailedOut.model_validate(c) for c in companies]
    else:
        formatted = [CompanyOut.model_validate(c) for c in companies]

    return {
        "success": True,
        "count": len(companies),
        "companies": formatted,
        "user_role": current_user.role,
        "filters": {
            "search": search or "",
            "is_active": "all" if is_active is None else is_active,
            "return_type": return_type,
        },
    }


@router.get("/{company_id}")
def get_company(
    company_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(company_access),
):
    company = get_company_or_404(db, company_id)
    if not VisibilityScope(current_user).can_view_company(company):
        raise NotFound("Company not found")
    return {"success": True, "company": CompanyOut.model_validate(company)}


@router.put("/{company_id}")
def update_company(
    company_id: int,
    company_update: CompanyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(company_access),
):
    company = get_company_or_404(db, company_id)

    # Check permission
    if not VisibilityScope(current_user).can_manage_company(company):
        logger.warning(f"User {current_user.id} refused update of company {company_id}")
        raise Forbidden("Not authorized to update this company")

    update_data = company_update.model_dump(exclude_unset=True)
    if update_data.get("name") is None:
        update_data.pop("name", None)
    if update_data.get("is_active") is None:
        update_data.pop("is_active", None)
    if "name" in update_data:
        ensure_unique_name(db, update_data["name"], exclude_id=company.id)

    for key, value in update_data.items():
        setattr(company, key, value)

    commit_or_conflict(db)
    db.refresh(company)
    return {"success": True, "company": CompanyOut.model_validate(company)}


@router.delete("/{company_id}")
def delete_company(
    company_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(company_access),
):
    company = get_company_or_404(db, company_id)

    # Check permission
    if not VisibilityScope(current_user).can_manage_company(company):
        logger.warning(f"User {current_user.id} refused deletion of company {company_id}")
        raise Forbidden("Not authorized to delete this company")

    users_count = db.query(func.count(User.id)).filter(User.company_id == company.id).scalar()
    if users_count > 0:
        raise Conflict("Cannot delete company with active users. Remove users first.")

    db.delete(company)
    db.commit()

    logger.info(f"Company {company_id} deleted by user {current_user.id}")
    return {"success": True, "message": "Company deleted successfully"}


@router.get("/{company_id}/stats")
async def get_company_stats(
    company_id: int,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    current_user: User = Depends(company_access),
):
    """Dashboard statistics for one company"""
    # The aggregator returns zeros for an unknown id, so check first
    company = await run_in_threadpool(db.get, Company, company_id)
    if not company:
        raise NotFound("Company not found")
    if not VisibilityScope(current_user).can_view_company(company):
        raise Forbidden("Not authorized to view statistics for this company")

    stats = await compute_stats(session_factory, company_id)
    return {"success": True, "stats": stats}
