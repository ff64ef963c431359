from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from attendance_api.api.deps import db_session, get_current_user
from attendance_api.core.clock import resolve_zone
from attendance_api.core.exceptions import ConflictError, NotFoundError
from attendance_api.core.policy import ADMINS, SUPERADMIN_ONLY, authorize
from attendance_api.core.security import hash_password
from attendance_api.db.models import Company, User
from attendance_api.schemas.common import Envelope
from attendance_api.schemas.company import (
    CompanyRegister,
    CompanyRegistered,
    CompanyResponse,
    CompanyUpdate,
)
from attendance_api.schemas.user import UserSummary

router = APIRouter(tags=["companies"])
logger = logging.getLogger("attendance.companies")


def _own_company_or_404(user: User) -> Company:
    if user.company is None:
        raise NotFoundError("Company not found")
    return user.company


@router.post("/companies/register", response_model=Envelope[CompanyRegistered], status_code=201)
def register_company(payload: CompanyRegister, db: Session = db_session()):
    if db.scalar(select(Company).where(Company.email == payload.company_email)) is not None:
        raise ConflictError("The company email has already been taken")
    if db.scalar(select(User).where(User.email == payload.admin_email)) is not None:
        raise ConflictError("The admin email has already been taken")

    company = Company(
        name=payload.company_name,
        email=payload.company_email,
        address=payload.company_address,
        phone=payload.company_phone,
        timezone=resolve_zone(payload.timezone).key,
        status="active",
    )
    db.add(company)
    db.flush()

    admin = User(
        name=payload.admin_name,
        email=payload.admin_email,
        password_hash=hash_password(payload.admin_password),
        role=payload.role,
        company_id=company.id,
    )
    db.add(admin)
    db.commit()
    db.refresh(company)
    db.refresh(admin)
    logger.info("Registered company %s with admin user %s", company.id, admin.id)

    return Envelope(
        message="Company and admin user registered successfully",
        data=CompanyRegistered(
            company=CompanyResponse.model_validate(company),
            admin_user=UserSummary.model_validate(admin),
        ),
    )


@router.get("/company/details", response_model=Envelope[CompanyResponse])
def company_details(user: User = Depends(get_current_user)):
    return Envelope(data=CompanyResponse.model_validate(_own_company_or_404(user)))


@router.put("/company/update", response_model=Envelope[CompanyResponse])
def update_company(
    payload: CompanyUpdate,
    user: User = Depends(get_current_user),
    db: Session = db_session(),
):
    company = _own_company_or_404(user)
    authorize(user, ADMINS, company_id=company.id, message="Unauthorized to update company details")

    changes = payload.model_dump(exclude_unset=True)
    if "email" in changes and changes["email"] != company.email:
        clash = db.scalar(select(Company).where(Company.email == changes["email"], Company.id != company.id))
        if clash is not None:
            raise ConflictError("The email has already been taken")
    if "timezone" in changes:
        changes["timezone"] = resolve_zone(changes["timezone"]).key
    for field, value in changes.items():
        setattr(company, field, value)
    db.commit()
    db.refresh(company)
    return Envelope(message="Company updated successfully", data=CompanyResponse.model_validate(company))


@router.get("/companies", response_model=Envelope[list[CompanyResponse]])
def list_companies(user: User = Depends(get_current_user), db: Session = db_session()):
    authorize(user, SUPERADMIN_ONLY, message="Unauthorized to view all companies")
    rows = db.scalars(select(Company).order_by(Company.id)).all()
    return Envelope(data=[CompanyResponse.model_validate(row) for row in rows])


@router.get("/companies/{company_id}", response_model=Envelope[CompanyResponse])
def show_company(company_id: int, user: User = Depends(get_current_user), db: Session = db_session()):
    authorize(user, SUPERADMIN_ONLY, message="Unauthorized to view company details")
    company = db.get(Company, company_id)
    if company is None:
        raise NotFoundError("Company not found")
    return Envelope(data=CompanyResponse.model_validate(company))
