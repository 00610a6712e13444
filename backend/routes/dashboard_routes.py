import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth.dependencies import ReviewSession, require_panelist
from backend.database import ensure_applicant_schema, get_db
from backend.models.applicant import Applicant
from backend.review.departments import (
    DEPARTMENT_DESCRIPTIONS,
    DEPARTMENT_LABELS,
    Department,
    department_label,
    listing_route,
    status_label,
)
from backend.review.listing import ApplicantListing, StatusFilter

router = APIRouter(tags=['dashboard'])

logger = logging.getLogger(__name__)

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


class DepartmentResponse(BaseModel):
    id: str
    name: str
    description: str | None = None


class DashboardResponse(BaseModel):
    email: str
    role: str | None
    departments: list[DepartmentResponse]


class ApplicantSummaryResponse(BaseModel):
    id: int
    name: str | None = None
    email: str | None = None
    contact: str | None = None
    regno: str | None = None
    dep: str | None = None
    shortlisted: bool | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class StatusCountsResponse(BaseModel):
    total: int
    shortlisted: int
    rejected: int
    pending: int


class ApplicantListResponse(BaseModel):
    department: DepartmentResponse
    search: str
    status: StatusFilter
    applicants: list[ApplicantSummaryResponse]
    counts: StatusCountsResponse
    empty_message: str | None = None


class FormDataResponse(BaseModel):
    questions: dict[str, Any] = {}
    common_questions: dict[str, Any] = {}


class ApplicantDetailResponse(ApplicantSummaryResponse):
    department_name: str
    status_label: str
    formdata: FormDataResponse


class BulkStatusUpdateRequest(BaseModel):
    applicant_ids: list[int]
    shortlisted: bool | None

    @field_validator('applicant_ids')
    @classmethod
    def validate_applicant_ids(cls, value: list[int]) -> list[int]:
        return sorted(set(value))


class BulkStatusUpdateResponse(BaseModel):
    updated_ids: list[int]
    shortlisted: bool | None
    status_label: str


class StatusUpdateRequest(BaseModel):
    shortlisted: bool | None


def ensure_database_ready() -> None:
    try:
        ensure_applicant_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def build_department(dept: Department) -> DepartmentResponse:
    return DepartmentResponse(
        id=dept.value,
        name=DEPARTMENT_LABELS[dept],
        description=DEPARTMENT_DESCRIPTIONS[dept],
    )


def build_detail(applicant: Applicant) -> ApplicantDetailResponse:
    formdata = applicant.formdata or {}
    return ApplicantDetailResponse(
        id=applicant.id,
        name=applicant.name,
        email=applicant.email,
        contact=applicant.contact,
        regno=applicant.regno,
        dep=applicant.dep,
        shortlisted=applicant.shortlisted,
        created_at=applicant.created_at,
        department_name=department_label(applicant.dep),
        status_label=status_label(applicant.shortlisted),
        formdata=FormDataResponse(
            questions=formdata.get('questions') or {},
            common_questions=formdata.get('common_questions') or {},
        ),
    )


def get_department_applicant(dept: Department, applicant_id: int, db: Session) -> Applicant:
    applicant = db.query(Applicant).filter(
        Applicant.id == applicant_id,
        Applicant.dep == dept.value,
    ).first()

    if applicant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={'message': 'Applicant not found.', 'redirect': listing_route(dept)},
        )

    return applicant


@router.get('/', response_model=DashboardResponse)
def dashboard(session: ReviewSession = Depends(require_panelist)):
    return DashboardResponse(
        email=session.email,
        role=session.role,
        departments=[build_department(dept) for dept in Department],
    )


@router.get('/department/{dept}', response_model=ApplicantListResponse)
def list_department_applicants(
    dept: Department,
    search: str = Query(default=''),
    status_filter: StatusFilter = Query(default=StatusFilter.ALL, alias='status'),
    session: ReviewSession = Depends(require_panelist),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        applicants = db.query(Applicant).filter(
            Applicant.dep == dept.value,
        ).order_by(Applicant.created_at.desc(), Applicant.id.desc()).all()
    except SQLAlchemyError as exc:
        logger.exception('Failed to load applicants for %s', dept.value)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc

    listing = ApplicantListing(applicants, search_term=search, status_filter=status_filter)

    return ApplicantListResponse(
        department=build_department(dept),
        search=search,
        status=listing.status_filter,
        applicants=[ApplicantSummaryResponse.model_validate(applicant) for applicant in listing.visible],
        counts=StatusCountsResponse(**listing.counts),
        empty_message=listing.empty_message,
    )


@router.patch('/department/{dept}/applicants/status', response_model=BulkStatusUpdateResponse)
def bulk_update_status(
    dept: Department,
    data: BulkStatusUpdateRequest,
    session: ReviewSession = Depends(require_panelist),
    db: Session = Depends(get_db),
):
    if not data.applicant_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Select at least one applicant.',
        )

    ensure_database_ready()

    try:
        found_ids = {
            applicant_id
            for (applicant_id,) in db.query(Applicant.id).filter(
                Applicant.id.in_(data.applicant_ids),
                Applicant.dep == dept.value,
            ).all()
        }

        missing_ids = sorted(set(data.applicant_ids) - found_ids)
        if missing_ids:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={
                    'message': 'Some applicants were not found in this department.',
                    'missing_ids': missing_ids,
                },
            )

        db.query(Applicant).filter(
            Applicant.id.in_(data.applicant_ids),
            Applicant.dep == dept.value,
        ).update({Applicant.shortlisted: data.shortlisted}, synchronize_session=False)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Bulk status update failed for %s', dept.value)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc

    logger.info(
        '%s marked %d %s applicants as %s',
        session.email,
        len(data.applicant_ids),
        dept.value,
        status_label(data.shortlisted),
    )

    return BulkStatusUpdateResponse(
        updated_ids=data.applicant_ids,
        shortlisted=data.shortlisted,
        status_label=status_label(data.shortlisted),
    )


@router.get('/department/{dept}/applicant/{applicant_id}', response_model=ApplicantDetailResponse)
def get_applicant(
    dept: Department,
    applicant_id: int,
    session: ReviewSession = Depends(require_panelist),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        applicant = get_department_applicant(dept, applicant_id, db)
    except SQLAlchemyError as exc:
        logger.exception('Failed to load applicant %s', applicant_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc

    return build_detail(applicant)


@router.patch('/department/{dept}/applicant/{applicant_id}/status', response_model=ApplicantDetailResponse)
def update_applicant_status(
    dept: Department,
    applicant_id: int,
    data: StatusUpdateRequest,
    session: ReviewSession = Depends(require_panelist),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        applicant = get_department_applicant(dept, applicant_id, db)

        if applicant.shortlisted is data.shortlisted:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f'Applicant is already {status_label(data.shortlisted).lower()}.',
            )

        applicant.shortlisted = data.shortlisted
        db.commit()
        db.refresh(applicant)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Status update failed for applicant %s', applicant_id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc

    logger.info('%s marked applicant %s as %s', session.email, applicant_id, status_label(applicant.shortlisted))

    return build_detail(applicant)
