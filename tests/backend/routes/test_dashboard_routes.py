import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from backend.models.applicant import Applicant
from backend.review.departments import Department
from backend.review.listing import EMPTY_LISTING_MESSAGE, StatusFilter
from backend.routes.dashboard_routes import (
    BulkStatusUpdateRequest,
    StatusUpdateRequest,
    bulk_update_status,
    dashboard,
    get_applicant,
    list_department_applicants,
    update_applicant_status,
)


def _list(db, session, dept=Department.TECH, search='', status_filter=StatusFilter.ALL):
    return list_department_applicants(
        dept=dept,
        search=search,
        status_filter=status_filter,
        session=session,
        db=db,
    )


def test_dashboard_lists_all_departments(panelist_session) -> None:
    response = dashboard(session=panelist_session)

    assert response.email == 'reviewer@example.edu'
    assert [(dept.id, dept.name) for dept in response.departments] == [
        ('tech', 'Technology'),
        ('cont', 'Content'),
        ('media', 'Media'),
        ('management', 'Management'),
    ]


def test_listing_returns_department_rows_newest_first(review_db, add_applicant, panelist_session) -> None:
    add_applicant('Asha Rao')
    add_applicant('Ben Okafor')
    add_applicant('Media Person', dep='media')
    add_applicant('Chen Wei')

    response = _list(review_db, panelist_session)

    assert [applicant.name for applicant in response.applicants] == ['Chen Wei', 'Ben Okafor', 'Asha Rao']
    assert response.department.name == 'Technology'
    assert response.empty_message is None


def test_listing_status_filter_pending_yields_single_row(review_db, add_applicant, panelist_session) -> None:
    add_applicant('Asha Rao', shortlisted=None)
    add_applicant('Ben Okafor', shortlisted=True)
    add_applicant('Chen Wei', shortlisted=False)

    response = _list(review_db, panelist_session, status_filter=StatusFilter.PENDING)

    assert [applicant.name for applicant in response.applicants] == ['Asha Rao']
    assert response.counts.model_dump() == {'total': 3, 'shortlisted': 1, 'rejected': 1, 'pending': 1}


def test_listing_search_without_match_has_empty_message(review_db, add_applicant, panelist_session) -> None:
    add_applicant('Asha Rao', shortlisted=None)
    add_applicant('Ben Okafor', shortlisted=True)
    add_applicant('Chen Wei', shortlisted=False)

    response = _list(review_db, panelist_session, search='smith')

    assert response.applicants == []
    assert response.empty_message == EMPTY_LISTING_MESSAGE
    assert response.counts.total == 3


def test_listing_search_matches_regno(review_db, add_applicant, panelist_session) -> None:
    add_applicant('Asha Rao', regno='21BCE1001')
    add_applicant('Ben Okafor', regno='21BIT2002')

    response = _list(review_db, panelist_session, search='bit2')

    assert [applicant.name for applicant in response.applicants] == ['Ben Okafor']


def test_bulk_update_persists_status_for_every_selected_id(review_db, add_applicant, panelist_session) -> None:
    first = add_applicant('Asha Rao')
    second = add_applicant('Ben Okafor', shortlisted=False)
    untouched = add_applicant('Chen Wei')

    response = bulk_update_status(
        dept=Department.TECH,
        data=BulkStatusUpdateRequest(applicant_ids=[second.id, first.id, first.id], shortlisted=True),
        session=panelist_session,
        db=review_db,
    )

    assert response.updated_ids == sorted([first.id, second.id])
    assert response.status_label == 'Shortlisted'
    review_db.expire_all()
    statuses = {applicant.id: applicant.shortlisted for applicant in review_db.query(Applicant).all()}
    assert statuses == {first.id: True, second.id: True, untouched.id: None}


def test_bulk_update_can_reset_to_pending(review_db, add_applicant, panelist_session) -> None:
    applicant = add_applicant('Asha Rao', shortlisted=True)

    bulk_update_status(
        dept=Department.TECH,
        data=BulkStatusUpdateRequest(applicant_ids=[applicant.id], shortlisted=None),
        session=panelist_session,
        db=review_db,
    )

    review_db.expire_all()
    assert review_db.get(Applicant, applicant.id).shortlisted is None


def test_bulk_update_rejects_ids_from_other_departments(review_db, add_applicant, panelist_session) -> None:
    tech = add_applicant('Asha Rao')
    media = add_applicant('Media Person', dep='media')

    with pytest.raises(HTTPException) as exception_info:
        bulk_update_status(
            dept=Department.TECH,
            data=BulkStatusUpdateRequest(applicant_ids=[tech.id, media.id], shortlisted=False),
            session=panelist_session,
            db=review_db,
        )

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail['missing_ids'] == [media.id]
    review_db.expire_all()
    assert review_db.get(Applicant, tech.id).shortlisted is None
    assert review_db.get(Applicant, media.id).shortlisted is None


def test_bulk_update_requires_a_selection(review_db, panelist_session) -> None:
    with pytest.raises(HTTPException) as exception_info:
        bulk_update_status(
            dept=Department.TECH,
            data=BulkStatusUpdateRequest(applicant_ids=[], shortlisted=True),
            session=panelist_session,
            db=review_db,
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Select at least one applicant.'


def test_bulk_update_request_requires_explicit_status() -> None:
    with pytest.raises(ValidationError):
        BulkStatusUpdateRequest(applicant_ids=[1])


def test_detail_returns_form_answers_verbatim(review_db, add_applicant, panelist_session) -> None:
    formdata = {
        'questions': {'Why Linux?': 'Because it is open.'},
        'common_questions': {'Year of study': '2'},
    }
    applicant = add_applicant('Asha Rao', dep='cont', formdata=formdata)

    response = get_applicant(
        dept=Department.CONTENT,
        applicant_id=applicant.id,
        session=panelist_session,
        db=review_db,
    )

    assert response.name == 'Asha Rao'
    assert response.department_name == 'Content'
    assert response.status_label == 'Pending'
    assert response.formdata.questions == formdata['questions']
    assert response.formdata.common_questions == formdata['common_questions']


def test_detail_tolerates_missing_formdata(review_db, add_applicant, panelist_session) -> None:
    applicant = add_applicant('Asha Rao', formdata=None)

    response = get_applicant(
        dept=Department.TECH,
        applicant_id=applicant.id,
        session=panelist_session,
        db=review_db,
    )

    assert response.formdata.questions == {}
    assert response.formdata.common_questions == {}


def test_detail_refuses_cross_department_lookup(review_db, add_applicant, panelist_session) -> None:
    add_applicant('Asha Rao', dep='tech', applicant_id=7)

    with pytest.raises(HTTPException) as exception_info:
        get_applicant(
            dept=Department.MEDIA,
            applicant_id=7,
            session=panelist_session,
            db=review_db,
        )

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == {
        'message': 'Applicant not found.',
        'redirect': '/dashboard/department/media',
    }


def test_single_update_changes_status(review_db, add_applicant, panelist_session) -> None:
    applicant = add_applicant('Asha Rao')

    response = update_applicant_status(
        dept=Department.TECH,
        applicant_id=applicant.id,
        data=StatusUpdateRequest(shortlisted=False),
        session=panelist_session,
        db=review_db,
    )

    assert response.shortlisted is False
    assert response.status_label == 'Rejected'
    review_db.expire_all()
    assert review_db.get(Applicant, applicant.id).shortlisted is False


@pytest.mark.parametrize('current', [None, True, False])
def test_single_update_rejects_no_op(review_db, add_applicant, panelist_session, current) -> None:
    applicant = add_applicant('Asha Rao', shortlisted=current)

    with pytest.raises(HTTPException) as exception_info:
        update_applicant_status(
            dept=Department.TECH,
            applicant_id=applicant.id,
            data=StatusUpdateRequest(shortlisted=current),
            session=panelist_session,
            db=review_db,
        )

    assert exception_info.value.status_code == 409


def test_single_update_refuses_cross_department_id(review_db, add_applicant, panelist_session) -> None:
    applicant = add_applicant('Asha Rao', dep='tech')

    with pytest.raises(HTTPException) as exception_info:
        update_applicant_status(
            dept=Department.MANAGEMENT,
            applicant_id=applicant.id,
            data=StatusUpdateRequest(shortlisted=True),
            session=panelist_session,
            db=review_db,
        )

    assert exception_info.value.status_code == 404
    review_db.expire_all()
    assert review_db.get(Applicant, applicant.id).shortlisted is None


def _raise_operational_error(*args, **kwargs):
    raise OperationalError('SELECT 1', {}, Exception('database is locked'))


def test_bulk_update_rolls_back_when_commit_fails(review_db, add_applicant, panelist_session, monkeypatch) -> None:
    first = add_applicant('Asha Rao', shortlisted=None)
    second = add_applicant('Ben Okafor', shortlisted=False)
    monkeypatch.setattr(review_db, 'commit', _raise_operational_error)

    with pytest.raises(HTTPException) as exception_info:
        bulk_update_status(
            dept=Department.TECH,
            data=BulkStatusUpdateRequest(applicant_ids=[first.id, second.id], shortlisted=True),
            session=panelist_session,
            db=review_db,
        )

    assert exception_info.value.status_code == 503
    review_db.expire_all()
    assert review_db.get(Applicant, first.id).shortlisted is None
    assert review_db.get(Applicant, second.id).shortlisted is False


def test_single_update_rolls_back_when_commit_fails(review_db, add_applicant, panelist_session, monkeypatch) -> None:
    applicant = add_applicant('Asha Rao', shortlisted=True)
    monkeypatch.setattr(review_db, 'commit', _raise_operational_error)

    with pytest.raises(HTTPException) as exception_info:
        update_applicant_status(
            dept=Department.TECH,
            applicant_id=applicant.id,
            data=StatusUpdateRequest(shortlisted=False),
            session=panelist_session,
            db=review_db,
        )

    assert exception_info.value.status_code == 503
    review_db.expire_all()
    assert review_db.get(Applicant, applicant.id).shortlisted is True


def test_listing_returns_503_when_store_fails(review_db, panelist_session, monkeypatch) -> None:
    monkeypatch.setattr(review_db, 'query', _raise_operational_error)

    with pytest.raises(HTTPException) as exception_info:
        _list(review_db, panelist_session)

    assert exception_info.value.status_code == 503


def test_detail_returns_503_when_store_fails(review_db, panelist_session, monkeypatch) -> None:
    monkeypatch.setattr(review_db, 'query', _raise_operational_error)

    with pytest.raises(HTTPException) as exception_info:
        get_applicant(
            dept=Department.TECH,
            applicant_id=1,
            session=panelist_session,
            db=review_db,
        )

    assert exception_info.value.status_code == 503
