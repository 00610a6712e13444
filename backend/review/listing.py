"""Applicant filtering and selection for a department listing.

Filtering runs in two passes: the free-text search (name, email or
registration number, case-insensitive) and then the status filter. The
selection is a set of applicant ids that is dropped whenever the filters
or the underlying rows change, so a bulk action never targets rows the
reviewer can no longer see.
"""

from enum import Enum
from typing import Any, Iterable

EMPTY_LISTING_MESSAGE = "No applicants found matching your criteria."

SEARCHABLE_FIELDS = ("name", "email", "regno")


class StatusFilter(str, Enum):
    ALL = "all"
    PENDING = "pending"
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"


def matches_search(applicant: Any, search_term: str | None) -> bool:
    needle = (search_term or "").strip().lower()
    if not needle:
        return True
    return any(needle in (getattr(applicant, field, None) or "").lower() for field in SEARCHABLE_FIELDS)


def matches_status(applicant: Any, status_filter: StatusFilter) -> bool:
    if status_filter == StatusFilter.SHORTLISTED:
        return applicant.shortlisted is True
    if status_filter == StatusFilter.REJECTED:
        return applicant.shortlisted is False
    if status_filter == StatusFilter.PENDING:
        return applicant.shortlisted is None
    return True


def filter_applicants(
    applicants: Iterable[Any],
    search_term: str | None = None,
    status_filter: StatusFilter = StatusFilter.ALL,
) -> list[Any]:
    searched = [applicant for applicant in applicants if matches_search(applicant, search_term)]
    return [applicant for applicant in searched if matches_status(applicant, status_filter)]


def status_counts(applicants: Iterable[Any]) -> dict[str, int]:
    counts = {'total': 0, 'shortlisted': 0, 'rejected': 0, 'pending': 0}
    for applicant in applicants:
        counts['total'] += 1
        if applicant.shortlisted is True:
            counts['shortlisted'] += 1
        elif applicant.shortlisted is False:
            counts['rejected'] += 1
        else:
            counts['pending'] += 1
    return counts


class ApplicantListing:
    """Rows, filters and selection for one department listing."""

    def __init__(
        self,
        applicants: Iterable[Any] = (),
        search_term: str = "",
        status_filter: StatusFilter = StatusFilter.ALL,
    ):
        self.applicants = list(applicants)
        self.search_term = search_term
        self.status_filter = StatusFilter(status_filter)
        self.selected: set[int] = set()

    @property
    def visible(self) -> list[Any]:
        return filter_applicants(self.applicants, self.search_term, self.status_filter)

    @property
    def counts(self) -> dict[str, int]:
        return status_counts(self.applicants)

    @property
    def empty_message(self) -> str | None:
        return None if self.visible else EMPTY_LISTING_MESSAGE

    @property
    def all_visible_selected(self) -> bool:
        visible_ids = {applicant.id for applicant in self.visible}
        return bool(visible_ids) and visible_ids <= self.selected

    def set_search_term(self, search_term: str) -> None:
        self.search_term = search_term
        self.selected.clear()

    def set_status_filter(self, status_filter: StatusFilter) -> None:
        self.status_filter = StatusFilter(status_filter)
        self.selected.clear()

    def replace_applicants(self, applicants: Iterable[Any]) -> None:
        self.applicants = list(applicants)
        self.selected.clear()

    def select(self, applicant_id: int) -> None:
        if any(applicant.id == applicant_id for applicant in self.visible):
            self.selected.add(applicant_id)

    def deselect(self, applicant_id: int) -> None:
        self.selected.discard(applicant_id)

    def select_all_visible(self) -> None:
        self.selected = {applicant.id for applicant in self.visible}

    def clear_selection(self) -> None:
        self.selected.clear()

    def apply_status(self, shortlisted: bool | None) -> list[int]:
        """Mirror a successful bulk update into the local rows and drop the selection."""
        affected = sorted(self.selected)
        for applicant in self.applicants:
            if applicant.id in self.selected:
                applicant.shortlisted = shortlisted
        self.selected.clear()
        return affected
