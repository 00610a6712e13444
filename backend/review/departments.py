"""Department catalogue used by the review dashboard."""

from enum import Enum

UNKNOWN_DEPARTMENT_LABEL = "Unknown department"


class Department(str, Enum):
    TECH = "tech"
    CONTENT = "cont"
    MEDIA = "media"
    MANAGEMENT = "management"


DEPARTMENT_LABELS = {
    Department.TECH: "Technology",
    Department.CONTENT: "Content",
    Department.MEDIA: "Media",
    Department.MANAGEMENT: "Management",
}

DEPARTMENT_DESCRIPTIONS = {
    Department.TECH: "Programming, Linux systems, and technical projects",
    Department.CONTENT: "Writing, documentation, and content creation",
    Department.MEDIA: "Design, photography, and multimedia content",
    Department.MANAGEMENT: "Event planning, coordination, and leadership",
}

STATUS_LABELS = {
    None: "Pending",
    True: "Shortlisted",
    False: "Rejected",
}


def department_label(dep: str | None) -> str:
    """Display name for a stored ``dep`` value, with a fallback for unknown keys."""
    try:
        return DEPARTMENT_LABELS[Department(dep)]
    except ValueError:
        return UNKNOWN_DEPARTMENT_LABEL


def status_label(shortlisted: bool | None) -> str:
    return STATUS_LABELS[shortlisted]


def listing_route(dep: Department | str) -> str:
    return f"/dashboard/department/{Department(dep).value}"
