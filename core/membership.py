"""
Cohort rosters projected from Assignment rows.

There is no membership table: a user belongs to a cohort exactly when an
Assignment in that cohort names them as mentor or student. Everything here is
recomputed on every call.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Tuple

from django.db.models import Q

from .models import Account, Assignment, Cohort


@dataclass(frozen=True)
class CohortMember:
    cohort_id: int
    user_id: str
    role: str
    is_active: bool
    joined_at: datetime


@dataclass(frozen=True)
class UserCohort:
    cohort: Cohort
    roles: Tuple[str, ...]


def _first_occurrence_key(assignment):
    return (assignment.assigned_at, assignment.id)


def get_cohort_members(cohort_id) -> List[CohortMember]:
    """Returns one entry per (user, role) found in the cohort's assignments.

    ``joined_at`` and ``is_active`` come from the earliest assignment for that
    entry regardless of row order. A user recorded as both mentor and student
    gets one entry per role.
    """
    assignments = Assignment.objects.filter(cohort_id=cohort_id).only(
        "id", "cohort_id", "mentor_user_id", "student_user_id", "is_active", "assigned_at"
    )

    earliest: Dict[Tuple[str, str], Assignment] = {}
    for assignment in assignments:
        for role, user_id in (
            (Account.ROLE_MENTOR, assignment.mentor_user_id),
            (Account.ROLE_STUDENT, assignment.student_user_id),
        ):
            key = (user_id, role)
            seen = earliest.get(key)
            if seen is None or _first_occurrence_key(assignment) < _first_occurrence_key(seen):
                earliest[key] = assignment

    return [
        CohortMember(
            cohort_id=assignment.cohort_id,
            user_id=user_id,
            role=role,
            is_active=assignment.is_active,
            joined_at=assignment.assigned_at,
        )
        for (user_id, role), assignment in earliest.items()
    ]


def get_user_cohorts(user_id) -> List[UserCohort]:
    assignments = Assignment.objects.filter(
        Q(mentor_user_id=user_id) | Q(student_user_id=user_id)
    ).values_list("cohort_id", "mentor_user_id", "student_user_id")

    roles_by_cohort: Dict[int, set] = {}
    for cohort_id, mentor_user_id, student_user_id in assignments:
        roles = roles_by_cohort.setdefault(cohort_id, set())
        if mentor_user_id == user_id:
            roles.add(Account.ROLE_MENTOR)
        if student_user_id == user_id:
            roles.add(Account.ROLE_STUDENT)

    if not roles_by_cohort:
        return []

    cohorts = Cohort.objects.filter(id__in=roles_by_cohort.keys())
    return [UserCohort(cohort=cohort, roles=tuple(sorted(roles_by_cohort[cohort.id]))) for cohort in cohorts]


def get_cohort_roster(cohort_id) -> List[Tuple[CohortMember, Account | None]]:
    """Derived members paired with their Account (``None`` if it was deleted)."""
    members = get_cohort_members(cohort_id)
    accounts = Account.objects.in_bulk({member.user_id for member in members})
    return [(member, accounts.get(member.user_id)) for member in members]
