from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

# Upper bound (inclusive) of each band, checked in order.
MATCH_BANDS = (
    (0, "No matches"),
    (2, "Low match"),
    (4, "Good match"),
)
TOP_BAND_LABEL = "Excellent match"


@dataclass
class ScoredStudent:
    student: object
    score: int
    label: str
    matched_disciplines: List[str]
    matched_topics: List[str]


def _as_set(values) -> set:
    return set(values or [])


def matched_disciplines(mentor, student) -> List[str]:
    return sorted(_as_set(mentor.preferred_disciplines) & _as_set(student.preferred_disciplines))


def matched_topics(mentor, student) -> List[str]:
    return sorted(_as_set(mentor.mentoring_topics) & _as_set(student.mentoring_topics))


def match_score(mentor, student) -> int:
    """Shared disciplines plus shared mentoring topics, by exact string equality."""
    return len(matched_disciplines(mentor, student)) + len(matched_topics(mentor, student))


def match_label(score: int) -> str:
    for upper_bound, label in MATCH_BANDS:
        if score <= upper_bound:
            return label
    return TOP_BAND_LABEL


def score_students(mentor, students: Iterable) -> List[ScoredStudent]:
    results: List[ScoredStudent] = []
    for student in students:
        disciplines = matched_disciplines(mentor, student)
        topics = matched_topics(mentor, student)
        score = len(disciplines) + len(topics)
        results.append(
            ScoredStudent(
                student=student,
                score=score,
                label=match_label(score),
                matched_disciplines=disciplines,
                matched_topics=topics,
            )
        )

    results.sort(key=lambda r: r.score, reverse=True)
    return results
