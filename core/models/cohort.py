from django.db import models
from django.utils import timezone

from .account import Account


class Cohort(models.Model):
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    start_date = models.DateField()
    end_date = models.DateField()
    sessions_per_month = models.PositiveSmallIntegerField(default=2)
    session_duration_minutes = models.PositiveSmallIntegerField(default=30)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return self.name


class Assignment(models.Model):
    """Mentor/student pairing inside a cohort.

    Cohort rosters are never stored; they are projected from these rows by
    ``core.membership``.
    """

    cohort = models.ForeignKey(Cohort, on_delete=models.CASCADE, related_name="assignments")
    mentor_user = models.ForeignKey(
        Account, on_delete=models.CASCADE, related_name="mentor_assignments"
    )
    student_user = models.ForeignKey(
        Account, on_delete=models.CASCADE, related_name="student_assignments"
    )
    is_active = models.BooleanField(default=True)
    assigned_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-assigned_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["cohort", "mentor_user", "student_user"],
                name="unique_assignment_pair_per_cohort",
            ),
        ]

    def __str__(self) -> str:
        return f"Assignment {self.id} ({self.mentor_user_id} -> {self.student_user_id} in cohort {self.cohort_id})"


class MentoringSession(models.Model):
    STATUS_SCHEDULED = "scheduled"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"
    STATUS_CHOICES = [
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    assignment = models.ForeignKey(Assignment, on_delete=models.CASCADE, related_name="sessions")
    cohort = models.ForeignKey(Cohort, on_delete=models.CASCADE, related_name="sessions")
    scheduled_date = models.DateField()
    scheduled_time = models.TimeField()
    duration_minutes = models.PositiveSmallIntegerField(default=30)
    meeting_link = models.URLField(blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_SCHEDULED)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, null=True, blank=True)

    class Meta:
        ordering = ["scheduled_date", "scheduled_time", "id"]

    def __str__(self) -> str:
        return f"Session {self.id} ({self.scheduled_date} {self.scheduled_time}, assignment {self.assignment_id})"
