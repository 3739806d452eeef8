from django.db import models
from django.db.models import Q

from .account import Account, normalize_email


class Application(models.Model):
    STATUS_PENDING = "pending"
    STATUS_LINKED = "linked"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_LINKED, "Linked"),
    ]

    # Role granted to the Account once the application is linked.
    role = None
    # Fields copied into the Account during linking.
    profile_fields = (
        "full_name",
        "phone_number",
        "linkedin_url",
        "preferred_disciplines",
        "mentoring_topics",
        "agreed_to_commitment",
        "consent_to_contact",
    )

    email = models.EmailField(db_index=True)
    full_name = models.CharField(max_length=150)
    phone_number = models.CharField(max_length=30, blank=True)
    linkedin_url = models.URLField(blank=True)
    preferred_disciplines = models.JSONField(default=list, blank=True)
    mentoring_topics = models.JSONField(default=list, blank=True)
    agreed_to_commitment = models.BooleanField(default=False)
    consent_to_contact = models.BooleanField(default=False)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    linked_account = models.ForeignKey(
        Account,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, null=True, blank=True)

    class Meta:
        abstract = True
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["email"],
                condition=Q(status="pending"),
                name="unique_pending_%(class)s_email",
            ),
        ]

    def save(self, *args, **kwargs):
        self.email = normalize_email(self.email)
        super().save(*args, **kwargs)

    @property
    def is_pending(self) -> bool:
        return self.status == self.STATUS_PENDING

    def profile_payload(self) -> dict:
        return {field: getattr(self, field) for field in self.profile_fields}

    def __str__(self) -> str:
        return f"{self.full_name} <{self.email}> ({self.status})"


class StudentApplication(Application):
    role = Account.ROLE_STUDENT
    profile_fields = Application.profile_fields + (
        "university_name",
        "academic_program",
        "year_of_study",
        "nominated_by",
        "professor_email",
        "career_interests",
        "mentorship_goals",
    )

    university_name = models.CharField(max_length=200)
    academic_program = models.CharField(max_length=200)
    year_of_study = models.CharField(max_length=50)
    nominated_by = models.CharField(max_length=150)
    professor_email = models.EmailField()
    career_interests = models.TextField(blank=True)
    mentorship_goals = models.TextField(blank=True)


class MentorApplication(Application):
    role = Account.ROLE_MENTOR
    profile_fields = Application.profile_fields + (
        "current_job_title",
        "company",
        "years_experience",
        "education",
        "skills",
        "location",
        "time_zone",
        "profile_summary",
        "motivation",
        "availability",
    )

    current_job_title = models.CharField(max_length=150, blank=True)
    company = models.CharField(max_length=150, blank=True)
    years_experience = models.PositiveSmallIntegerField(null=True, blank=True)
    education = models.CharField(max_length=255, blank=True)
    skills = models.JSONField(default=list, blank=True)
    location = models.CharField(max_length=150, blank=True)
    time_zone = models.CharField(max_length=80, blank=True)
    profile_summary = models.TextField(blank=True)
    motivation = models.TextField(blank=True)
    availability = models.JSONField(default=list, blank=True)
