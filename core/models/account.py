from django.db import models
from django.db.models import Q


def normalize_email(value) -> str:
    return str(value or "").strip().lower()


class Account(models.Model):
    ROLE_UNSET = ""
    ROLE_STUDENT = "student"
    ROLE_MENTOR = "mentor"
    ROLE_ADMIN = "admin"
    ROLE_CHOICES = [
        (ROLE_UNSET, "Unset"),
        (ROLE_STUDENT, "Student"),
        (ROLE_MENTOR, "Mentor"),
        (ROLE_ADMIN, "Admin"),
    ]

    # Identity-provider subject.
    id = models.CharField(max_length=128, primary_key=True)
    email = models.EmailField(db_index=True)
    display_name = models.CharField(max_length=150, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, blank=True, default=ROLE_UNSET)

    full_name = models.CharField(max_length=150, blank=True)
    phone_number = models.CharField(max_length=30, blank=True)
    linkedin_url = models.URLField(blank=True)

    university_name = models.CharField(max_length=200, blank=True)
    academic_program = models.CharField(max_length=200, blank=True)
    year_of_study = models.CharField(max_length=50, blank=True)
    nominated_by = models.CharField(max_length=150, blank=True)
    professor_email = models.EmailField(blank=True)
    career_interests = models.TextField(blank=True)
    mentorship_goals = models.TextField(blank=True)

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

    preferred_disciplines = models.JSONField(default=list, blank=True)
    mentoring_topics = models.JSONField(default=list, blank=True)
    agreed_to_commitment = models.BooleanField(default=False)
    consent_to_contact = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True, null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["email"],
                condition=~Q(role=""),
                name="unique_email_for_accounts_with_role",
            ),
        ]

    def save(self, *args, **kwargs):
        self.email = normalize_email(self.email)
        super().save(*args, **kwargs)

    @property
    def has_role(self) -> bool:
        return bool(self.role)

    def __str__(self) -> str:
        return f"{self.full_name or self.display_name or self.email} ({self.role or 'unset'})"
