import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.CharField(max_length=128, primary_key=True, serialize=False)),
                ("email", models.EmailField(db_index=True, max_length=254)),
                ("display_name", models.CharField(blank=True, max_length=150)),
                (
                    "role",
                    models.CharField(
                        blank=True,
                        choices=[("", "Unset"), ("student", "Student"), ("mentor", "Mentor"), ("admin", "Admin")],
                        default="",
                        max_length=20,
                    ),
                ),
                ("full_name", models.CharField(blank=True, max_length=150)),
                ("phone_number", models.CharField(blank=True, max_length=30)),
                ("linkedin_url", models.URLField(blank=True)),
                ("university_name", models.CharField(blank=True, max_length=200)),
                ("academic_program", models.CharField(blank=True, max_length=200)),
                ("year_of_study", models.CharField(blank=True, max_length=50)),
                ("nominated_by", models.CharField(blank=True, max_length=150)),
                ("professor_email", models.EmailField(blank=True, max_length=254)),
                ("career_interests", models.TextField(blank=True)),
                ("mentorship_goals", models.TextField(blank=True)),
                ("current_job_title", models.CharField(blank=True, max_length=150)),
                ("company", models.CharField(blank=True, max_length=150)),
                ("years_experience", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("education", models.CharField(blank=True, max_length=255)),
                ("skills", models.JSONField(blank=True, default=list)),
                ("location", models.CharField(blank=True, max_length=150)),
                ("time_zone", models.CharField(blank=True, max_length=80)),
                ("profile_summary", models.TextField(blank=True)),
                ("motivation", models.TextField(blank=True)),
                ("availability", models.JSONField(blank=True, default=list)),
                ("preferred_disciplines", models.JSONField(blank=True, default=list)),
                ("mentoring_topics", models.JSONField(blank=True, default=list)),
                ("agreed_to_commitment", models.BooleanField(default=False)),
                ("consent_to_contact", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True, null=True)),
            ],
            options={
                "ordering": ["-created_at", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("role", ""), _negated=True),
                        fields=("email",),
                        name="unique_email_for_accounts_with_role",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Cohort",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("description", models.TextField(blank=True)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("sessions_per_month", models.PositiveSmallIntegerField(default=2)),
                ("session_duration_minutes", models.PositiveSmallIntegerField(default=30)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="ContactMessage",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=150)),
                ("email", models.EmailField(max_length=254)),
                ("subject", models.CharField(blank=True, max_length=200)),
                ("message", models.TextField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="Assignment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("is_active", models.BooleanField(default=True)),
                ("assigned_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "cohort",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="assignments",
                        to="core.cohort",
                    ),
                ),
                (
                    "mentor_user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="mentor_assignments",
                        to="core.account",
                    ),
                ),
                (
                    "student_user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="student_assignments",
                        to="core.account",
                    ),
                ),
            ],
            options={
                "ordering": ["-assigned_at", "-id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("cohort", "mentor_user", "student_user"),
                        name="unique_assignment_pair_per_cohort",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="MentoringSession",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("scheduled_date", models.DateField()),
                ("scheduled_time", models.TimeField()),
                ("duration_minutes", models.PositiveSmallIntegerField(default=30)),
                ("meeting_link", models.URLField(blank=True)),
                ("notes", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("scheduled", "Scheduled"), ("completed", "Completed"), ("cancelled", "Cancelled")],
                        default="scheduled",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True, null=True)),
                (
                    "assignment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sessions",
                        to="core.assignment",
                    ),
                ),
                (
                    "cohort",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sessions",
                        to="core.cohort",
                    ),
                ),
            ],
            options={
                "ordering": ["scheduled_date", "scheduled_time", "id"],
            },
        ),
        migrations.CreateModel(
            name="MentorApplication",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("email", models.EmailField(db_index=True, max_length=254)),
                ("full_name", models.CharField(max_length=150)),
                ("phone_number", models.CharField(blank=True, max_length=30)),
                ("linkedin_url", models.URLField(blank=True)),
                ("preferred_disciplines", models.JSONField(blank=True, default=list)),
                ("mentoring_topics", models.JSONField(blank=True, default=list)),
                ("agreed_to_commitment", models.BooleanField(default=False)),
                ("consent_to_contact", models.BooleanField(default=False)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("linked", "Linked")],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True, null=True)),
                ("current_job_title", models.CharField(blank=True, max_length=150)),
                ("company", models.CharField(blank=True, max_length=150)),
                ("years_experience", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("education", models.CharField(blank=True, max_length=255)),
                ("skills", models.JSONField(blank=True, default=list)),
                ("location", models.CharField(blank=True, max_length=150)),
                ("time_zone", models.CharField(blank=True, max_length=80)),
                ("profile_summary", models.TextField(blank=True)),
                ("motivation", models.TextField(blank=True)),
                ("availability", models.JSONField(blank=True, default=list)),
                (
                    "linked_account",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="core.account",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "abstract": False,
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "pending")),
                        fields=("email",),
                        name="unique_pending_mentorapplication_email",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StudentApplication",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("email", models.EmailField(db_index=True, max_length=254)),
                ("full_name", models.CharField(max_length=150)),
                ("phone_number", models.CharField(blank=True, max_length=30)),
                ("linkedin_url", models.URLField(blank=True)),
                ("preferred_disciplines", models.JSONField(blank=True, default=list)),
                ("mentoring_topics", models.JSONField(blank=True, default=list)),
                ("agreed_to_commitment", models.BooleanField(default=False)),
                ("consent_to_contact", models.BooleanField(default=False)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("linked", "Linked")],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True, null=True)),
                ("university_name", models.CharField(max_length=200)),
                ("academic_program", models.CharField(max_length=200)),
                ("year_of_study", models.CharField(max_length=50)),
                ("nominated_by", models.CharField(max_length=150)),
                ("professor_email", models.EmailField(max_length=254)),
                ("career_interests", models.TextField(blank=True)),
                ("mentorship_goals", models.TextField(blank=True)),
                (
                    "linked_account",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="core.account",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "abstract": False,
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "pending")),
                        fields=("email",),
                        name="unique_pending_studentapplication_email",
                    ),
                ],
            },
        ),
    ]
