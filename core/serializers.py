import logging

from django.db import IntegrityError, transaction
from rest_framework import serializers

from .exceptions import ConflictError
from .linking import APPLICATION_TYPES
from .models import (
    Account,
    Application,
    Assignment,
    Cohort,
    ContactMessage,
    MentorApplication,
    MentoringSession,
    StudentApplication,
    normalize_email,
)

logger = logging.getLogger(__name__)


def ensure_email_available_for_application(email):
    if Account.objects.filter(email=email).exclude(role=Account.ROLE_UNSET).exists():
        logger.info("Application rejected for %s: account already exists", email)
        raise ConflictError("An account with this email already exists. Please sign in instead.")
    for model in APPLICATION_TYPES.values():
        if model.objects.filter(email=email, status=Application.STATUS_PENDING).exists():
            logger.info("Application rejected for %s: %s application already pending", email, model.role)
            raise ConflictError(
                "A registration for this email is already pending. Please sign up to complete it."
            )


class AccountSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = Account
        fields = (
            "id",
            "email",
            "full_name",
            "display_name",
            "role",
            "phone_number",
            "linkedin_url",
            "university_name",
            "academic_program",
            "current_job_title",
            "company",
            "preferred_disciplines",
            "mentoring_topics",
            "is_active",
        )
        read_only_fields = fields


class AccountSerializer(serializers.ModelSerializer):
    preferred_disciplines = serializers.ListField(child=serializers.CharField(), required=False)
    mentoring_topics = serializers.ListField(child=serializers.CharField(), required=False)
    skills = serializers.ListField(child=serializers.CharField(), required=False)
    availability = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta:
        model = Account
        fields = "__all__"
        read_only_fields = ("id", "email", "role", "is_active", "created_at", "updated_at")


class AdminAccountSerializer(AccountSerializer):
    class Meta(AccountSerializer.Meta):
        read_only_fields = ("id", "email", "created_at", "updated_at")


class AccountStatusSerializer(serializers.Serializer):
    is_active = serializers.BooleanField()


class RegisterAccountSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True)
    display_name = serializers.CharField(max_length=150, required=False, allow_blank=True)


class CheckEmailSerializer(serializers.Serializer):
    email = serializers.EmailField()

    def validate_email(self, value):
        return normalize_email(value)


class LinkRegistrationSerializer(serializers.Serializer):
    email = serializers.EmailField()
    registration_id = serializers.IntegerField(required=False, allow_null=True)
    registration_type = serializers.ChoiceField(
        choices=sorted(APPLICATION_TYPES.keys()),
        required=False,
        allow_null=True,
    )

    def validate_email(self, value):
        return normalize_email(value)


class ApplicationSerializer(serializers.ModelSerializer):
    # Declared so the pending-email constraint surfaces as 409 from create(), not a field error.
    email = serializers.EmailField()
    preferred_disciplines = serializers.ListField(child=serializers.CharField(), required=False)
    mentoring_topics = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta:
        read_only_fields = ("status", "linked_account", "created_at", "updated_at")
        validators = []

    def validate_email(self, value):
        return normalize_email(value)

    def create(self, validated_data):
        email = validated_data["email"]
        ensure_email_available_for_application(email)
        try:
            with transaction.atomic():
                return super().create(validated_data)
        except IntegrityError as exc:
            logger.info("Concurrent %s application rejected for %s", self.Meta.model.role, email)
            raise ConflictError(
                "A registration for this email is already pending. Please sign up to complete it."
            ) from exc


class StudentApplicationSerializer(ApplicationSerializer):
    class Meta(ApplicationSerializer.Meta):
        model = StudentApplication
        fields = "__all__"


class MentorApplicationSerializer(ApplicationSerializer):
    skills = serializers.ListField(child=serializers.CharField(), required=False)
    availability = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta(ApplicationSerializer.Meta):
        model = MentorApplication
        fields = "__all__"


class CohortSerializer(serializers.ModelSerializer):
    class Meta:
        model = Cohort
        fields = "__all__"

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "end_date must not be before start_date."})
        return attrs


class MentoringSessionSerializer(serializers.ModelSerializer):
    class Meta:
        model = MentoringSession
        fields = "__all__"
        read_only_fields = ("cohort", "created_at", "updated_at")

    def validate_duration_minutes(self, value):
        if value < 1:
            raise serializers.ValidationError("Duration must be at least one minute.")
        return value


class AssignmentSerializer(serializers.ModelSerializer):
    mentor_user_id = serializers.PrimaryKeyRelatedField(
        source="mentor_user", queryset=Account.objects.all()
    )
    student_user_id = serializers.PrimaryKeyRelatedField(
        source="student_user", queryset=Account.objects.all()
    )

    class Meta:
        model = Assignment
        fields = ("id", "cohort", "mentor_user_id", "student_user_id", "is_active", "assigned_at")
        read_only_fields = ("cohort", "assigned_at")
        validators = []

    def validate_mentor_user_id(self, value):
        if value.role != Account.ROLE_MENTOR:
            raise serializers.ValidationError("Selected account is not a mentor.")
        return value

    def validate_student_user_id(self, value):
        if value.role != Account.ROLE_STUDENT:
            raise serializers.ValidationError("Selected account is not a student.")
        return value

    def validate(self, attrs):
        cohort = self.context.get("cohort") or getattr(self.instance, "cohort", None)
        mentor = attrs.get("mentor_user", getattr(self.instance, "mentor_user", None))
        student = attrs.get("student_user", getattr(self.instance, "student_user", None))
        if cohort is not None and mentor is not None and student is not None:
            duplicates = Assignment.objects.filter(
                cohort=cohort, mentor_user=mentor, student_user=student
            )
            if self.instance is not None:
                duplicates = duplicates.exclude(pk=self.instance.pk)
            if duplicates.exists():
                raise ConflictError("This mentor and student are already paired in this cohort.")
        return attrs


class AssignmentDetailSerializer(AssignmentSerializer):
    cohort_detail = CohortSerializer(source="cohort", read_only=True)
    mentor = AccountSummarySerializer(source="mentor_user", read_only=True)
    student = AccountSummarySerializer(source="student_user", read_only=True)
    counterpart = serializers.SerializerMethodField()
    sessions = MentoringSessionSerializer(many=True, read_only=True)

    class Meta(AssignmentSerializer.Meta):
        fields = AssignmentSerializer.Meta.fields + (
            "cohort_detail",
            "mentor",
            "student",
            "counterpart",
            "sessions",
        )

    def get_counterpart(self, obj):
        viewer_role = self.context.get("viewer_role")
        if viewer_role == Account.ROLE_MENTOR:
            return AccountSummarySerializer(obj.student_user).data
        if viewer_role == Account.ROLE_STUDENT:
            return AccountSummarySerializer(obj.mentor_user).data
        return None


class BulkDeleteAssignmentsSerializer(serializers.Serializer):
    assignment_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)


class CohortMemberSerializer(serializers.Serializer):
    user_id = serializers.CharField()
    role = serializers.CharField()
    is_active = serializers.BooleanField()
    joined_at = serializers.DateTimeField()
    account = AccountSummarySerializer(allow_null=True)


class ContactMessageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ContactMessage
        fields = "__all__"
