import logging

from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.shortcuts import get_object_or_404
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, PermissionDenied
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import ConflictError
from .linking import check_email, ensure_account, link_registration
from .matching_logic import match_label, matched_disciplines, matched_topics, score_students
from .membership import get_cohort_roster, get_user_cohorts
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
from .permissions import (
    ROLE_ADMIN,
    ROLE_MENTOR,
    ROLE_STUDENT,
    IsAdminRole,
    IsAuthenticatedWithAppRole,
    IsMentorOrAdminRole,
    IsMentorRole,
    IsStudentRole,
    user_role,
)
from .serializers import (
    AccountSerializer,
    AccountStatusSerializer,
    AccountSummarySerializer,
    AdminAccountSerializer,
    AssignmentDetailSerializer,
    AssignmentSerializer,
    BulkDeleteAssignmentsSerializer,
    CheckEmailSerializer,
    CohortMemberSerializer,
    CohortSerializer,
    ContactMessageSerializer,
    LinkRegistrationSerializer,
    MentorApplicationSerializer,
    MentoringSessionSerializer,
    RegisterAccountSerializer,
    StudentApplicationSerializer,
)

logger = logging.getLogger(__name__)


def current_account_id(request):
    if not request.user.is_authenticated:
        return None
    return getattr(request.user, "subject", None)


def resolve_identity_email(request, submitted_email):
    """The submitted email must belong to the authenticated identity."""
    identity_email = normalize_email(getattr(request.user, "email", ""))
    if not identity_email:
        raise PermissionDenied("The authenticated identity has no verified email.")
    submitted_email = normalize_email(submitted_email)
    if submitted_email and identity_email != submitted_email:
        raise PermissionDenied("Email does not match the authenticated account.")
    return identity_email


def serialize_user_cohorts(user_cohorts):
    payload = []
    for entry in user_cohorts:
        data = CohortSerializer(entry.cohort).data
        data["roles"] = list(entry.roles)
        payload.append(data)
    return payload


class CheckEmailRegistrationView(GenericAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = CheckEmailSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = check_email(serializer.validated_data["email"])
        return Response(result.as_dict())


class StudentRegistrationView(GenericAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = StudentApplicationSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        application = serializer.save()
        logger.info("Student application %s submitted", application.id)
        return Response({"success": True, "id": application.id}, status=status.HTTP_201_CREATED)


class MentorRegistrationView(GenericAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = MentorApplicationSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        application = serializer.save()
        logger.info("Mentor application %s submitted", application.id)
        return Response({"success": True, "id": application.id}, status=status.HTTP_201_CREATED)


class ContactView(GenericAPIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    serializer_class = ContactMessageSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        contact = serializer.save()
        return Response({"success": True, "id": contact.id}, status=status.HTTP_201_CREATED)


class RegisterAccountView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = RegisterAccountSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = resolve_identity_email(request, serializer.validated_data.get("email", ""))
        display_name = serializer.validated_data.get("display_name") or request.user.display_name
        account, created = ensure_account(request.user.subject, email, display_name)
        return Response(
            AccountSerializer(account).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class LinkRegistrationView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = LinkRegistrationSerializer

    def post(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = resolve_identity_email(request, serializer.validated_data["email"])
        result = link_registration(
            request.user.subject,
            email,
            application_id=serializer.validated_data.get("registration_id"),
            application_type=serializer.validated_data.get("registration_type"),
        )
        return Response(result.as_dict())


class CurrentAccountView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = AccountSerializer

    def get_object(self):
        account = Account.objects.filter(pk=current_account_id(self.request)).first()
        if account is None:
            raise NotFound("Account not found.")
        return account

    def get(self, request):
        return Response(self.get_serializer(self.get_object()).data)

    def patch(self, request):
        serializer = self.get_serializer(self.get_object(), data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)


class AdminStatsView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        accounts = Account.objects.aggregate(
            total_students=Count("id", filter=Q(role=ROLE_STUDENT)),
            total_mentors=Count("id", filter=Q(role=ROLE_MENTOR)),
            active_students=Count("id", filter=Q(role=ROLE_STUDENT, is_active=True)),
            active_mentors=Count("id", filter=Q(role=ROLE_MENTOR, is_active=True)),
        )
        return Response(
            {
                **accounts,
                "total_assignments": Assignment.objects.count(),
                "active_assignments": Assignment.objects.filter(is_active=True).count(),
                "total_cohorts": Cohort.objects.count(),
                "pending_student_registrations": StudentApplication.objects.filter(
                    status=Application.STATUS_PENDING
                ).count(),
                "pending_mentor_registrations": MentorApplication.objects.filter(
                    status=Application.STATUS_PENDING
                ).count(),
            }
        )


class MatchScoreView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request):
        mentor_id = request.query_params.get("mentor_id")
        student_id = request.query_params.get("student_id")
        if not mentor_id or not student_id:
            return Response(
                {"detail": "Query parameters 'mentor_id' and 'student_id' are required."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        mentor = get_object_or_404(Account, pk=mentor_id, role=ROLE_MENTOR)
        student = get_object_or_404(Account, pk=student_id, role=ROLE_STUDENT)
        disciplines = matched_disciplines(mentor, student)
        topics = matched_topics(mentor, student)
        score = len(disciplines) + len(topics)
        return Response(
            {
                "mentor_id": mentor.id,
                "student_id": student.id,
                "score": score,
                "label": match_label(score),
                "matched_disciplines": disciplines,
                "matched_topics": topics,
            }
        )


class AdminAccountViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = AdminAccountSerializer
    permission_classes = [IsAdminRole]
    account_role = None

    def get_queryset(self):
        queryset = Account.objects.filter(role=self.account_role).order_by("-created_at", "id")
        email = self.request.query_params.get("email")
        if email:
            queryset = queryset.filter(email=normalize_email(email))
        is_active = self.request.query_params.get("is_active")
        if is_active in {"true", "1"}:
            queryset = queryset.filter(is_active=True)
        elif is_active in {"false", "0"}:
            queryset = queryset.filter(is_active=False)
        return queryset

    @action(detail=True, methods=["put", "patch"], url_path="status")
    def set_status(self, request, pk=None):
        account = self.get_object()
        serializer = AccountStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        account.is_active = serializer.validated_data["is_active"]
        account.save(update_fields=["is_active", "updated_at"])
        logger.info("Account %s set is_active=%s by %s", account.id, account.is_active, request.user)
        return Response(AdminAccountSerializer(account).data)


class AdminStudentViewSet(AdminAccountViewSet):
    account_role = ROLE_STUDENT


class AdminMentorViewSet(AdminAccountViewSet):
    account_role = ROLE_MENTOR

    @action(detail=True, methods=["get"], url_path="student-matches")
    def student_matches(self, request, pk=None):
        mentor = self.get_object()
        students = Account.objects.filter(role=ROLE_STUDENT, is_active=True)
        return Response(
            [
                {
                    "student": AccountSummarySerializer(item.student).data,
                    "score": item.score,
                    "label": item.label,
                    "matched_disciplines": item.matched_disciplines,
                    "matched_topics": item.matched_topics,
                }
                for item in score_students(mentor, students)
            ]
        )


class AdminAssignmentViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    queryset = (
        Assignment.objects.all()
        .select_related("cohort", "mentor_user", "student_user")
        .prefetch_related("sessions")
        .order_by("-assigned_at", "-id")
    )
    permission_classes = [IsAdminRole]

    def get_serializer_class(self):
        if self.action in {"update", "partial_update"}:
            return AssignmentSerializer
        return AssignmentDetailSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        cohort_id = self.request.query_params.get("cohort_id")
        mentor_user_id = self.request.query_params.get("mentor_user_id")
        student_user_id = self.request.query_params.get("student_user_id")
        if cohort_id:
            queryset = queryset.filter(cohort_id=cohort_id)
        if mentor_user_id:
            queryset = queryset.filter(mentor_user_id=mentor_user_id)
        if student_user_id:
            queryset = queryset.filter(student_user_id=student_user_id)
        return queryset

    def perform_update(self, serializer):
        try:
            with transaction.atomic():
                serializer.save()
        except IntegrityError as exc:
            raise ConflictError("This mentor and student are already paired in this cohort.") from exc

    @action(detail=False, methods=["post"], url_path="bulk-delete")
    def bulk_delete(self, request):
        serializer = BulkDeleteAssignmentsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ids = serializer.validated_data["assignment_ids"]
        deleted = Assignment.objects.filter(id__in=ids).count()
        Assignment.objects.filter(id__in=ids).delete()
        return Response({"deleted": deleted})


class StudentApplicationViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = StudentApplication.objects.all().order_by("-created_at", "-id")
    serializer_class = StudentApplicationSerializer
    permission_classes = [IsAdminRole]

    def get_queryset(self):
        queryset = super().get_queryset()
        status_value = self.request.query_params.get("status")
        if status_value:
            queryset = queryset.filter(status=status_value)
        return queryset


class MentorApplicationViewSet(StudentApplicationViewSet):
    queryset = MentorApplication.objects.all().order_by("-created_at", "-id")
    serializer_class = MentorApplicationSerializer


class ContactMessageViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = ContactMessage.objects.all().order_by("-created_at", "-id")
    serializer_class = ContactMessageSerializer
    permission_classes = [IsAdminRole]


class CohortViewSet(viewsets.ModelViewSet):
    queryset = Cohort.objects.all().order_by("-created_at", "-id")
    serializer_class = CohortSerializer
    permission_classes = [IsAdminRole]

    @action(detail=True, methods=["get"], url_path="members")
    def members(self, request, pk=None):
        cohort = self.get_object()
        payload = [
            {
                "user_id": member.user_id,
                "role": member.role,
                "is_active": member.is_active,
                "joined_at": member.joined_at,
                "account": account,
            }
            for member, account in get_cohort_roster(cohort.id)
        ]
        return Response(CohortMemberSerializer(payload, many=True).data)

    @action(detail=True, methods=["get", "post"], url_path="assignments")
    def assignments(self, request, pk=None):
        cohort = self.get_object()
        if request.method == "POST":
            serializer = AssignmentSerializer(data=request.data, context={"request": request, "cohort": cohort})
            serializer.is_valid(raise_exception=True)
            try:
                with transaction.atomic():
                    assignment = serializer.save(cohort=cohort)
            except IntegrityError as exc:
                raise ConflictError("This mentor and student are already paired in this cohort.") from exc
            logger.info(
                "Assigned mentor %s to student %s in cohort %s",
                assignment.mentor_user_id,
                assignment.student_user_id,
                cohort.id,
            )
            return Response(AssignmentSerializer(assignment).data, status=status.HTTP_201_CREATED)

        assignments = (
            cohort.assignments.all()
            .select_related("cohort", "mentor_user", "student_user")
            .prefetch_related("sessions")
        )
        return Response(AssignmentDetailSerializer(assignments, many=True).data)

    @action(detail=True, methods=["get"], url_path="sessions")
    def sessions(self, request, pk=None):
        cohort = self.get_object()
        return Response(MentoringSessionSerializer(cohort.sessions.all(), many=True).data)


class ParticipantAssignmentsView(APIView):
    viewer_role = None

    def get(self, request):
        field = "mentor_user_id" if self.viewer_role == ROLE_MENTOR else "student_user_id"
        assignments = (
            Assignment.objects.filter(**{field: current_account_id(request)})
            .select_related("cohort", "mentor_user", "student_user")
            .prefetch_related("sessions")
            .order_by("-assigned_at", "-id")
        )
        serializer = AssignmentDetailSerializer(
            assignments,
            many=True,
            context={"request": request, "viewer_role": self.viewer_role},
        )
        return Response(serializer.data)


class MentorAssignmentsView(ParticipantAssignmentsView):
    permission_classes = [IsMentorRole]
    viewer_role = ROLE_MENTOR


class StudentAssignmentsView(ParticipantAssignmentsView):
    permission_classes = [IsStudentRole]
    viewer_role = ROLE_STUDENT


class MentorCohortsView(APIView):
    permission_classes = [IsMentorRole]

    def get(self, request):
        return Response(serialize_user_cohorts(get_user_cohorts(current_account_id(request))))


class StudentCohortsView(APIView):
    permission_classes = [IsStudentRole]

    def get(self, request):
        return Response(serialize_user_cohorts(get_user_cohorts(current_account_id(request))))


class MentoringSessionViewSet(viewsets.ModelViewSet):
    queryset = MentoringSession.objects.all().select_related("assignment", "cohort")
    serializer_class = MentoringSessionSerializer
    permission_classes = [IsAuthenticatedWithAppRole]

    def get_permissions(self):
        if self.action in {"create", "update", "partial_update", "destroy"}:
            return [IsMentorOrAdminRole()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        role = user_role(self.request.user)
        my_id = current_account_id(self.request)
        if role == ROLE_ADMIN:
            pass
        elif role == ROLE_MENTOR:
            queryset = queryset.filter(assignment__mentor_user_id=my_id)
        elif role == ROLE_STUDENT:
            queryset = queryset.filter(assignment__student_user_id=my_id)
        else:
            queryset = queryset.none()
        assignment_id = self.request.query_params.get("assignment_id")
        cohort_id = self.request.query_params.get("cohort_id")
        status_value = self.request.query_params.get("status")
        if assignment_id:
            queryset = queryset.filter(assignment_id=assignment_id)
        if cohort_id:
            queryset = queryset.filter(cohort_id=cohort_id)
        if status_value:
            queryset = queryset.filter(status=status_value)
        return queryset

    def _check_assignment_access(self, assignment):
        role = user_role(self.request.user)
        if role == ROLE_ADMIN:
            return
        if role == ROLE_MENTOR and assignment.mentor_user_id == current_account_id(self.request):
            return
        raise PermissionDenied("You can only schedule sessions for your own assignments.")

    def perform_create(self, serializer):
        assignment = serializer.validated_data["assignment"]
        self._check_assignment_access(assignment)
        serializer.save(cohort=assignment.cohort)

    def perform_update(self, serializer):
        assignment = serializer.validated_data.get("assignment", serializer.instance.assignment)
        self._check_assignment_access(assignment)
        serializer.save(cohort=assignment.cohort)
