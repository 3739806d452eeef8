from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api_views import (
    AdminAssignmentViewSet,
    AdminMentorViewSet,
    AdminStatsView,
    AdminStudentViewSet,
    CheckEmailRegistrationView,
    CohortViewSet,
    ContactMessageViewSet,
    ContactView,
    CurrentAccountView,
    LinkRegistrationView,
    MatchScoreView,
    MentorApplicationViewSet,
    MentorAssignmentsView,
    MentorCohortsView,
    MentorRegistrationView,
    MentoringSessionViewSet,
    RegisterAccountView,
    StudentApplicationViewSet,
    StudentAssignmentsView,
    StudentCohortsView,
    StudentRegistrationView,
)

router = DefaultRouter()
router.register(r"cohorts", CohortViewSet, basename="cohort")
router.register(r"sessions", MentoringSessionViewSet, basename="session")
router.register(r"admin/students", AdminStudentViewSet, basename="admin-student")
router.register(r"admin/mentors", AdminMentorViewSet, basename="admin-mentor")
router.register(r"admin/assignments", AdminAssignmentViewSet, basename="admin-assignment")
router.register(r"student-registrations", StudentApplicationViewSet, basename="student-registration")
router.register(r"mentor-registrations", MentorApplicationViewSet, basename="mentor-registration")
router.register(r"contacts", ContactMessageViewSet, basename="contact")


urlpatterns = [
    path("check-email-registration/", CheckEmailRegistrationView.as_view(), name="check-email-registration"),
    path("student-registration/", StudentRegistrationView.as_view(), name="student-registration-submit"),
    path("mentor-registration/", MentorRegistrationView.as_view(), name="mentor-registration-submit"),
    path("contact/", ContactView.as_view(), name="contact-submit"),
    path("auth/register/", RegisterAccountView.as_view(), name="auth-register"),
    path("auth/link-registration/", LinkRegistrationView.as_view(), name="auth-link-registration"),
    path("auth/user/", CurrentAccountView.as_view(), name="auth-user"),
    path("admin/stats/", AdminStatsView.as_view(), name="admin-stats"),
    path("admin/match-score/", MatchScoreView.as_view(), name="admin-match-score"),
    path("mentor/assignments/", MentorAssignmentsView.as_view(), name="mentor-assignments"),
    path("mentor/cohorts/", MentorCohortsView.as_view(), name="mentor-cohorts"),
    path("student/assignments/", StudentAssignmentsView.as_view(), name="student-assignments"),
    path("student/cohorts/", StudentCohortsView.as_view(), name="student-cohorts"),
    path("", include(router.urls)),
]
