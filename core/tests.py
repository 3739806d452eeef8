from datetime import date, timedelta
from io import StringIO
from types import SimpleNamespace
from unittest.mock import patch

from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APITestCase

from core.exceptions import ConflictError
from core.identity import IdentityClaims, SignedTokenIdentityVerifier, issue_identity_token
from core.linking import check_email, link_registration
from core.matching_logic import match_label, match_score, score_students
from core.membership import get_cohort_members, get_user_cohorts
from core.models import (
    Account,
    Application,
    Assignment,
    Cohort,
    ContactMessage,
    MentorApplication,
    MentoringSession,
    StudentApplication,
)


def make_account(subject, role="", **fields):
    fields.setdefault("email", f"{subject}@example.com")
    return Account.objects.create(id=subject, role=role, **fields)


def make_student_application(email, **overrides):
    data = {
        "email": email,
        "full_name": "Ada Lovelace",
        "university_name": "University of London",
        "academic_program": "Mathematics",
        "year_of_study": "3rd Year",
        "nominated_by": "Prof. De Morgan",
        "professor_email": "demorgan@example.com",
        "preferred_disciplines": ["Research"],
        "mentoring_topics": ["Graduate School"],
        "agreed_to_commitment": True,
    }
    data.update(overrides)
    return StudentApplication.objects.create(**data)


def make_mentor_application(email, **overrides):
    data = {
        "email": email,
        "full_name": "Grace Hopper",
        "current_job_title": "Rear Admiral",
        "company": "US Navy",
        "years_experience": 30,
        "skills": ["COBOL"],
        "preferred_disciplines": ["Software Engineering"],
        "mentoring_topics": ["Leadership"],
    }
    data.update(overrides)
    return MentorApplication.objects.create(**data)


def make_cohort(name="Spring Cohort"):
    return Cohort.objects.create(
        name=name,
        start_date=date(2026, 3, 1),
        end_date=date(2026, 6, 30),
    )


class FakeIdentityVerifier:
    tokens = {
        "fake-token-ada": IdentityClaims(subject="fake-ada", email="ada@example.com", display_name="Ada"),
        "fake-token-no-email": IdentityClaims(subject="fake-anon", email=""),
    }

    def verify(self, token):
        return self.tokens.get(token)


class RegistrationLinkerTests(TestCase):
    def test_link_copies_application_into_account_and_marks_it_linked(self):
        application = make_student_application("a@x.com", full_name="Ada")

        result = link_registration("u1", "a@x.com")

        self.assertTrue(result.success)
        self.assertEqual(result.role, "student")
        self.assertEqual(result.as_dict(), {"success": True, "role": "student"})
        account = Account.objects.get(pk="u1")
        self.assertEqual(account.full_name, "Ada")
        self.assertEqual(account.role, Account.ROLE_STUDENT)
        self.assertEqual(account.university_name, "University of London")
        self.assertEqual(account.preferred_disciplines, ["Research"])
        application.refresh_from_db()
        self.assertEqual(application.status, Application.STATUS_LINKED)
        self.assertEqual(application.linked_account_id, "u1")

    def test_second_link_returns_failure_and_leaves_account_untouched(self):
        make_student_application("a@x.com", full_name="Ada")
        link_registration("u1", "a@x.com")
        before = Account.objects.get(pk="u1")

        result = link_registration("u1", "a@x.com")

        self.assertFalse(result.success)
        self.assertEqual(result.as_dict(), {"success": False})
        after = Account.objects.get(pk="u1")
        self.assertEqual(after.full_name, before.full_name)
        self.assertEqual(after.role, before.role)
        self.assertEqual(Account.objects.count(), 1)

    def test_no_pending_application_returns_failure_without_setting_a_role(self):
        make_account("u2", email="b@y.com")

        result = link_registration("u2", "b@y.com")

        self.assertFalse(result.success)
        self.assertEqual(Account.objects.get(pk="u2").role, Account.ROLE_UNSET)

    def test_link_keeps_admin_role_and_merges_profile(self):
        make_account("boss", role=Account.ROLE_ADMIN, email="boss@x.com")
        application = make_student_application("boss@x.com", full_name="Boss")

        result = link_registration("boss", "boss@x.com")

        self.assertTrue(result.success)
        self.assertEqual(result.as_dict(), {"success": True, "role": "admin"})
        account = Account.objects.get(pk="boss")
        self.assertEqual(account.role, Account.ROLE_ADMIN)
        self.assertEqual(account.full_name, "Boss")
        application.refresh_from_db()
        self.assertEqual(application.status, Application.STATUS_LINKED)

    def test_no_pending_application_does_not_create_an_account(self):
        result = link_registration("u2", "b@y.com")

        self.assertFalse(result.success)
        self.assertFalse(Account.objects.filter(pk="u2").exists())

    def test_hint_with_mismatched_email_falls_back_to_email_lookup(self):
        stranger = make_student_application("stranger@x.com", full_name="Someone Else")
        own = make_student_application("a@x.com", full_name="Ada")

        result = link_registration("u1", "a@x.com", application_id=stranger.id, application_type="student")

        self.assertTrue(result.success)
        self.assertEqual(result.application_id, own.id)
        stranger.refresh_from_db()
        self.assertEqual(stranger.status, Application.STATUS_PENDING)
        self.assertEqual(Account.objects.get(pk="u1").full_name, "Ada")

    def test_hint_for_consumed_application_falls_back_to_email_lookup(self):
        consumed = make_mentor_application("a@x.com", status=Application.STATUS_LINKED)
        pending = make_student_application("a@x.com", full_name="Ada")

        result = link_registration("u1", "a@x.com", application_id=consumed.id, application_type="mentor")

        self.assertTrue(result.success)
        self.assertEqual(result.role, "student")
        self.assertEqual(result.application_id, pending.id)

    def test_hint_selects_mentor_application_over_default_student_order(self):
        make_student_application("a@x.com")
        mentor_application = make_mentor_application("a@x.com")

        result = link_registration("u1", "a@x.com", application_id=mentor_application.id, application_type="mentor")

        self.assertTrue(result.success)
        self.assertEqual(result.role, "mentor")
        self.assertEqual(Account.objects.get(pk="u1").company, "US Navy")

    def test_without_hint_student_application_wins(self):
        make_mentor_application("a@x.com")
        make_student_application("a@x.com")

        result = link_registration("u1", "a@x.com")

        self.assertEqual(result.role, "student")

    def test_email_comparison_is_case_insensitive(self):
        make_student_application("Ada@Example.com")

        result = link_registration("u1", "  ada@EXAMPLE.com ")

        self.assertTrue(result.success)
        self.assertEqual(Account.objects.get(pk="u1").email, "ada@example.com")

    def test_merge_keeps_existing_values_for_unspecified_application_fields(self):
        make_account("u1", email="a@x.com", phone_number="+4915112345678", display_name="Ada L.")
        make_student_application("a@x.com", phone_number="", mentoring_topics=[])

        link_registration("u1", "a@x.com")

        account = Account.objects.get(pk="u1")
        self.assertEqual(account.phone_number, "+4915112345678")
        self.assertEqual(account.display_name, "Ada L.")
        self.assertEqual(account.mentoring_topics, [])
        self.assertEqual(account.role, Account.ROLE_STUDENT)

    def test_failed_account_write_keeps_application_pending(self):
        application = make_student_application("a@x.com")

        with patch("core.linking.merge_application_into_account", side_effect=IntegrityError("boom")):
            with self.assertRaises(ConflictError):
                link_registration("u1", "a@x.com")

        application.refresh_from_db()
        self.assertEqual(application.status, Application.STATUS_PENDING)
        self.assertIsNone(application.linked_account_id)

    def test_email_owned_by_another_role_account_raises_conflict(self):
        application = make_student_application("a@x.com")
        make_account("other", role=Account.ROLE_MENTOR, email="a@x.com")

        with self.assertRaises(ConflictError):
            link_registration("u1", "a@x.com")

        application.refresh_from_db()
        self.assertEqual(application.status, Application.STATUS_PENDING)
        self.assertFalse(Account.objects.filter(pk="u1").exists())


class CheckEmailTests(TestCase):
    def test_unknown_email(self):
        result = check_email("nobody@example.com")
        self.assertEqual(
            result.as_dict(),
            {"exists": False, "has_account": False, "role": None, "application_id": None, "full_name": None},
        )

    def test_pending_student_application(self):
        application = make_student_application("a@x.com", full_name="Ada")

        result = check_email("A@X.com")

        self.assertTrue(result.exists)
        self.assertFalse(result.has_account)
        self.assertEqual(result.role, "student")
        self.assertEqual(result.application_id, application.id)
        self.assertEqual(result.full_name, "Ada")

    def test_pending_mentor_application(self):
        application = make_mentor_application("g@x.com")

        result = check_email("g@x.com")

        self.assertEqual(result.role, "mentor")
        self.assertEqual(result.application_id, application.id)

    def test_account_with_role_wins(self):
        make_account("u1", role=Account.ROLE_MENTOR, email="g@x.com", full_name="Grace")

        result = check_email("g@x.com")

        self.assertTrue(result.exists)
        self.assertTrue(result.has_account)
        self.assertEqual(result.role, "mentor")
        self.assertEqual(result.full_name, "Grace")
        self.assertIsNone(result.application_id)

    def test_bare_account_does_not_hide_pending_application(self):
        make_account("u1", email="a@x.com")
        make_student_application("a@x.com")

        result = check_email("a@x.com")

        self.assertFalse(result.has_account)
        self.assertEqual(result.role, "student")

    def test_linked_application_is_not_reported(self):
        make_student_application("a@x.com", status=Application.STATUS_LINKED)

        self.assertFalse(check_email("a@x.com").exists)


class DerivedMembershipTests(TestCase):
    def setUp(self):
        self.mentor_a = make_account("mentor-a", role=Account.ROLE_MENTOR)
        self.student_x = make_account("student-x", role=Account.ROLE_STUDENT)
        self.student_y = make_account("student-y", role=Account.ROLE_STUDENT)

    def test_roster_after_two_assignments_has_three_members(self):
        cohort = make_cohort()
        Assignment.objects.create(cohort=cohort, mentor_user=self.mentor_a, student_user=self.student_x)
        Assignment.objects.create(cohort=cohort, mentor_user=self.mentor_a, student_user=self.student_y)

        members = get_cohort_members(cohort.id)

        self.assertEqual(
            sorted((member.user_id, member.role) for member in members),
            [("mentor-a", "mentor"), ("student-x", "student"), ("student-y", "student")],
        )

    def test_members_do_not_depend_on_insertion_order(self):
        early = timezone.now() - timedelta(days=10)
        late = timezone.now() - timedelta(days=1)

        first = make_cohort("First")
        Assignment.objects.create(
            cohort=first, mentor_user=self.mentor_a, student_user=self.student_y, assigned_at=late, is_active=False
        )
        Assignment.objects.create(
            cohort=first, mentor_user=self.mentor_a, student_user=self.student_x, assigned_at=early
        )

        second = make_cohort("Second")
        Assignment.objects.create(
            cohort=second, mentor_user=self.mentor_a, student_user=self.student_x, assigned_at=early
        )
        Assignment.objects.create(
            cohort=second, mentor_user=self.mentor_a, student_user=self.student_y, assigned_at=late, is_active=False
        )

        first_members = {(m.user_id, m.role): m for m in get_cohort_members(first.id)}
        second_members = {(m.user_id, m.role): m for m in get_cohort_members(second.id)}

        self.assertEqual(set(first_members), set(second_members))
        for members in (first_members, second_members):
            mentor = members[("mentor-a", "mentor")]
            self.assertEqual(mentor.joined_at, early)
            self.assertTrue(mentor.is_active)
            self.assertFalse(members[("student-y", "student")].is_active)

    def test_members_are_scoped_to_their_cohort(self):
        cohort = make_cohort("One")
        other = make_cohort("Two")
        Assignment.objects.create(cohort=cohort, mentor_user=self.mentor_a, student_user=self.student_x)
        Assignment.objects.create(cohort=other, mentor_user=self.mentor_a, student_user=self.student_y)

        user_ids = {member.user_id for member in get_cohort_members(cohort.id)}

        self.assertEqual(user_ids, {"mentor-a", "student-x"})
        self.assertEqual(get_cohort_members(make_cohort("Empty").id), [])

    def test_user_in_both_roles_is_reported_once_per_role(self):
        cohort = make_cohort()
        mentor_b = make_account("mentor-b", role=Account.ROLE_MENTOR)
        Assignment.objects.create(cohort=cohort, mentor_user=self.mentor_a, student_user=self.student_x)
        Assignment.objects.create(cohort=cohort, mentor_user=self.student_x, student_user=self.student_y)
        Assignment.objects.create(cohort=cohort, mentor_user=mentor_b, student_user=self.student_x)

        entries = [m.role for m in get_cohort_members(cohort.id) if m.user_id == "student-x"]
        self.assertEqual(sorted(entries), ["mentor", "student"])

        user_cohorts = get_user_cohorts("student-x")
        self.assertEqual(len(user_cohorts), 1)
        self.assertEqual(user_cohorts[0].cohort, cohort)
        self.assertEqual(user_cohorts[0].roles, ("mentor", "student"))

    def test_user_cohorts_are_deduplicated_across_assignments(self):
        spring = make_cohort("Spring")
        autumn = make_cohort("Autumn")
        make_cohort("Unrelated")
        Assignment.objects.create(cohort=spring, mentor_user=self.mentor_a, student_user=self.student_x)
        Assignment.objects.create(cohort=spring, mentor_user=self.mentor_a, student_user=self.student_y)
        Assignment.objects.create(cohort=autumn, mentor_user=self.mentor_a, student_user=self.student_x)

        cohorts = get_user_cohorts("mentor-a")

        self.assertEqual({entry.cohort.name for entry in cohorts}, {"Spring", "Autumn"})
        self.assertTrue(all(entry.roles == ("mentor",) for entry in cohorts))
        self.assertEqual(get_user_cohorts("nobody"), [])


class MatchScoreTests(TestCase):
    def test_labels_follow_bands(self):
        self.assertEqual(match_label(0), "No matches")
        self.assertEqual(match_label(1), "Low match")
        self.assertEqual(match_label(2), "Low match")
        self.assertEqual(match_label(3), "Good match")
        self.assertEqual(match_label(4), "Good match")
        self.assertEqual(match_label(5), "Excellent match")
        self.assertEqual(match_label(12), "Excellent match")

    def test_score_counts_shared_disciplines_and_topics(self):
        mentor = SimpleNamespace(preferred_disciplines=["Data Science", "Finance"], mentoring_topics=["Networking"])
        student = SimpleNamespace(preferred_disciplines=["Finance", "Data Science"], mentoring_topics=["Networking", "Leadership"])

        self.assertEqual(match_score(mentor, student), 3)
        self.assertEqual(match_score(student, mentor), 3)

    def test_score_is_order_invariant_and_exact(self):
        mentor = SimpleNamespace(preferred_disciplines=["Finance", "Research"], mentoring_topics=["Leadership"])
        reordered = SimpleNamespace(preferred_disciplines=["Research", "Finance"], mentoring_topics=["Leadership"])
        student = SimpleNamespace(preferred_disciplines=["research", "Finance"], mentoring_topics=["leadership"])

        self.assertEqual(match_score(mentor, student), match_score(reordered, student))
        self.assertEqual(match_score(mentor, student), 1)

    def test_disjoint_or_missing_preferences_score_zero(self):
        mentor = SimpleNamespace(preferred_disciplines=["Finance"], mentoring_topics=None)
        student = SimpleNamespace(preferred_disciplines=["Research"], mentoring_topics=[])

        self.assertEqual(match_score(mentor, student), 0)

    def test_score_students_ranks_best_first(self):
        mentor = SimpleNamespace(preferred_disciplines=["Finance", "Research"], mentoring_topics=["Leadership"])
        weak = SimpleNamespace(preferred_disciplines=[], mentoring_topics=["Leadership"])
        strong = SimpleNamespace(preferred_disciplines=["Finance", "Research"], mentoring_topics=["Leadership"])

        ranked = score_students(mentor, [weak, strong])

        self.assertEqual([item.student for item in ranked], [strong, weak])
        self.assertEqual(ranked[0].label, "Good match")
        self.assertEqual(ranked[0].matched_disciplines, ["Finance", "Research"])


class AuthenticatedAPITestCase(APITestCase):
    def authenticate(self, account):
        token = issue_identity_token(account.id, account.email, account.display_name)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

    def authenticate_identity(self, subject, email, display_name=""):
        token = issue_identity_token(subject, email, display_name)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")


class IdentityTokenTests(AuthenticatedAPITestCase):
    def test_signed_token_round_trips_claims(self):
        token = issue_identity_token("u1", "ada@example.com", "Ada")

        claims = SignedTokenIdentityVerifier().verify(token)

        self.assertEqual(claims, IdentityClaims(subject="u1", email="ada@example.com", display_name="Ada"))

    def test_token_without_email_claim_is_rejected(self):
        token = issue_identity_token("u1", "")

        self.assertIsNone(SignedTokenIdentityVerifier().verify(token))

    def test_garbage_token_is_rejected(self):
        self.assertIsNone(SignedTokenIdentityVerifier().verify("not-a-token"))

    def test_missing_token_is_unauthorized(self):
        response = self.client.get("/api/auth/user/")
        self.assertEqual(response.status_code, 401)

    def test_invalid_token_is_unauthorized(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        response = self.client.get("/api/auth/user/")
        self.assertEqual(response.status_code, 401)

    def test_public_endpoint_ignores_bad_token(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        response = self.client.post("/api/check-email-registration/", {"email": "a@x.com"}, format="json")
        self.assertEqual(response.status_code, 200)

    @override_settings(ASPIRELINK_IDENTITY_VERIFIER="core.tests.FakeIdentityVerifier")
    def test_configured_verifier_is_used(self):
        make_student_application("ada@example.com", full_name="Ada")
        self.client.credentials(HTTP_AUTHORIZATION="Bearer fake-token-ada")

        response = self.client.post(
            "/api/auth/link-registration/", {"email": "ada@example.com"}, format="json"
        )

        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data, {"success": True, "role": "student"})
        self.assertEqual(Account.objects.get(pk="fake-ada").full_name, "Ada")

    @override_settings(ASPIRELINK_IDENTITY_VERIFIER="core.tests.FakeIdentityVerifier")
    def test_configured_verifier_rejects_unknown_token(self):
        token = issue_identity_token("u1", "ada@example.com")
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        response = self.client.get("/api/auth/user/")

        self.assertEqual(response.status_code, 401)


class RegistrationEndpointTests(AuthenticatedAPITestCase):
    student_payload = {
        "email": "a@x.com",
        "full_name": "Ada",
        "university_name": "University of London",
        "academic_program": "Mathematics",
        "year_of_study": "3rd Year",
        "nominated_by": "Prof. De Morgan",
        "professor_email": "demorgan@example.com",
        "preferred_disciplines": ["Research"],
        "mentoring_topics": ["Graduate School"],
        "agreed_to_commitment": True,
    }

    def test_student_registration_creates_pending_application(self):
        response = self.client.post("/api/student-registration/", self.student_payload, format="json")

        self.assertEqual(response.status_code, 201, response.data)
        self.assertTrue(response.data["success"])
        application = StudentApplication.objects.get(pk=response.data["id"])
        self.assertEqual(application.status, Application.STATUS_PENDING)
        self.assertEqual(application.preferred_disciplines, ["Research"])

    def test_duplicate_pending_registration_is_rejected(self):
        first = self.client.post("/api/student-registration/", self.student_payload, format="json")
        second = self.client.post(
            "/api/student-registration/", {**self.student_payload, "email": "A@X.COM"}, format="json"
        )

        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 409)
        self.assertEqual(StudentApplication.objects.count(), 1)

    def test_rejected_duplicate_is_logged(self):
        self.client.post("/api/student-registration/", self.student_payload, format="json")

        with self.assertLogs("core.serializers", level="INFO") as captured:
            response = self.client.post("/api/student-registration/", self.student_payload, format="json")

        self.assertEqual(response.status_code, 409)
        self.assertIn("a@x.com", captured.output[0])

    def test_pending_registration_blocks_other_application_type(self):
        self.client.post("/api/student-registration/", self.student_payload, format="json")

        response = self.client.post(
            "/api/mentor-registration/", {"email": "a@x.com", "full_name": "Ada"}, format="json"
        )

        self.assertEqual(response.status_code, 409)
        self.assertFalse(MentorApplication.objects.exists())

    def test_registration_rejected_when_account_with_role_owns_email(self):
        make_account("u1", role=Account.ROLE_MENTOR, email="a@x.com")

        response = self.client.post("/api/student-registration/", self.student_payload, format="json")

        self.assertEqual(response.status_code, 409)
        self.assertIn("sign in", str(response.data["detail"]))

    def test_registration_allowed_after_previous_application_linked(self):
        make_student_application("a@x.com", status=Application.STATUS_LINKED)

        response = self.client.post("/api/student-registration/", self.student_payload, format="json")

        self.assertEqual(response.status_code, 201, response.data)

    def test_missing_required_fields_are_reported_per_field(self):
        response = self.client.post("/api/student-registration/", {"email": "a@x.com"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertIn("university_name", response.data)
        self.assertIn("professor_email", response.data)

    def test_mentor_registration(self):
        response = self.client.post(
            "/api/mentor-registration/",
            {
                "email": "g@x.com",
                "full_name": "Grace",
                "company": "US Navy",
                "skills": ["COBOL"],
                "availability": ["Weekends"],
            },
            format="json",
        )

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(MentorApplication.objects.get().skills, ["COBOL"])

    def test_check_email_endpoint_uses_snake_case_keys(self):
        application = make_student_application("a@x.com", full_name="Ada")

        response = self.client.post("/api/check-email-registration/", {"email": "a@x.com"}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.data,
            {
                "exists": True,
                "has_account": False,
                "role": "student",
                "application_id": application.id,
                "full_name": "Ada",
            },
        )

    def test_check_email_requires_valid_email(self):
        response = self.client.post("/api/check-email-registration/", {"email": "nope"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_contact_message(self):
        response = self.client.post(
            "/api/contact/",
            {"name": "Ada", "email": "a@x.com", "subject": "Hello", "message": "Question about cohorts"},
            format="json",
        )

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(ContactMessage.objects.get().subject, "Hello")


class AccountEndpointTests(AuthenticatedAPITestCase):
    def test_register_creates_bare_account_once(self):
        self.authenticate_identity("u1", "Ada@Example.com", "Ada")

        created = self.client.post("/api/auth/register/", {}, format="json")
        repeated = self.client.post("/api/auth/register/", {}, format="json")

        self.assertEqual(created.status_code, 201, created.data)
        self.assertEqual(repeated.status_code, 200)
        account = Account.objects.get(pk="u1")
        self.assertEqual(account.email, "ada@example.com")
        self.assertEqual(account.role, Account.ROLE_UNSET)
        self.assertEqual(account.display_name, "Ada")

    def test_register_rejects_foreign_email(self):
        self.authenticate_identity("u1", "ada@example.com")

        response = self.client.post("/api/auth/register/", {"email": "someone@example.com"}, format="json")

        self.assertEqual(response.status_code, 403)
        self.assertFalse(Account.objects.exists())

    def test_link_registration_endpoint(self):
        make_student_application("a@x.com", full_name="Ada")
        self.authenticate_identity("u1", "a@x.com")
        self.client.post("/api/auth/register/", {}, format="json")

        response = self.client.post("/api/auth/link-registration/", {"email": "a@x.com"}, format="json")

        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data, {"success": True, "role": "student"})
        me = self.client.get("/api/auth/user/")
        self.assertEqual(me.data["role"], "student")
        self.assertEqual(me.data["full_name"], "Ada")

    def test_link_registration_with_hint(self):
        mentor_application = make_mentor_application("a@x.com")
        make_student_application("a@x.com")
        self.authenticate_identity("u1", "a@x.com")

        response = self.client.post(
            "/api/auth/link-registration/",
            {"email": "a@x.com", "registration_id": mentor_application.id, "registration_type": "mentor"},
            format="json",
        )

        self.assertEqual(response.data, {"success": True, "role": "mentor"})

    def test_link_registration_without_application_is_not_an_error(self):
        self.authenticate_identity("u2", "b@y.com")

        response = self.client.post("/api/auth/link-registration/", {"email": "b@y.com"}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"success": False})

    def test_link_registration_rejects_email_of_another_identity(self):
        make_student_application("victim@x.com")
        self.authenticate_identity("u1", "a@x.com")

        response = self.client.post("/api/auth/link-registration/", {"email": "victim@x.com"}, format="json")

        self.assertEqual(response.status_code, 403)
        self.assertEqual(StudentApplication.objects.get().status, Application.STATUS_PENDING)

    def test_link_registration_conflict_returns_409(self):
        make_student_application("a@x.com")
        make_account("other", role=Account.ROLE_MENTOR, email="a@x.com")
        self.authenticate_identity("u1", "a@x.com")

        response = self.client.post("/api/auth/link-registration/", {"email": "a@x.com"}, format="json")

        self.assertEqual(response.status_code, 409)
        self.assertEqual(StudentApplication.objects.get().status, Application.STATUS_PENDING)

    def test_link_with_token_missing_email_is_unauthorized(self):
        make_student_application("victim@x.com", full_name="Victim")
        self.authenticate_identity("attacker", "")

        response = self.client.post("/api/auth/link-registration/", {"email": "victim@x.com"}, format="json")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(StudentApplication.objects.get().status, Application.STATUS_PENDING)
        self.assertFalse(Account.objects.exists())

    @override_settings(ASPIRELINK_IDENTITY_VERIFIER="core.tests.FakeIdentityVerifier")
    def test_identity_without_email_cannot_link_foreign_application(self):
        make_student_application("victim@x.com", full_name="Victim")
        self.client.credentials(HTTP_AUTHORIZATION="Bearer fake-token-no-email")

        response = self.client.post("/api/auth/link-registration/", {"email": "victim@x.com"}, format="json")

        self.assertEqual(response.status_code, 403)
        self.assertEqual(StudentApplication.objects.get().status, Application.STATUS_PENDING)
        self.assertFalse(Account.objects.exists())

    @override_settings(ASPIRELINK_IDENTITY_VERIFIER="core.tests.FakeIdentityVerifier")
    def test_identity_without_email_cannot_register_foreign_email(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer fake-token-no-email")

        response = self.client.post("/api/auth/register/", {"email": "victim@x.com"}, format="json")

        self.assertEqual(response.status_code, 403)
        self.assertFalse(Account.objects.exists())

    def test_current_account_missing_returns_404(self):
        self.authenticate_identity("ghost", "ghost@example.com")

        response = self.client.get("/api/auth/user/")

        self.assertEqual(response.status_code, 404)

    def test_current_account_patch_cannot_change_role(self):
        account = make_account("u1", role=Account.ROLE_STUDENT, full_name="Ada")
        self.authenticate(account)

        response = self.client.patch(
            "/api/auth/user/",
            {"role": "admin", "full_name": "Ada Lovelace", "mentoring_topics": ["Networking"]},
            format="json",
        )

        self.assertEqual(response.status_code, 200, response.data)
        account.refresh_from_db()
        self.assertEqual(account.role, Account.ROLE_STUDENT)
        self.assertEqual(account.full_name, "Ada Lovelace")
        self.assertEqual(account.mentoring_topics, ["Networking"])


class CohortAndAssignmentTests(AuthenticatedAPITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = make_account("admin-1", role=Account.ROLE_ADMIN)
        cls.mentor = make_account(
            "mentor-1",
            role=Account.ROLE_MENTOR,
            full_name="Grace",
            preferred_disciplines=["Finance", "Research"],
            mentoring_topics=["Leadership"],
        )
        cls.student = make_account(
            "student-1",
            role=Account.ROLE_STUDENT,
            full_name="Ada",
            preferred_disciplines=["Research", "Finance"],
            mentoring_topics=["Leadership", "Networking"],
        )
        cls.other_student = make_account("student-2", role=Account.ROLE_STUDENT, full_name="Mary")
        cls.cohort = make_cohort()

    def assign(self, mentor, student, cohort=None):
        return self.client.post(
            f"/api/cohorts/{(cohort or self.cohort).id}/assignments/",
            {"mentor_user_id": mentor.id, "student_user_id": student.id},
            format="json",
        )

    def test_admin_creates_cohort(self):
        self.authenticate(self.admin)

        response = self.client.post(
            "/api/cohorts/",
            {"name": "Autumn", "start_date": "2026-09-01", "end_date": "2026-12-15"},
            format="json",
        )

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["sessions_per_month"], 2)

    def test_cohort_end_before_start_is_rejected(self):
        self.authenticate(self.admin)

        response = self.client.post(
            "/api/cohorts/",
            {"name": "Broken", "start_date": "2026-09-01", "end_date": "2026-08-01"},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn("end_date", response.data)

    def test_unknown_cohort_is_404(self):
        self.authenticate(self.admin)
        self.assertEqual(self.client.get("/api/cohorts/999999/").status_code, 404)

    def test_non_admin_cannot_manage_cohorts(self):
        self.authenticate(self.mentor)

        self.assertEqual(self.client.get("/api/cohorts/").status_code, 403)
        self.assertEqual(self.assign(self.mentor, self.student).status_code, 403)

    def test_assignments_derive_members(self):
        self.authenticate(self.admin)

        first = self.assign(self.mentor, self.student)
        second = self.assign(self.mentor, self.other_student)
        members = self.client.get(f"/api/cohorts/{self.cohort.id}/members/")

        self.assertEqual(first.status_code, 201, first.data)
        self.assertEqual(second.status_code, 201, second.data)
        self.assertEqual(first.data["cohort"], self.cohort.id)
        self.assertEqual(members.status_code, 200)
        self.assertEqual(
            sorted((item["user_id"], item["role"]) for item in members.data),
            [("mentor-1", "mentor"), ("student-1", "student"), ("student-2", "student")],
        )
        names = {item["user_id"]: item["account"]["full_name"] for item in members.data}
        self.assertEqual(names["mentor-1"], "Grace")

    def test_duplicate_assignment_is_conflict(self):
        self.authenticate(self.admin)

        self.assign(self.mentor, self.student)
        response = self.assign(self.mentor, self.student)

        self.assertEqual(response.status_code, 409)
        self.assertEqual(Assignment.objects.count(), 1)

    def test_same_pair_allowed_in_another_cohort(self):
        self.authenticate(self.admin)
        other = make_cohort("Autumn")

        self.assign(self.mentor, self.student)
        response = self.assign(self.mentor, self.student, cohort=other)

        self.assertEqual(response.status_code, 201, response.data)

    def test_assignment_requires_matching_roles(self):
        self.authenticate(self.admin)

        response = self.assign(self.student, self.other_student)

        self.assertEqual(response.status_code, 400)
        self.assertIn("mentor_user_id", response.data)

    def test_assignment_with_unknown_account_is_rejected(self):
        self.authenticate(self.admin)

        response = self.client.post(
            f"/api/cohorts/{self.cohort.id}/assignments/",
            {"mentor_user_id": "missing", "student_user_id": self.student.id},
            format="json",
        )

        self.assertEqual(response.status_code, 400)

    def test_cohort_assignments_listing_is_enriched(self):
        self.authenticate(self.admin)
        self.assign(self.mentor, self.student)

        response = self.client.get(f"/api/cohorts/{self.cohort.id}/assignments/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data[0]["mentor"]["full_name"], "Grace")
        self.assertEqual(response.data[0]["student"]["full_name"], "Ada")
        self.assertEqual(response.data[0]["cohort_detail"]["name"], "Spring Cohort")

    def test_admin_assignment_bulk_delete(self):
        keep = Assignment.objects.create(cohort=self.cohort, mentor_user=self.mentor, student_user=self.student)
        drop = Assignment.objects.create(cohort=self.cohort, mentor_user=self.mentor, student_user=self.other_student)
        self.authenticate(self.admin)

        response = self.client.post(
            "/api/admin/assignments/bulk-delete/", {"assignment_ids": [drop.id, 999999]}, format="json"
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {"deleted": 1})
        self.assertEqual(list(Assignment.objects.values_list("id", flat=True)), [keep.id])

    def test_admin_assignment_filters(self):
        Assignment.objects.create(cohort=self.cohort, mentor_user=self.mentor, student_user=self.student)
        Assignment.objects.create(cohort=self.cohort, mentor_user=self.mentor, student_user=self.other_student)
        self.authenticate(self.admin)

        response = self.client.get("/api/admin/assignments/", {"student_user_id": "student-2"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["student_user_id"] for item in response.data], ["student-2"])

    def test_mentor_and_student_views_of_assignments(self):
        assignment = Assignment.objects.create(cohort=self.cohort, mentor_user=self.mentor, student_user=self.student)
        MentoringSession.objects.create(
            assignment=assignment,
            cohort=self.cohort,
            scheduled_date=date(2026, 4, 2),
            scheduled_time="10:00",
        )

        self.authenticate(self.mentor)
        mentor_view = self.client.get("/api/mentor/assignments/")
        self.authenticate(self.student)
        student_view = self.client.get("/api/student/assignments/")
        wrong_role = self.client.get("/api/mentor/assignments/")

        self.assertEqual(mentor_view.status_code, 200)
        self.assertEqual(mentor_view.data[0]["counterpart"]["id"], "student-1")
        self.assertEqual(len(mentor_view.data[0]["sessions"]), 1)
        self.assertEqual(student_view.data[0]["counterpart"]["id"], "mentor-1")
        self.assertEqual(student_view.data[0]["cohort_detail"]["id"], self.cohort.id)
        self.assertEqual(wrong_role.status_code, 403)

    def test_mentor_and_student_cohorts(self):
        Assignment.objects.create(cohort=self.cohort, mentor_user=self.mentor, student_user=self.student)

        self.authenticate(self.mentor)
        mentor_cohorts = self.client.get("/api/mentor/cohorts/")
        self.authenticate(self.other_student)
        empty = self.client.get("/api/student/cohorts/")

        self.assertEqual(mentor_cohorts.status_code, 200)
        self.assertEqual(mentor_cohorts.data[0]["id"], self.cohort.id)
        self.assertEqual(mentor_cohorts.data[0]["roles"], ["mentor"])
        self.assertEqual(empty.data, [])


class MentoringSessionTests(AuthenticatedAPITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = make_account("admin-1", role=Account.ROLE_ADMIN)
        cls.mentor = make_account("mentor-1", role=Account.ROLE_MENTOR)
        cls.other_mentor = make_account("mentor-2", role=Account.ROLE_MENTOR)
        cls.student = make_account("student-1", role=Account.ROLE_STUDENT)
        cls.other_student = make_account("student-2", role=Account.ROLE_STUDENT)
        cls.cohort = make_cohort()
        cls.assignment = Assignment.objects.create(
            cohort=cls.cohort, mentor_user=cls.mentor, student_user=cls.student
        )
        cls.other_assignment = Assignment.objects.create(
            cohort=cls.cohort, mentor_user=cls.other_mentor, student_user=cls.other_student
        )

    def session_payload(self, assignment=None):
        return {
            "assignment": (assignment or self.assignment).id,
            "scheduled_date": "2026-04-02",
            "scheduled_time": "10:00",
            "duration_minutes": 45,
            "meeting_link": "https://meet.example.com/abc",
        }

    def test_mentor_schedules_session_for_own_assignment(self):
        self.authenticate(self.mentor)

        response = self.client.post("/api/sessions/", self.session_payload(), format="json")

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["cohort"], self.cohort.id)
        self.assertEqual(response.data["status"], "scheduled")

    def test_mentor_cannot_schedule_for_someone_elses_assignment(self):
        self.authenticate(self.mentor)

        response = self.client.post(
            "/api/sessions/", self.session_payload(self.other_assignment), format="json"
        )

        self.assertEqual(response.status_code, 403)
        self.assertFalse(MentoringSession.objects.exists())

    def test_student_cannot_schedule(self):
        self.authenticate(self.student)

        response = self.client.post("/api/sessions/", self.session_payload(), format="json")

        self.assertEqual(response.status_code, 403)

    def test_zero_duration_is_rejected(self):
        self.authenticate(self.mentor)

        response = self.client.post(
            "/api/sessions/", {**self.session_payload(), "duration_minutes": 0}, format="json"
        )

        self.assertEqual(response.status_code, 400)

    def test_sessions_are_scoped_to_participants(self):
        own = MentoringSession.objects.create(
            assignment=self.assignment, cohort=self.cohort, scheduled_date=date(2026, 4, 2), scheduled_time="10:00"
        )
        MentoringSession.objects.create(
            assignment=self.other_assignment,
            cohort=self.cohort,
            scheduled_date=date(2026, 4, 3),
            scheduled_time="11:00",
        )

        self.authenticate(self.student)
        student_view = self.client.get("/api/sessions/")
        hidden = self.client.get(f"/api/sessions/{own.id + 1}/")
        self.authenticate(self.admin)
        admin_view = self.client.get("/api/sessions/")

        self.assertEqual([item["id"] for item in student_view.data], [own.id])
        self.assertEqual(hidden.status_code, 404)
        self.assertEqual(len(admin_view.data), 2)

    def test_mentor_completes_and_deletes_session(self):
        session = MentoringSession.objects.create(
            assignment=self.assignment, cohort=self.cohort, scheduled_date=date(2026, 4, 2), scheduled_time="10:00"
        )
        self.authenticate(self.mentor)

        updated = self.client.patch(f"/api/sessions/{session.id}/", {"status": "completed"}, format="json")
        deleted = self.client.delete(f"/api/sessions/{session.id}/")

        self.assertEqual(updated.status_code, 200, updated.data)
        self.assertEqual(updated.data["status"], "completed")
        self.assertEqual(deleted.status_code, 204)

    def test_student_cannot_delete_session(self):
        session = MentoringSession.objects.create(
            assignment=self.assignment, cohort=self.cohort, scheduled_date=date(2026, 4, 2), scheduled_time="10:00"
        )
        self.authenticate(self.student)

        response = self.client.delete(f"/api/sessions/{session.id}/")

        self.assertEqual(response.status_code, 403)
        self.assertTrue(MentoringSession.objects.filter(pk=session.id).exists())

    def test_cohort_sessions_listing(self):
        MentoringSession.objects.create(
            assignment=self.assignment, cohort=self.cohort, scheduled_date=date(2026, 4, 2), scheduled_time="10:00"
        )
        self.authenticate(self.admin)

        response = self.client.get(f"/api/cohorts/{self.cohort.id}/sessions/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)


class AdminEndpointTests(AuthenticatedAPITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = make_account("admin-1", role=Account.ROLE_ADMIN)
        cls.mentor = make_account(
            "mentor-1",
            role=Account.ROLE_MENTOR,
            preferred_disciplines=["Finance", "Research"],
            mentoring_topics=["Leadership"],
        )
        cls.strong_student = make_account(
            "student-1",
            role=Account.ROLE_STUDENT,
            preferred_disciplines=["Research", "Finance"],
            mentoring_topics=["Leadership", "Networking"],
        )
        cls.weak_student = make_account(
            "student-2",
            role=Account.ROLE_STUDENT,
            preferred_disciplines=["Research"],
            mentoring_topics=[],
        )
        make_student_application("pending@x.com")
        make_mentor_application("pending-mentor@x.com")
        cls.cohort = make_cohort()
        Assignment.objects.create(cohort=cls.cohort, mentor_user=cls.mentor, student_user=cls.strong_student)

    def test_stats(self):
        self.authenticate(self.admin)

        response = self.client.get("/api/admin/stats/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["total_students"], 2)
        self.assertEqual(response.data["total_mentors"], 1)
        self.assertEqual(response.data["total_assignments"], 1)
        self.assertEqual(response.data["total_cohorts"], 1)
        self.assertEqual(response.data["pending_student_registrations"], 1)
        self.assertEqual(response.data["pending_mentor_registrations"], 1)

    def test_stats_forbidden_for_students(self):
        self.authenticate(self.strong_student)
        self.assertEqual(self.client.get("/api/admin/stats/").status_code, 403)

    def test_student_listing_and_status_toggle(self):
        self.authenticate(self.admin)

        listing = self.client.get("/api/admin/students/")
        toggled = self.client.put(
            f"/api/admin/students/{self.weak_student.id}/status/", {"is_active": False}, format="json"
        )
        active_only = self.client.get("/api/admin/students/", {"is_active": "true"})

        self.assertEqual({item["id"] for item in listing.data}, {"student-1", "student-2"})
        self.assertEqual(toggled.status_code, 200, toggled.data)
        self.assertFalse(toggled.data["is_active"])
        self.assertEqual([item["id"] for item in active_only.data], ["student-1"])

    def test_deactivated_account_loses_role_access(self):
        self.authenticate(self.admin)
        self.client.patch(f"/api/admin/students/{self.strong_student.id}/status/", {"is_active": False}, format="json")

        self.authenticate(self.strong_student)
        response = self.client.get("/api/student/assignments/")

        self.assertEqual(response.status_code, 403)

    def test_admin_can_change_role(self):
        self.authenticate(self.admin)

        response = self.client.patch(
            f"/api/admin/students/{self.weak_student.id}/", {"role": "mentor"}, format="json"
        )

        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(Account.objects.get(pk="student-2").role, Account.ROLE_MENTOR)

    def test_match_score(self):
        self.authenticate(self.admin)

        response = self.client.get(
            "/api/admin/match-score/", {"mentor_id": "mentor-1", "student_id": "student-1"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["score"], 3)
        self.assertEqual(response.data["label"], "Good match")
        self.assertEqual(response.data["matched_disciplines"], ["Finance", "Research"])
        self.assertEqual(response.data["matched_topics"], ["Leadership"])

    def test_match_score_requires_both_ids(self):
        self.authenticate(self.admin)

        response = self.client.get("/api/admin/match-score/", {"mentor_id": "mentor-1"})

        self.assertEqual(response.status_code, 400)

    def test_match_score_unknown_mentor_is_404(self):
        self.authenticate(self.admin)

        response = self.client.get(
            "/api/admin/match-score/", {"mentor_id": "student-1", "student_id": "student-2"}
        )

        self.assertEqual(response.status_code, 404)

    def test_student_matches_are_ranked(self):
        self.authenticate(self.admin)

        response = self.client.get(f"/api/admin/mentors/{self.mentor.id}/student-matches/")

        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["student"]["id"] for item in response.data], ["student-1", "student-2"])
        self.assertEqual([item["label"] for item in response.data], ["Good match", "Low match"])

    def test_application_listings(self):
        self.authenticate(self.admin)

        students = self.client.get("/api/student-registrations/", {"status": "pending"})
        mentors = self.client.get("/api/mentor-registrations/")

        self.assertEqual([item["email"] for item in students.data], ["pending@x.com"])
        self.assertEqual([item["email"] for item in mentors.data], ["pending-mentor@x.com"])


class ManagementCommandTests(TestCase):
    def test_grant_admin_by_email(self):
        make_account("u1", email="ada@example.com")

        call_command("grant_admin", "Ada@Example.com", stdout=StringIO())

        self.assertEqual(Account.objects.get(pk="u1").role, Account.ROLE_ADMIN)

    def test_issue_identity_token_prints_verifiable_token(self):
        out = StringIO()

        call_command("issue_identity_token", "u1", "ada@example.com", "--name", "Ada", stdout=out)

        claims = SignedTokenIdentityVerifier().verify(out.getvalue().strip())
        self.assertEqual(claims.subject, "u1")
        self.assertEqual(claims.display_name, "Ada")

    def test_seed_data_is_repeatable(self):
        call_command("seed_data", count=4, stdout=StringIO())
        call_command("seed_data", count=4, stdout=StringIO())

        self.assertEqual(Account.objects.filter(role=Account.ROLE_STUDENT).count(), 2)
        self.assertEqual(Account.objects.filter(role=Account.ROLE_MENTOR).count(), 2)
        self.assertEqual(StudentApplication.objects.filter(status=Application.STATUS_PENDING).count(), 2)
        self.assertEqual(Assignment.objects.count(), 2)
        self.assertEqual(Cohort.objects.filter(name="Seed Cohort").count(), 1)
