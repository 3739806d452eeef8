from datetime import date
import warnings

from rest_framework.schemas.openapi import SchemaGenerator
from rest_framework.test import APITestCase

from core.auth import IdentityUser
from core.identity import IdentityClaims
from core.models import (
    Account,
    Assignment,
    Cohort,
    ContactMessage,
    MentorApplication,
    MentoringSession,
    StudentApplication,
)
from core.schema import PUBLIC_PATHS, tag_for_path


POST_ONLY_PUBLIC_PATHS = {
    "/api/check-email-registration/",
    "/api/contact/",
    "/api/mentor-registration/",
    "/api/student-registration/",
}

POST_ONLY_AUTHENTICATED_PATHS = {
    "/api/admin/assignments/bulk-delete/",
    "/api/auth/link-registration/",
    "/api/auth/register/",
}

CREATED_PATHS = {
    "/api/contact/",
    "/api/mentor-registration/",
    "/api/student-registration/",
}

MENTOR_PATHS = {
    "/api/mentor/assignments/",
    "/api/mentor/cohorts/",
}

STUDENT_PATHS = {
    "/api/student/assignments/",
    "/api/student/cohorts/",
}


def identity_for(account):
    return IdentityUser(IdentityClaims(subject=account.id, email=account.email))


class ApiAutomationCoverageTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.admin = Account.objects.create(id="admin-automation", email="admin.automation@example.com", role="admin")
        cls.mentor = Account.objects.create(
            id="mentor-automation",
            email="mentor.automation@example.com",
            role="mentor",
            full_name="Mentor Automation",
            preferred_disciplines=["Software Engineering"],
            mentoring_topics=["Career Planning"],
        )
        cls.student = Account.objects.create(
            id="student-automation",
            email="student.automation@example.com",
            role="student",
            full_name="Student Automation",
            preferred_disciplines=["Software Engineering"],
            mentoring_topics=["Interview Prep"],
        )
        cls.cohort = Cohort.objects.create(
            name="Automation Cohort",
            start_date=date(2026, 1, 1),
            end_date=date(2026, 6, 30),
        )
        cls.assignment = Assignment.objects.create(
            cohort=cls.cohort,
            mentor_user=cls.mentor,
            student_user=cls.student,
        )
        cls.session = MentoringSession.objects.create(
            assignment=cls.assignment,
            cohort=cls.cohort,
            scheduled_date=date(2026, 2, 1),
            scheduled_time="09:30",
        )
        cls.student_application = StudentApplication.objects.create(
            email="pending.student@example.com",
            full_name="Pending Student",
            university_name="Automation University",
            academic_program="Computer Science",
            year_of_study="2nd Year",
            nominated_by="Prof. Automation",
            professor_email="professor@example.com",
        )
        cls.mentor_application = MentorApplication.objects.create(
            email="pending.mentor@example.com",
            full_name="Pending Mentor",
        )
        cls.contact = ContactMessage.objects.create(
            name="Visitor",
            email="visitor@example.com",
            subject="Hello",
            message="Automation message",
        )

    def _schema_paths(self):
        with warnings.catch_warnings():
            warnings.filterwarnings("ignore", message="You have a duplicated operationId in your OpenAPI schema*")
            schema = SchemaGenerator(title="AspireLink API").get_schema(public=True)
        return schema.get("paths", {}) if schema else {}

    def _authenticate_for(self, schema_path):
        if schema_path in MENTOR_PATHS:
            account = self.mentor
        elif schema_path in STUDENT_PATHS:
            account = self.student
        else:
            account = self.admin
        self.client.force_authenticate(user=identity_for(account))

    def _clear_authentication(self):
        self.client.force_authenticate(user=None)

    def _endpoint_id_map(self):
        return {
            "/api/admin/assignments/{id}/": self.assignment.id,
            "/api/admin/mentors/{id}/": self.mentor.id,
            "/api/admin/mentors/{id}/status/": self.mentor.id,
            "/api/admin/mentors/{id}/student-matches/": self.mentor.id,
            "/api/admin/students/{id}/": self.student.id,
            "/api/admin/students/{id}/status/": self.student.id,
            "/api/cohorts/{id}/": self.cohort.id,
            "/api/cohorts/{id}/assignments/": self.cohort.id,
            "/api/cohorts/{id}/members/": self.cohort.id,
            "/api/cohorts/{id}/sessions/": self.cohort.id,
            "/api/contacts/{id}/": self.contact.id,
            "/api/mentor-registrations/{id}/": self.mentor_application.id,
            "/api/sessions/{id}/": self.session.id,
            "/api/student-registrations/{id}/": self.student_application.id,
        }

    def _resolve_path(self, schema_path):
        if schema_path == "/api/admin/match-score/":
            return f"/api/admin/match-score/?mentor_id={self.mentor.id}&student_id={self.student.id}"
        endpoint_id = self._endpoint_id_map().get(schema_path)
        if endpoint_id is not None:
            return schema_path.replace("{id}", str(endpoint_id))
        return schema_path

    def _pick_positive_method(self, schema_path, methods):
        if schema_path in POST_ONLY_PUBLIC_PATHS or schema_path in POST_ONLY_AUTHENTICATED_PATHS:
            return "POST"
        if "GET" in methods:
            return "GET"
        if "POST" in methods:
            return "POST"
        if "PATCH" in methods:
            return "PATCH"
        if "PUT" in methods:
            return "PUT"
        return sorted(methods)[0]

    def _positive_payload(self, schema_path):
        if schema_path == "/api/check-email-registration/":
            return {"email": self.student_application.email}
        if schema_path == "/api/student-registration/":
            return {
                "email": "new.student@example.com",
                "full_name": "New Student",
                "university_name": "Automation University",
                "academic_program": "Physics",
                "year_of_study": "1st Year",
                "nominated_by": "Prof. Automation",
                "professor_email": "professor@example.com",
            }
        if schema_path == "/api/mentor-registration/":
            return {"email": "new.mentor@example.com", "full_name": "New Mentor"}
        if schema_path == "/api/contact/":
            return {"name": "Visitor", "email": "visitor@example.com", "message": "Hi"}
        if schema_path == "/api/auth/register/":
            return {}
        if schema_path == "/api/auth/link-registration/":
            return {"email": self.admin.email}
        if schema_path == "/api/admin/assignments/bulk-delete/":
            return {"assignment_ids": [999999]}
        if schema_path in {"/api/admin/mentors/{id}/status/", "/api/admin/students/{id}/status/"}:
            return {"is_active": True}
        return {}

    def _negative_public_case(self, schema_path):
        if schema_path == "/api/schema/":
            return "POST", "/api/schema/", {}, {405}
        if schema_path in POST_ONLY_PUBLIC_PATHS:
            return "POST", schema_path, {}, {400}
        raise AssertionError(f"Unhandled negative public case for {schema_path}")

    def _request(self, method, path, payload):
        if method == "GET":
            return self.client.get(path)
        if method == "DELETE":
            return self.client.delete(path)
        return getattr(self.client, method.lower())(path, payload or {}, format="json")

    def _expected_positive_status(self, schema_path):
        if schema_path in CREATED_PATHS:
            return {201}
        if schema_path == "/api/auth/register/":
            return {200, 201}
        return {200}

    def _methods(self, operations):
        return {method.upper() for method in operations.keys() if method in {"get", "post", "put", "patch", "delete"}}

    def test_schema_lists_public_paths(self):
        paths = self._schema_paths()

        self.assertTrue(PUBLIC_PATHS.issubset(set(paths.keys())), sorted(PUBLIC_PATHS - set(paths.keys())))
        self.assertGreaterEqual(len(paths), 30)

    def test_schema_view_tags_and_secures_operations(self):
        response = self.client.get("/api/schema/")

        self.assertEqual(response.status_code, 200)
        schema = response.data
        self.assertIn("HTTPBearer", schema["components"]["securitySchemes"])
        for schema_path, operations in schema["paths"].items():
            for method, operation in operations.items():
                self.assertEqual(operation["tags"], [tag_for_path(schema_path)])
                if schema_path in PUBLIC_PATHS:
                    self.assertNotIn("security", operation)
                else:
                    self.assertEqual(operation["security"], [{"HTTPBearer": []}])

    def test_positive_path_coverage_for_all_api_paths(self):
        paths = self._schema_paths()
        covered_paths = set()

        for schema_path, operations in sorted(paths.items()):
            method = self._pick_positive_method(schema_path, self._methods(operations))
            path = self._resolve_path(schema_path)
            payload = self._positive_payload(schema_path)

            if schema_path in PUBLIC_PATHS:
                self._clear_authentication()
            else:
                self._authenticate_for(schema_path)

            response = self._request(method, path, payload)
            self.assertIn(
                response.status_code,
                self._expected_positive_status(schema_path),
                f"Positive coverage failed for {schema_path} ({method}) with {response.status_code}: {getattr(response, 'data', None)}",
            )
            covered_paths.add(schema_path)

        self.assertEqual(set(paths.keys()), covered_paths)

    def test_negative_path_coverage_for_all_api_paths(self):
        paths = self._schema_paths()
        covered_paths = set()

        for schema_path, operations in sorted(paths.items()):
            self._clear_authentication()
            if schema_path in PUBLIC_PATHS:
                neg_method, neg_path, payload, expected_statuses = self._negative_public_case(schema_path)
                response = self._request(neg_method, neg_path, payload)
                self.assertIn(
                    response.status_code,
                    expected_statuses,
                    f"Negative public case failed for {schema_path}: {response.status_code}, {getattr(response, 'data', None)}",
                )
            else:
                method = self._pick_positive_method(schema_path, self._methods(operations))
                response = self._request(method, self._resolve_path(schema_path), self._positive_payload(schema_path))
                self.assertIn(
                    response.status_code,
                    {401, 403},
                    f"Protected endpoint should reject unauthenticated access: {schema_path} ({method}) -> {response.status_code}",
                )
            covered_paths.add(schema_path)

        self.assertEqual(set(paths.keys()), covered_paths)

    def test_all_protected_operations_reject_unauthenticated_requests(self):
        paths = self._schema_paths()
        for schema_path, operations in sorted(paths.items()):
            if schema_path in PUBLIC_PATHS:
                continue

            for method in sorted(self._methods(operations)):
                self._clear_authentication()
                payload = self._positive_payload(schema_path) if method in {"POST", "PUT", "PATCH"} else None
                response = self._request(method, self._resolve_path(schema_path), payload)
                self.assertEqual(
                    response.status_code,
                    401,
                    f"Expected unauth rejection for {schema_path} {method}, got {response.status_code}",
                )

    def test_role_endpoints_reject_accounts_without_role(self):
        bare = Account.objects.create(id="bare-automation", email="bare.automation@example.com")
        paths = self._schema_paths()
        for schema_path, operations in sorted(paths.items()):
            if schema_path in PUBLIC_PATHS or schema_path.startswith("/api/auth/"):
                continue
            self.client.force_authenticate(user=identity_for(bare))
            method = self._pick_positive_method(schema_path, self._methods(operations))
            response = self._request(method, self._resolve_path(schema_path), self._positive_payload(schema_path))
            self.assertEqual(
                response.status_code,
                403,
                f"Account without a role reached {schema_path} ({method}) -> {response.status_code}",
            )
