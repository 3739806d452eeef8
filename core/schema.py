from rest_framework.permissions import AllowAny
from rest_framework.renderers import JSONOpenAPIRenderer
from rest_framework.response import Response
from rest_framework.schemas.openapi import AutoSchema
from rest_framework.schemas.openapi import SchemaGenerator
from rest_framework.views import APIView


class AspireLinkAutoSchema(AutoSchema):
    def get_operation_id(self, path, method):
        base = super().get_operation_id(path, method)
        return f"{base}{method.capitalize()}"


PUBLIC_PATHS = {
    "/api/check-email-registration/",
    "/api/student-registration/",
    "/api/mentor-registration/",
    "/api/contact/",
    "/api/schema/",
}

TAG_ORDER = {
    "Registration": 0,
    "Auth": 1,
    "Admin": 2,
    "Cohorts": 3,
    "Mentor Role": 4,
    "Student Role": 5,
    "Sessions": 6,
    "General": 7,
}


def tag_for_path(path: str) -> str:
    if path in PUBLIC_PATHS and path != "/api/schema/":
        return "Registration"
    if path.startswith("/api/auth/"):
        return "Auth"
    if path.startswith("/api/admin/"):
        return "Admin"
    if path.startswith("/api/student-registrations/") or path.startswith("/api/mentor-registrations/"):
        return "Admin"
    if path.startswith("/api/contacts/"):
        return "Admin"
    if path.startswith("/api/cohorts/"):
        return "Cohorts"
    if path.startswith("/api/mentor/"):
        return "Mentor Role"
    if path.startswith("/api/student/"):
        return "Student Role"
    if path.startswith("/api/sessions/"):
        return "Sessions"
    return "General"


class AspireLinkSchemaView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    renderer_classes = [JSONOpenAPIRenderer]

    def get(self, request, *args, **kwargs):
        generator = SchemaGenerator(
            title="AspireLink API",
            description="Backend APIs for registration, account linking, cohorts and mentoring sessions.",
            version="1.0.0",
        )
        schema = generator.get_schema(request=request, public=True)
        if not schema:
            return Response({})

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes["HTTPBearer"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }

        schema["tags"] = [
            {"name": "Registration", "description": "Public application and contact endpoints."},
            {"name": "Auth", "description": "Account creation, registration linking and the current account."},
            {"name": "Admin", "description": "Administration of accounts, applications and assignments."},
            {"name": "Cohorts", "description": "Cohorts and their derived membership."},
            {"name": "Mentor Role", "description": "Endpoints for mentor users."},
            {"name": "Student Role", "description": "Endpoints for student users."},
            {"name": "Sessions", "description": "Mentoring session scheduling."},
            {"name": "General", "description": "Other endpoints."},
        ]

        path_tags = {}
        for path in schema.get("paths", {}):
            path_tags[path] = tag_for_path(path)

        for path, operations in schema.get("paths", {}).items():
            for method, operation in operations.items():
                if method.lower() not in {"get", "post", "put", "patch", "delete"}:
                    continue
                operation["tags"] = [path_tags[path]]
                if path in PUBLIC_PATHS:
                    operation.pop("security", None)
                else:
                    operation["security"] = [{"HTTPBearer": []}]

        sorted_paths = {}
        for path in sorted(
            schema.get("paths", {}).keys(),
            key=lambda item: (TAG_ORDER.get(path_tags[item], 99), item),
        ):
            sorted_paths[path] = schema["paths"][path]
        schema["paths"] = sorted_paths

        return Response(schema)
