from rest_framework.permissions import BasePermission


ROLE_ADMIN = "admin"
ROLE_STUDENT = "student"
ROLE_MENTOR = "mentor"
APP_ROLES = {ROLE_ADMIN, ROLE_STUDENT, ROLE_MENTOR}


def current_account(user):
    if not user or not user.is_authenticated:
        return None
    return getattr(user, "account", None)


def user_role(user):
    account = current_account(user)
    if account is None or not account.is_active:
        return None
    return account.role or None


class IsAuthenticatedWithAppRole(BasePermission):
    def has_permission(self, request, view):
        role = user_role(request.user)
        return bool(role in APP_ROLES)


class IsAdminRole(BasePermission):
    message = "Forbidden - Admin access required"

    def has_permission(self, request, view):
        return user_role(request.user) == ROLE_ADMIN


class IsMentorRole(BasePermission):
    message = "Forbidden - Mentor access required"

    def has_permission(self, request, view):
        return user_role(request.user) == ROLE_MENTOR


class IsStudentRole(BasePermission):
    message = "Forbidden - Student access required"

    def has_permission(self, request, view):
        return user_role(request.user) == ROLE_STUDENT


class IsMentorOrAdminRole(BasePermission):
    def has_permission(self, request, view):
        role = user_role(request.user)
        return bool(role in {ROLE_MENTOR, ROLE_ADMIN})
