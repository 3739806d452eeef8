"""
Identity-provider adapter.

The rest of the app only depends on the ``verify(token)`` contract: given a
bearer credential, return :class:`IdentityClaims` or ``None``. The concrete
verifier is chosen by the ``ASPIRELINK_IDENTITY_VERIFIER`` setting so that a
hosted provider (or a fake one in tests) can replace the default signed-token
verifier without touching the linker or the views.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from django.conf import settings
from django.utils.module_loading import import_string
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)

DEFAULT_VERIFIER = "core.identity.SignedTokenIdentityVerifier"


@dataclass(frozen=True)
class IdentityClaims:
    subject: str
    email: str
    display_name: str = ""


class SignedTokenIdentityVerifier:
    """Verifies self-issued simplejwt access tokens."""

    def verify(self, token: str) -> IdentityClaims | None:
        try:
            validated = AccessToken(token)
        except TokenError as exc:
            logger.debug("Rejected identity token: %s", exc)
            return None

        subject = validated.get("sub") or validated.get(api_settings.USER_ID_CLAIM)
        email = validated.get("email")
        if not subject or not email:
            return None
        return IdentityClaims(
            subject=str(subject),
            email=str(email),
            display_name=str(validated.get("name") or ""),
        )


def get_identity_verifier():
    path = getattr(settings, "ASPIRELINK_IDENTITY_VERIFIER", "") or DEFAULT_VERIFIER
    return import_string(path)()


def issue_identity_token(subject: str, email: str, display_name: str = "") -> str:
    token = AccessToken()
    token["sub"] = str(subject)
    token["email"] = email
    if display_name:
        token["name"] = display_name
    return str(token)
