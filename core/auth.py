import logging

from django.utils.functional import cached_property
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, get_authorization_header

from .identity import get_identity_verifier
from .models import Account

logger = logging.getLogger(__name__)

AUTH_HEADER_TYPE = "Bearer"


class IdentityUser:
    """Request user backed by verified identity claims rather than a Django user."""

    is_authenticated = True
    is_anonymous = False
    is_superuser = False
    is_staff = False

    def __init__(self, claims):
        self.claims = claims

    @property
    def subject(self):
        return self.claims.subject

    @property
    def pk(self):
        return self.claims.subject

    @property
    def email(self):
        return self.claims.email

    @property
    def display_name(self):
        return self.claims.display_name

    @cached_property
    def account(self):
        return Account.objects.filter(pk=self.claims.subject).first()

    def __str__(self) -> str:
        return self.claims.email or self.claims.subject


class IdentityTokenAuthentication(BaseAuthentication):
    # Set on a subclass (or in tests) to bypass the configured verifier.
    verifier = None

    def get_verifier(self):
        return self.verifier or get_identity_verifier()

    def authenticate(self, request):
        header = get_authorization_header(request).split()
        if not header or header[0].lower() != AUTH_HEADER_TYPE.lower().encode():
            return None
        if len(header) != 2:
            raise exceptions.AuthenticationFailed("Invalid authorization header.")

        try:
            token = header[1].decode()
        except UnicodeError as exc:
            raise exceptions.AuthenticationFailed("Invalid authorization header.") from exc

        claims = self.get_verifier().verify(token)
        if claims is None:
            logger.debug("Bearer token rejected by identity verifier")
            raise exceptions.AuthenticationFailed("Unauthorized")
        return IdentityUser(claims), token

    def authenticate_header(self, request):
        return AUTH_HEADER_TYPE
