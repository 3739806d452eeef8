"""
Reconciles pre-authentication applications with authenticated accounts.

A student or mentor submits an application without signing in. Once the same
person authenticates, ``link_registration`` copies the application into the
Account keyed by the identity subject, grants the application's role and marks
the application consumed. Finding nothing to link is a normal outcome: the
caller routes the user to manual role selection instead.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Iterator, Optional

from django.db import IntegrityError, transaction

from .exceptions import ConflictError
from .models import Account, Application, MentorApplication, StudentApplication, normalize_email

logger = logging.getLogger(__name__)

# Lookup order matters: a pending student application wins over a mentor one.
APPLICATION_MODELS = (
    (Account.ROLE_STUDENT, StudentApplication),
    (Account.ROLE_MENTOR, MentorApplication),
)
APPLICATION_TYPES = dict(APPLICATION_MODELS)

UNSPECIFIED_VALUES = (None, "", [])


@dataclass(frozen=True)
class EmailCheck:
    exists: bool
    has_account: bool
    role: Optional[str] = None
    application_id: Optional[int] = None
    full_name: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class LinkResult:
    success: bool
    role: Optional[str] = None
    application_id: Optional[int] = None

    def as_dict(self) -> dict:
        data = {"success": self.success}
        if self.success:
            data["role"] = self.role
        return data


def find_pending_application(model, email):
    return (
        model.objects.filter(email=normalize_email(email), status=Application.STATUS_PENDING)
        .order_by("created_at", "id")
        .first()
    )


def check_email(email) -> EmailCheck:
    email = normalize_email(email)
    account = Account.objects.filter(email=email).exclude(role=Account.ROLE_UNSET).first()
    if account is not None:
        return EmailCheck(
            exists=True,
            has_account=True,
            role=account.role,
            full_name=account.full_name or account.display_name or None,
        )

    for role, model in APPLICATION_MODELS:
        application = find_pending_application(model, email)
        if application is not None:
            return EmailCheck(
                exists=True,
                has_account=False,
                role=role,
                application_id=application.id,
                full_name=application.full_name,
            )

    return EmailCheck(exists=False, has_account=False)


def _candidates(email, application_id=None, application_type=None) -> Iterator[Application]:
    """Yields applications in resolution order: verified hint, then email lookup.

    A hint whose stored email does not match is dropped silently; it may be
    stale (another tab submitted a different application).
    """
    model = APPLICATION_TYPES.get(application_type)
    if model is not None and application_id:
        hinted = model.objects.select_for_update().filter(pk=application_id).first()
        if hinted is not None and hinted.email == email:
            yield hinted

    for _role, model in APPLICATION_MODELS:
        application = (
            model.objects.select_for_update()
            .filter(email=email, status=Application.STATUS_PENDING)
            .order_by("created_at", "id")
            .first()
        )
        if application is not None:
            yield application


def resolve_pending_application(email, application_id=None, application_type=None):
    email = normalize_email(email)
    for application in _candidates(email, application_id, application_type):
        if application.is_pending:
            return application
    return None


def merge_application_into_account(subject, email, application) -> Account:
    account = Account.objects.select_for_update().filter(pk=subject).first()
    if account is None:
        account = Account(pk=subject)

    for field, value in application.profile_payload().items():
        if value in UNSPECIFIED_VALUES:
            continue
        setattr(account, field, value)

    account.email = email
    # Admin is granted out of band and outranks any application role.
    if account.role != Account.ROLE_ADMIN:
        account.role = application.role
    account.save()
    return account


def link_registration(subject, email, application_id=None, application_type=None) -> LinkResult:
    """Links the pending application for ``email`` to the account ``subject``.

    The caller guarantees ``subject`` is authenticated and owns ``email``.
    The Account write happens before the application is marked linked, inside
    one transaction, so a failed Account write leaves the application pending.
    """
    email = normalize_email(email)
    try:
        with transaction.atomic():
            application = resolve_pending_application(email, application_id, application_type)
            if application is None:
                logger.info("No pending application to link for %s (subject %s)", email, subject)
                return LinkResult(success=False)

            account = merge_application_into_account(subject, email, application)

            application.status = Application.STATUS_LINKED
            application.linked_account = account
            application.save(update_fields=["status", "linked_account", "updated_at"])
    except IntegrityError as exc:
        logger.warning("Account write failed while linking %s to %s: %s", email, subject, exc)
        raise ConflictError("This email is already linked to another account.") from exc

    logger.info(
        "Linked %s application %s to account %s",
        application.role,
        application.id,
        subject,
    )
    return LinkResult(success=True, role=account.role, application_id=application.id)


def ensure_account(subject, email, display_name="") -> tuple[Account, bool]:
    """Creates the bare Account (role unset) for a freshly authenticated identity."""
    account, created = Account.objects.get_or_create(
        pk=subject,
        defaults={"email": normalize_email(email), "display_name": display_name or ""},
    )
    if not created and display_name and not account.display_name:
        account.display_name = display_name
        account.save(update_fields=["display_name", "updated_at"])
    return account, created
