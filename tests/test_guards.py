import uuid
from datetime import datetime, timezone

import pytest

from estatehub.auth.dependencies import check_role
from estatehub.core.email import EmailService
from estatehub.core.exceptions import Forbidden, Unauthenticated
from estatehub.models.user import UserRole
from estatehub.schemas.user import CurrentUser


def identity(role):
    return CurrentUser(
        id=uuid.uuid4(),
        username="someone",
        email="someone@example.com",
        role=role,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )


def test_check_role_allows_listed_roles():
    agent = identity(UserRole.AGENT)
    assert check_role(agent, [UserRole.AGENT, UserRole.ADMIN]) is agent


def test_check_role_forbids_other_roles():
    with pytest.raises(Forbidden):
        check_role(identity(UserRole.USER), [UserRole.ADMIN])


def test_check_role_without_identity():
    with pytest.raises(Unauthenticated) as exc:
        check_role(None, [UserRole.USER])
    assert exc.value.message == "Access denied. Please authenticate first."


def test_reset_link(settings):
    mailer = EmailService(settings.model_copy(update={"frontend_base_url": "https://estatehub.test/"}))
    assert mailer.reset_link("abc123") == "https://estatehub.test/reset-password?token=abc123"


def test_reset_email_skipped_when_smtp_disabled(settings, caplog):
    caplog.set_level("INFO", logger="estatehub.core.email")

    EmailService(settings).send_password_reset("a@example.com", "alice", "abc123")

    assert "not sent" in caplog.text
