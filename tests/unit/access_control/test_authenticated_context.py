from datetime import datetime, timezone

from gallery.access_control.context import AuthenticatedContext, is_admin_role
from gallery.storage.models import UserModel


def test_admin_role_is_case_insensitive():
    assert is_admin_role("ADMIN")
    assert is_admin_role("admin")
    assert not is_admin_role("USER")
    assert not is_admin_role(None)


def test_can_act_for():
    user = AuthenticatedContext(user_id="u1")
    admin = AuthenticatedContext(user_id="a1", role="Admin")

    assert user.can_act_for("u1")
    assert not user.can_act_for("u2")
    assert admin.can_act_for("u2")


def test_from_user():
    accepted = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ctx = AuthenticatedContext.from_user(UserModel(id="u1", role=None, accepted_author_agreement=accepted))

    assert ctx.role == "USER"
    assert ctx.has_accepted_author_agreement
    assert not AuthenticatedContext(user_id="u2").has_accepted_author_agreement
