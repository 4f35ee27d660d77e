"""
ActorResolver and AccessGate: who is acting, and may they do this.
"""

from uuid import uuid4

import pytest

from insurance_kernel.domain.context import ActorContext
from insurance_kernel.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    InactiveUserError,
)
from insurance_services.access_control import AccessGate, ActorResolver


class TestActorResolver:
    def test_active_user_resolves_with_role(self, session, make_user):
        user = make_user(role_name="agent")
        context = ActorResolver(session).resolve(user.id, correlation_id="req-1")
        assert context.actor_id == user.id
        assert context.role == "agent"
        assert context.correlation_id == "req-1"

    def test_string_ids_are_accepted(self, session, make_user):
        user = make_user()
        assert ActorResolver(session).resolve(str(user.id)).actor_id == user.id

    def test_missing_actor(self, session):
        with pytest.raises(AuthenticationError) as exc_info:
            ActorResolver(session).resolve(None)
        assert exc_info.value.code == "AUTHENTICATION_FAILED"

    def test_malformed_actor_id(self, session):
        with pytest.raises(AuthenticationError) as exc_info:
            ActorResolver(session).resolve("not-a-uuid")
        assert exc_info.value.reason == "malformed actor id"

    def test_unknown_user(self, session):
        with pytest.raises(AuthenticationError):
            ActorResolver(session).resolve(uuid4())

    def test_inactive_user(self, session, make_user):
        user = make_user(active=False)
        with pytest.raises(InactiveUserError) as exc_info:
            ActorResolver(session).resolve(user.id)
        assert exc_info.value.actor_id == str(user.id)


class TestAccessGate:
    @pytest.fixture
    def gate(self, settings) -> AccessGate:
        return AccessGate(settings.capabilities)

    def test_allowed(self, gate):
        gate.check(ActorContext(actor_id=uuid4(), role="gestionnaire"), "contract.renew")

    def test_denied(self, gate, captured_logs):
        context = ActorContext(actor_id=uuid4(), role="agent")
        with pytest.raises(AccessDeniedError) as exc_info:
            gate.check(context, "contract.renew")

        assert exc_info.value.role == "agent"
        assert exc_info.value.operation == "contract.renew"
        denied = [r for r in captured_logs() if r["message"] == "access_denied"]
        assert denied and denied[0]["denied_operation"] == "contract.renew"

    def test_deny_by_default(self, gate):
        assert not gate.is_allowed(ActorContext(role="visiteur"), "client.view")
        assert not gate.is_allowed(ActorContext(), "client.view")
        assert not gate.is_allowed(ActorContext(role="admin"), "undeclared.operation")

    @pytest.mark.parametrize("operation", ["user.manage", "contract.delete", "history.list"])
    def test_admin_reaches_everything_declared(self, gate, operation):
        assert gate.is_allowed(ActorContext(role="admin"), operation)
