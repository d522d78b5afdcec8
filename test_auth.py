"""Email-code sign-in helpers against a mocked Supabase auth client."""
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from examsim import auth
from examsim.errors import StoreUnavailable


def test_send_sign_in_code_strips_email():
    client = MagicMock()
    auth.send_sign_in_code(client, " me@example.com ")
    client.auth.sign_in_with_otp.assert_called_once_with({
        "email": "me@example.com",
        "options": {"should_create_user": True},
    })


def test_send_sign_in_code_requires_email():
    client = MagicMock()
    with pytest.raises(ValueError):
        auth.send_sign_in_code(client, "   ")
    client.auth.sign_in_with_otp.assert_not_called()


def test_send_sign_in_code_failure():
    client = MagicMock()
    client.auth.sign_in_with_otp.side_effect = RuntimeError("rate limited")
    with pytest.raises(StoreUnavailable):
        auth.send_sign_in_code(client, "me@example.com")


def test_verify_code_on_a_fresh_client():
    # The code is checked by whatever client the user types it into,
    # not the one that requested it.
    requester, verifier = MagicMock(), MagicMock()
    auth.send_sign_in_code(requester, "you@example.com")
    verifier.auth.verify_otp.return_value = SimpleNamespace(
        user=SimpleNamespace(id="u-2", email="you@example.com")
    )

    user = auth.verify_code(verifier, " you@example.com ", " 123456 ")

    verifier.auth.verify_otp.assert_called_once_with(
        {"email": "you@example.com", "token": "123456", "type": "email"}
    )
    assert user == auth.AuthUser(id="u-2", email="you@example.com")
    requester.auth.verify_otp.assert_not_called()


def test_verify_code_requires_token():
    client = MagicMock()
    with pytest.raises(ValueError):
        auth.verify_code(client, "me@example.com", "  ")
    client.auth.verify_otp.assert_not_called()


def test_verify_code_rejected():
    client = MagicMock()
    client.auth.verify_otp.side_effect = RuntimeError("Token has expired or is invalid")
    with pytest.raises(StoreUnavailable) as exc:
        auth.verify_code(client, "me@example.com", "000000")
    assert exc.value.operation == "verify_code"


def test_verify_code_without_user():
    client = MagicMock()
    client.auth.verify_otp.return_value = SimpleNamespace(user=None)
    with pytest.raises(StoreUnavailable):
        auth.verify_code(client, "me@example.com", "123456")


def test_current_user():
    client = MagicMock()
    client.auth.get_session.return_value = None
    assert auth.current_user(client) is None

    user = SimpleNamespace(id="u-1", email="me@example.com")
    client.auth.get_session.return_value = SimpleNamespace(user=user)
    assert auth.current_user(client) == auth.AuthUser(id="u-1", email="me@example.com")


def test_sign_out_failure():
    client = MagicMock()
    client.auth.sign_out.side_effect = RuntimeError("offline")
    with pytest.raises(StoreUnavailable):
        auth.sign_out(client)
