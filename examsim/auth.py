"""Email one-time-code sign-in through Supabase Auth. The engine only ever sees the resulting user id."""
import logging
from dataclasses import dataclass
from typing import Optional

from supabase import Client

from examsim.errors import StoreUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


def _clean_email(email: str) -> str:
    email = (email or "").strip()
    if not email:
        raise ValueError("Please enter your email address.")
    return email


def send_sign_in_code(client: Client, email: str) -> None:
    """Email a one-time sign-in code. Raises ValueError on a blank address."""
    email = _clean_email(email)
    try:
        client.auth.sign_in_with_otp({
            "email": email,
            "options": {"should_create_user": True},
        })
    except Exception as e:
        logger.error(f"Error sending sign-in code to {email}: {e}")
        raise StoreUnavailable("send_sign_in_code", e) from e
    logger.info(f"Sign-in code sent to {email}")


def verify_code(client: Client, email: str, token: str) -> AuthUser:
    """
    Check the emailed code and open an auth session on this client.
    Works in whichever browser the user types the code into, no redirect needed.
    """
    email = _clean_email(email)
    token = (token or "").strip()
    if not token:
        raise ValueError("Please enter the code from your email.")
    try:
        response = client.auth.verify_otp({"email": email, "token": token, "type": "email"})
    except Exception as e:
        logger.error(f"Error verifying sign-in code for {email}: {e}")
        raise StoreUnavailable("verify_code", e) from e
    if response is None or response.user is None:
        raise StoreUnavailable("verify_code", "no user returned")
    logger.info(f"Signed in {email}")
    return AuthUser(id=str(response.user.id), email=response.user.email)


def current_user(client: Client) -> Optional[AuthUser]:
    """Signed-in user of the client's auth session, or None."""
    try:
        session = client.auth.get_session()
    except Exception as e:
        logger.error(f"Error reading auth session: {e}")
        raise StoreUnavailable("current_user", e) from e
    if session is None or session.user is None:
        return None
    return AuthUser(id=str(session.user.id), email=session.user.email)


def sign_out(client: Client) -> None:
    try:
        client.auth.sign_out()
    except Exception as e:
        logger.error(f"Error signing out: {e}")
        raise StoreUnavailable("sign_out", e) from e
