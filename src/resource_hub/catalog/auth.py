"""Credential check gating access to the catalog."""

import hmac


def check_credentials(
    username: str, password: str, expected_user: str, expected_password: str
) -> bool:
    """Compare both fields in constant time; both must match."""
    user_ok = hmac.compare_digest(
        username.encode("utf-8"), expected_user.encode("utf-8")
    )
    pass_ok = hmac.compare_digest(
        password.encode("utf-8"), expected_password.encode("utf-8")
    )
    return user_ok and pass_ok
