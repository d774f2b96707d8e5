"""Resolving the submitting user from an access token."""

from __future__ import annotations

from .errors import AuthenticationError


class SupabaseAuthenticator:
    """Wraps Supabase Auth's token lookup."""

    def __init__(self, client) -> None:
        self._client = client

    def resolve_user(self, token: str | None) -> str:
        """Return the user id the access token belongs to.

        Accepts a raw token or an ``Authorization`` header value.

        Raises:
            AuthenticationError: If the token is missing or not valid.
        """
        token = (token or "").strip()
        scheme, _, rest = token.partition(" ")
        if scheme.lower() == "bearer":
            token = rest.strip()
        if not token:
            raise AuthenticationError("Authentication required")

        try:
            response = self._client.auth.get_user(token)
        except Exception as e:
            raise AuthenticationError(f"Authentication required: {e}") from e

        user = getattr(response, "user", None)
        if user is None or not getattr(user, "id", None):
            raise AuthenticationError("Authentication required")
        return str(user.id)
