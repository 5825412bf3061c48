"""
Explicit per-request session context.

The acting user is resolved once from the request headers and passed into
services as a value, rather than read from global state inside them.
"""

from typing import Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

Role = Literal["landlord", "contractor", "tenant"]

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"


class SessionRequired(Exception):
    """Raised when a request carries no usable session."""


class SessionContext(BaseModel):
    """The authenticated user a request acts on behalf of."""

    model_config = ConfigDict(frozen=True)

    user_id: int = Field(..., gt=0, description="Acting user id")
    role: Role = Field(..., description="Acting user role")

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "SessionContext":
        """
        Build a session context from request headers.

        Args:
            headers: Request headers

        Returns:
            SessionContext for the acting user

        Raises:
            SessionRequired: If either header is missing or invalid
        """
        user_id = headers.get(USER_ID_HEADER)
        role = headers.get(USER_ROLE_HEADER)
        if not user_id or not role:
            raise SessionRequired("Authentication required")
        try:
            return cls(user_id=user_id, role=role.strip().lower())
        except ValidationError as e:
            raise SessionRequired(f"Invalid session: {e.errors()[0]['msg']}")

    def require_role(self, *roles: str) -> None:
        """Raise SessionRequired unless the user has one of the roles."""
        if self.role not in roles:
            raise SessionRequired(f"Role '{self.role}' may not perform this action")
