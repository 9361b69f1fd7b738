"""
Identity: the verified "who is asking" handed to the authorization core.

The session layer verifies a credential and produces an Identity; this core
never does. An absent identity (None) means the request is anonymous.
"""

from __future__ import annotations

from dataclasses import dataclass

from practice_authz.auth.roles import Role


@dataclass(frozen=True)
class Identity:
    user_id: str
    role: Role = Role.PENDING

    @classmethod
    def from_claims(cls, claims: dict) -> Identity:
        try:
            role = Role(claims.get("role", Role.PENDING.value))
        except ValueError:
            role = Role.PENDING
        return cls(user_id=str(claims["sub"]), role=role)

    @property
    def actor(self) -> str:
        """Identity string for logging."""
        return f"{self.role.value}:{self.user_id}"
