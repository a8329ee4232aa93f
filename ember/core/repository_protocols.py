"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - The caller identity always enters through a CredentialVerifier and is then
      passed explicitly to every engine operation

Design Decisions:
    - Protocol over ABC: structural subtyping, tests can pass any object with verify()
"""

from typing import Protocol

from ember.core.domain_types import UserId


class CredentialVerifier(Protocol):
    """Turns a presented credential into a caller identity.

    Raises UnauthenticatedError when the credential cannot be trusted.
    """
    def verify(self, credential: str) -> UserId: ...
