"""
Declarative metadata integrations publish about themselves.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import IntegrationTesterError


@dataclass(frozen=True)
class Requirement:
    """
    A field an integration needs before it can send a message.

    ``path`` is ``settings.<key>`` or ``message.<dotted.field>``. When
    ``method`` is set the requirement only applies to that message type.
    """
    path: str
    method: str | None = None


class InvalidMessageError(IntegrationTesterError):
    """Returned by ``Integration.validate()`` when a requirement is missing."""

    def __init__(self, requirement: Requirement):
        self.requirement = requirement
        super().__init__(f'missing required value "{requirement.path}"')
