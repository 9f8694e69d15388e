"""Custom exceptions for the ClientPulse engine."""

from __future__ import annotations

from collections.abc import Iterable


class ClientPulseException(Exception):
    """Base exception for ClientPulse."""

    pass


class ConfigurationError(ClientPulseException):
    """Raised when configuration is invalid."""

    pass


class ValidationError(ClientPulseException):
    """Raised with a field -> message map when input is malformed."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Invalid fields: {fields}")


class NotFoundError(ClientPulseException):
    """Raised when a resource is not found."""

    def __init__(self, resource: str, resource_id: str) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found: {resource_id}")


class PersistenceUnavailable(ClientPulseException):
    """Raised when the backing store cannot be reached or times out."""

    pass


class PreconditionFailure(ClientPulseException):
    """Business-rule violation that needs operator correction."""

    error_code = "precondition_failed"

    def to_payload(self) -> dict:
        return {"error_code": self.error_code, "detail": str(self)}


class IncompleteReassignment(PreconditionFailure):
    error_code = "incomplete_reassignment"

    def __init__(self, missing_client_ids: Iterable[str]) -> None:
        self.missing_client_ids = sorted(missing_client_ids)
        count = len(self.missing_client_ids)
        noun = "client" if count == 1 else "clients"
        super().__init__(f"{count} active {noun} still unassigned")

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["missing_client_ids"] = self.missing_client_ids
        return payload


class InvalidTarget(PreconditionFailure):
    error_code = "invalid_target"

    def __init__(self, agent_id: str, reason: str) -> None:
        self.agent_id = agent_id
        self.reason = reason
        super().__init__(f"Agent {agent_id} cannot receive clients: {reason}")

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["agent_id"] = self.agent_id
        return payload


class AlreadyInactive(PreconditionFailure):
    error_code = "already_inactive"

    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} is already inactive")

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["agent_id"] = self.agent_id
        return payload


class DeactivationRequiresReassignment(PreconditionFailure):
    error_code = "deactivation_requires_reassignment"

    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(
            f"Agent {agent_id} can only be deactivated through the reassignment flow"
        )

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["agent_id"] = self.agent_id
        return payload


class StaleReassignmentPlan(PreconditionFailure):
    error_code = "stale_reassignment_plan"

    def __init__(self, added: Iterable[str] = (), removed: Iterable[str] = ()) -> None:
        self.added = sorted(added)
        self.removed = sorted(removed)
        super().__init__(
            "Active clients changed since the plan was built; reload and reassign again"
        )

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["added_client_ids"] = self.added
        payload["removed_client_ids"] = self.removed
        return payload
