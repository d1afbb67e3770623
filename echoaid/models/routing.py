from __future__ import annotations

from pydantic import BaseModel, Field

from echoaid.models.directory import EmergencyContact, Provider, Scheme


class RoutingResult(BaseModel):
    """What the caller should hear next and what the agent should do."""

    success: bool = True
    intent: str
    message: str
    actions: list[str] = Field(default_factory=list)
    schemes: list[Scheme] = Field(default_factory=list)
    providers: list[Provider] = Field(default_factory=list)
    emergency_contacts: list[EmergencyContact] = Field(default_factory=list)
    emergency_type: str | None = None
    urgent: bool = False
