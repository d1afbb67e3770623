"""Needs routing engine.

Takes the classifier's intent and entities for a session and answers two
questions: which providers, schemes or helplines fit this caller, and
what should the agent say and do next.  Dispatch is a closed set of
intents (:class:`RoutingIntent`); anything unrecognised is treated as a
general request for help.

Routing never raises.  Any failure is logged and turned into a
"connect to a human" directive so the caller is never left hanging.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Final

import structlog

from echoaid.models.directory import Scheme
from echoaid.models.enums import EmergencyCategory, RoutingIntent
from echoaid.models.routing import RoutingResult
from echoaid.models.session import Location, UserProfile
from echoaid.services.directory import MAX_SCHEMES, DirectoryService

if TYPE_CHECKING:
    from echoaid.models.interaction import Entity
    from echoaid.models.session import Session
    from echoaid.services.localization import MessageCatalog
    from echoaid.services.sessions import SessionRepository

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Routing tables
# ---------------------------------------------------------------------------

EMPLOYMENT_SERVICES: Final[tuple[str, ...]] = ("employment", "job_placement", "skill_training")
SHELTER_SERVICES: Final[tuple[str, ...]] = ("shelter", "temporary_housing", "night_shelter")
FOOD_SERVICES: Final[tuple[str, ...]] = ("food", "meals", "ration")
HEALTHCARE_SERVICES: Final[tuple[str, ...]] = ("healthcare", "medical", "mental_health")
LEGAL_SERVICES: Final[tuple[str, ...]] = ("legal_aid", "legal")

URGENCY_TOKENS: Final[tuple[str, ...]] = ("urgent", "immediate", "tonight")

# Checked in declaration order; the first category with a matching
# keyword wins.  Domestic violence sits ahead of police so that
# "domestic violence" is not claimed by the bare "violence" keyword.
EMERGENCY_KEYWORDS: Final[dict[EmergencyCategory, tuple[str, ...]]] = {
    EmergencyCategory.MEDICAL: ("sick", "injured", "hospital", "doctor", "pain", "bleeding", "chest"),
    EmergencyCategory.DOMESTIC_VIOLENCE: ("domestic", "abuse", "beaten", "threatened"),
    EmergencyCategory.POLICE: ("crime", "theft", "violence", "assault", "robbery", "harassment"),
    EmergencyCategory.MENTAL_HEALTH: ("suicide", "depression", "anxiety", "mental", "counseling"),
    EmergencyCategory.LEGAL: ("arrest", "detention", "legal", "court", "lawyer"),
}

# Signature of the eligibility hook applied to scheme candidates.
SchemeFilter = Callable[[Sequence[Scheme], Location | None, UserProfile | None], list[Scheme]]


def pass_through_schemes(
    schemes: Sequence[Scheme],
    location: Location | None,
    profile: UserProfile | None,
) -> list[Scheme]:
    """Default eligibility hook: keep every candidate."""
    return list(schemes)


def classify_emergency(entities: Sequence[Entity]) -> EmergencyCategory:
    """Map entity values onto an emergency category.

    Entities are scanned in order, and for each entity the keyword table
    is scanned in declaration order; the first hit wins.
    """
    for entity in entities:
        value = entity.value.lower()
        for category, keywords in EMERGENCY_KEYWORDS.items():
            if any(keyword in value for keyword in keywords):
                return category
    return EmergencyCategory.GENERAL


def is_urgent(entities: Sequence[Entity]) -> bool:
    return any(
        token in entity.value.lower()
        for entity in entities
        for token in URGENCY_TOKENS
    )


class RoutingEngine:
    """Match a caller's need to providers, schemes or helplines."""

    __slots__ = ("_directory", "_messages", "_scheme_filter", "_sessions")

    def __init__(
        self,
        directory: DirectoryService,
        sessions: SessionRepository,
        messages: MessageCatalog,
        scheme_filter: SchemeFilter = pass_through_schemes,
    ) -> None:
        self._directory = directory
        self._sessions = sessions
        self._messages = messages
        self._scheme_filter = scheme_filter

    async def route(
        self,
        session_id: str,
        intent: str | None,
        entities: Sequence[Entity],
        location: Location | None = None,
        language: str | None = None,
    ) -> RoutingResult:
        """Route one request; never raises."""
        session: Session | None = None
        try:
            session = await self._sessions.get(session_id)
            routing_intent = RoutingIntent.from_raw(intent)
            profile = session.user_profile if session else None
            effective_location = location or (session.location if session else None)
            lang = language or (session.language if session else None)

            logger.info(
                "routing.dispatch",
                session_id=session_id,
                raw_intent=intent,
                intent=routing_intent.value,
                entity_count=len(entities),
                has_location=effective_location is not None,
            )

            handler = self._handlers[routing_intent]
            result: RoutingResult = await handler(self, entities, profile, effective_location, lang)

            logger.info(
                "routing.routed",
                session_id=session_id,
                intent=result.intent,
                providers=len(result.providers),
                schemes=len(result.schemes),
                actions=result.actions,
            )
            return result
        except Exception:
            logger.error("routing.route_failed", session_id=session_id, intent=intent, exc_info=True)
            return RoutingResult(
                success=False,
                intent=intent or RoutingIntent.GENERAL.value,
                message=self._messages.get("routing.error", session.language if session else language),
                actions=["transfer_to_human"],
            )

    # -- helpers ------------------------------------------------------------

    async def _schemes(
        self,
        category: str,
        location: Location | None,
        profile: UserProfile | None,
    ) -> list[Scheme]:
        candidates = await self._directory.find_schemes(category, limit=None)
        return self._scheme_filter(candidates, location, profile)[:MAX_SCHEMES]

    # -- intent handlers ----------------------------------------------------

    async def _route_employment(self, entities, profile, location, lang) -> RoutingResult:
        schemes = await self._schemes("employment", location, profile)
        providers = await self._directory.find_providers(
            EMPLOYMENT_SERVICES,
            location=location,
            user_category=profile.category if profile else None,
        )

        parts = [self._messages.get("routing.employment.intro", lang)]
        if schemes:
            parts.append(self._messages.get("routing.employment.schemes", lang, count=len(schemes)))
        if providers:
            parts.append(self._messages.get("routing.employment.providers", lang, count=len(providers)))
        parts.append(self._messages.get("routing.employment.closing", lang))

        return RoutingResult(
            intent=RoutingIntent.EMPLOYMENT.value,
            message="".join(parts),
            actions=["provide_schemes", "connect_to_provider", "schedule_callback"],
            schemes=schemes,
            providers=providers,
        )

    async def _route_shelter(self, entities, profile, location, lang) -> RoutingResult:
        urgent = is_urgent(entities)
        providers = await self._directory.find_providers(
            SHELTER_SERVICES,
            location=location,
            user_category=profile.category if profile else None,
            emergency=urgent,
        )
        schemes = await self._schemes("shelter", location, profile)

        if urgent:
            message = self._messages.get("routing.shelter.urgent", lang)
            actions = ["immediate_transfer", "provide_directions"]
        else:
            parts = [self._messages.get("routing.shelter.intro", lang)]
            if providers:
                parts.append(self._messages.get("routing.shelter.providers", lang, count=len(providers)))
            parts.append(self._messages.get("routing.shelter.closing", lang))
            message = "".join(parts)
            actions = ["provide_options", "schedule_visit"]

        return RoutingResult(
            intent=RoutingIntent.SHELTER.value,
            message=message,
            actions=actions,
            schemes=schemes,
            providers=providers,
            urgent=urgent,
        )

    async def _route_emergency(self, entities, profile, location, lang) -> RoutingResult:
        category = classify_emergency(entities)
        contacts = await self._directory.find_emergency_contacts(category.value)
        if not contacts and category is not EmergencyCategory.GENERAL:
            contacts = await self._directory.find_emergency_contacts(EmergencyCategory.GENERAL.value)

        logger.warning("routing.emergency", category=category.value, contacts=len(contacts))
        return RoutingResult(
            intent=RoutingIntent.EMERGENCY.value,
            message=self._messages.get("routing.emergency", lang),
            actions=["immediate_transfer", "provide_emergency_numbers"],
            emergency_contacts=contacts,
            emergency_type=category.value,
            urgent=True,
        )

    async def _route_service(
        self,
        intent: RoutingIntent,
        services: Sequence[str],
        scheme_category: str,
        actions: list[str],
        profile: UserProfile | None,
        location: Location | None,
        lang: str | None,
    ) -> RoutingResult:
        providers = await self._directory.find_providers(
            services,
            location=location,
            user_category=profile.category if profile else None,
        )
        schemes = await self._schemes(scheme_category, location, profile)
        return RoutingResult(
            intent=intent.value,
            message=self._messages.get(f"routing.{intent.value}", lang),
            actions=actions,
            schemes=schemes,
            providers=providers,
        )

    async def _route_food(self, entities, profile, location, lang) -> RoutingResult:
        return await self._route_service(
            RoutingIntent.FOOD, FOOD_SERVICES, "food",
            ["provide_food_centers", "connect_to_provider"], profile, location, lang,
        )

    async def _route_healthcare(self, entities, profile, location, lang) -> RoutingResult:
        return await self._route_service(
            RoutingIntent.HEALTHCARE, HEALTHCARE_SERVICES, "healthcare",
            ["provide_health_centers", "connect_to_provider"], profile, location, lang,
        )

    async def _route_legal_aid(self, entities, profile, location, lang) -> RoutingResult:
        return await self._route_service(
            RoutingIntent.LEGAL_AID, LEGAL_SERVICES, "legal",
            ["provide_legal_contacts", "connect_to_lawyer"], profile, location, lang,
        )

    async def _route_general(self, entities, profile, location, lang) -> RoutingResult:
        return RoutingResult(
            intent=RoutingIntent.GENERAL.value,
            message=self._messages.get("routing.general", lang),
            actions=["ask_for_clarification", "provide_menu"],
        )

    _handlers = {
        RoutingIntent.EMPLOYMENT: _route_employment,
        RoutingIntent.SHELTER: _route_shelter,
        RoutingIntent.FOOD: _route_food,
        RoutingIntent.HEALTHCARE: _route_healthcare,
        RoutingIntent.LEGAL_AID: _route_legal_aid,
        RoutingIntent.EMERGENCY: _route_emergency,
        RoutingIntent.GENERAL: _route_general,
    }
