"""EchoAid service layer -- store, directories, routing, calls and verification.

Exports are eager for the services that run without cloud credentials.
The GCP-backed services (``intent_classifier``, ``speech``) and the
voice processing layer built on them are imported from their modules.
"""

from __future__ import annotations

from echoaid.services.analytics import AnalyticsService
from echoaid.services.call_log import CallLogRepository
from echoaid.services.call_orchestrator import CallOrchestrator
from echoaid.services.callback_scheduler import CallbackScheduler
from echoaid.services.directory import DirectoryService
from echoaid.services.localization import MessageCatalog
from echoaid.services.routing import RoutingEngine
from echoaid.services.sessions import SessionRepository
from echoaid.services.store import DocumentStore, InMemoryDocumentStore, RedisDocumentStore, create_store
from echoaid.services.telephony import ExotelGateway, MockTelephonyGateway, TelephonyGateway, create_gateway
from echoaid.services.verification import VerificationService

__all__ = [
    "AnalyticsService",
    "CallLogRepository",
    "CallOrchestrator",
    "CallbackScheduler",
    "DirectoryService",
    "DocumentStore",
    "ExotelGateway",
    "InMemoryDocumentStore",
    "MessageCatalog",
    "MockTelephonyGateway",
    "RedisDocumentStore",
    "RoutingEngine",
    "SessionRepository",
    "TelephonyGateway",
    "VerificationService",
    "create_gateway",
    "create_store",
]
