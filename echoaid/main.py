"""EchoAid FastAPI application entry point.

Creates the FastAPI app, includes routers, and manages the lifecycle of
all backend services (store, telephony, callback scheduler, speech,
intent classifier, routing, verification, analytics).
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from config.settings import settings
from echoaid.api.router import api_router

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Structured logging configuration
# ---------------------------------------------------------------------------


def _configure_logging() -> None:
    """Set up structlog with JSON or console rendering based on settings."""
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            settings.log_level.lower(),
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup and shutdown of all EchoAid services.

    On startup:
      1. Open the document store (Redis, or in-memory fallback)
      2. Build repositories, directories and the message catalog
      3. Build the telephony gateway and callback scheduler
      4. Initialise Speech-to-Text, Text-to-Speech and the intent classifier
      5. Wire the orchestrator, routing, verification, voice and analytics services
      6. Seed reference data
      7. Store everything on ``app.state``

    On shutdown:
      - Cancel pending callbacks.
      - Close the telephony client, speech clients and store.
    """
    _configure_logging()
    logger.info(
        "app.startup",
        env=settings.env,
        gcp_project=settings.gcp_project_id,
        store_backend=settings.store_backend,
        telephony=settings.telephony_provider,
    )

    app.state.start_time = time.time()

    # -- 1. Store -----------------------------------------------------------
    from echoaid.services.store import create_store

    store = await create_store(settings)
    app.state.store = store
    logger.info("app.store_initialised", backend=type(store).__name__)

    # -- 2. Repositories and catalog ------------------------------------------
    from echoaid.services.call_log import CallLogRepository
    from echoaid.services.directory import DirectoryService
    from echoaid.services.localization import MessageCatalog
    from echoaid.services.sessions import SessionRepository

    sessions = SessionRepository(store)
    call_logs = CallLogRepository(store)
    directory = DirectoryService(store)
    messages = MessageCatalog(default_language=settings.default_language)
    app.state.sessions = sessions
    app.state.directory = directory

    # -- 3. Telephony and scheduler -------------------------------------------
    from echoaid.services.callback_scheduler import CallbackScheduler
    from echoaid.services.telephony import create_gateway

    telephony = create_gateway(settings)
    scheduler = CallbackScheduler()
    app.state.telephony = telephony
    app.state.scheduler = scheduler
    logger.info("app.telephony_initialised", gateway=type(telephony).__name__)

    # -- 4. GCP services ------------------------------------------------------
    from echoaid.services.intent_classifier import IntentClassifier
    from echoaid.services.speech import SpeechToTextService, TextToSpeechService

    stt: SpeechToTextService | None = None
    tts: TextToSpeechService | None = None
    classifier: IntentClassifier | None = None

    if settings.gcp_project_id:
        try:
            stt = SpeechToTextService(
                project_id=settings.gcp_project_id,
                region=settings.gcp_region,
            )
            logger.info("app.stt_initialised")
        except Exception:
            logger.warning("app.stt_init_failed", exc_info=True)

        try:
            tts = TextToSpeechService(project_id=settings.gcp_project_id)
            logger.info("app.tts_initialised")
        except Exception:
            logger.warning("app.tts_init_failed", exc_info=True)

        classifier = IntentClassifier(
            project_id=settings.gcp_project_id,
            region=settings.vertex_ai_location,
            model_name=settings.vertex_ai_model,
        )
        logger.info("app.intent_classifier_initialised", model=settings.vertex_ai_model)

    app.state.stt = stt
    app.state.tts = tts
    app.state.intent_classifier = classifier

    # -- 5. Domain services ---------------------------------------------------
    from echoaid.services.analytics import AnalyticsService
    from echoaid.services.call_orchestrator import CallOrchestrator
    from echoaid.services.routing import RoutingEngine
    from echoaid.services.verification import VerificationService
    from echoaid.services.voice_processing import VoiceProcessingService

    app.state.orchestrator = CallOrchestrator(
        sessions,
        call_logs,
        directory,
        telephony,
        scheduler,
        messages,
        default_language=settings.default_language,
        session_reuse_window=timedelta(hours=settings.session_reuse_hours),
        missed_call_history_window=timedelta(days=settings.missed_call_history_days),
        missed_call_callback_delay=timedelta(minutes=settings.missed_call_callback_minutes),
        provider_timezone=settings.provider_timezone,
    )
    app.state.routing = RoutingEngine(directory, sessions, messages)
    app.state.verification = VerificationService(
        sessions,
        messages,
        voice_consent_policy=settings.voice_consent_trust_policy,
        never_downgrade_trust=settings.never_downgrade_trust,
    )
    app.state.analytics = AnalyticsService(store, sessions, call_logs)

    voice: VoiceProcessingService | None = None
    if classifier is not None:
        voice = VoiceProcessingService(store, sessions, messages, classifier, stt=stt, tts=tts)
    app.state.voice = voice

    # -- 6. Reference data ----------------------------------------------------
    if settings.seed_reference_data:
        from echoaid.data.seed import seed_reference_data

        try:
            await seed_reference_data(directory)
        except Exception:
            logger.error("app.seed_failed", exc_info=True)

    logger.info("app.startup_complete")

    yield

    # -- Shutdown -----------------------------------------------------------
    logger.info("app.shutdown_start")

    await scheduler.stop()
    await telephony.close()
    if voice is not None:
        await voice.close()
    elif stt is not None:
        await stt.close()
    if tts is not None:
        await tts.close()
    await store.close()

    logger.info("app.shutdown_complete")


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="EchoAid API",
    description=(
        "EchoAid -- voice-first intake and referral for people without "
        "smartphones or Aadhaar. Answers phone calls in seven Indian "
        "languages and connects callers to shelters, jobs, food, health "
        "care, legal aid and emergency helplines."
    ),
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# -- CORS middleware --------------------------------------------------------
# Only the local dashboard talks to the API from a browser.
if not settings.is_production:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:8000", "http://127.0.0.1:8000"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS", "HEAD"],
        allow_headers=["Content-Type", "Accept", "Authorization"],
    )

# -- Include routers -------------------------------------------------------
app.include_router(api_router)


@app.get("/api", response_class=ORJSONResponse)
async def api_info() -> dict:
    """API information endpoint."""
    return {
        "name": "EchoAid API",
        "description": "Voice-first intake and referral service",
        "version": app.version,
        "docs": "/docs",
        "health": "/api/v1/health",
        "languages_supported": 7,
    }
