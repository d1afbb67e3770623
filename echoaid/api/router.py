"""Main API router combining all v1 route modules.

Aggregates every boundary under the ``/api/v1`` prefix so the FastAPI
application only needs to include a single router.

Includes:
    * Telephony: inbound, transfer, missed call and callback webhooks
    * Speech: transcription, synthesis and stored audio playback
    * Routing: intent and entities to providers, schemes and helplines
    * Verification: Aadhaar-free identity assertions
    * Analytics: daily rollups
    * Health: liveness and readiness probes
"""

from __future__ import annotations

from fastapi import APIRouter

from echoaid.api.v1 import analytics, calls, health, routing, verification, voice

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(calls.router)
api_router.include_router(voice.router)
api_router.include_router(routing.router)
api_router.include_router(verification.router)
api_router.include_router(analytics.router)
api_router.include_router(health.router)
