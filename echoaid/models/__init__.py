from echoaid.models.analytics import DailyAnalytics, DailyMetrics, IntentCount
from echoaid.models.call_log import CallLog, TransferTarget
from echoaid.models.directory import (
    EmergencyContact,
    LocalizedText,
    Provider,
    ProviderAvailability,
    ProviderCapacity,
    ProviderContact,
    ProviderLocation,
    ProviderVerification,
    Scheme,
)
from echoaid.models.enums import (
    CallStatus,
    CallType,
    Coverage,
    EmergencyCategory,
    ProviderType,
    RoutingIntent,
    SessionStatus,
    TrustLevel,
    UrgencyLevel,
    VerificationMethod,
)
from echoaid.models.interaction import (
    AIResponse,
    Entity,
    IntentResult,
    SynthesisResult,
    SynthesizedAudio,
    UserInput,
    VoiceInteraction,
    VoiceProcessingResult,
)
from echoaid.models.routing import RoutingResult
from echoaid.models.session import Coordinates, Location, Session, UserProfile
from echoaid.models.verification import (
    CommunityReferral,
    DocumentAlternative,
    SelfDeclaration,
    VerificationResult,
    VerificationStatus,
    VoiceConsent,
)

__all__ = [
    "AIResponse",
    "CallLog",
    "CallStatus",
    "CallType",
    "CommunityReferral",
    "Coordinates",
    "Coverage",
    "DailyAnalytics",
    "DailyMetrics",
    "DocumentAlternative",
    "EmergencyCategory",
    "EmergencyContact",
    "Entity",
    "IntentCount",
    "IntentResult",
    "LocalizedText",
    "Location",
    "Provider",
    "ProviderAvailability",
    "ProviderCapacity",
    "ProviderContact",
    "ProviderLocation",
    "ProviderType",
    "ProviderVerification",
    "RoutingIntent",
    "RoutingResult",
    "Scheme",
    "SelfDeclaration",
    "Session",
    "SessionStatus",
    "SynthesisResult",
    "SynthesizedAudio",
    "TransferTarget",
    "TrustLevel",
    "UrgencyLevel",
    "UserInput",
    "UserProfile",
    "VerificationMethod",
    "VerificationResult",
    "VerificationStatus",
    "VoiceConsent",
    "VoiceInteraction",
    "VoiceProcessingResult",
]
