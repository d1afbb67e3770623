"""Message catalog for everything EchoAid says to a caller.

Messages are keyed first by message id and then by language code.  Any
language missing from a message falls back to Hindi, the default
language on the helpline.  Placeholders use ``str.format`` syntax.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final

import structlog

from config.languages import FALLBACK_LANGUAGE, resolve_language

logger = structlog.get_logger(__name__)


MESSAGES: Final[dict[str, dict[str, str]]] = {
    # ── Call handling ──────────────────────────────────────────────────
    "welcome.new": {
        "hi": (
            "नमस्ते! मैं EchoAid हूं। मैं आपको सरकारी योजनाओं और सहायता सेवाओं से जोड़ने में "
            "मदद करता हूं। आप मुझसे हिंदी में बात कर सकते हैं। आपको किस प्रकार की सहायता चाहिए?"
        ),
        "en": (
            "Hello! I'm EchoAid. I help connect you with government schemes and support "
            "services. You can speak to me in English or any Indian language. What kind of "
            "help do you need today?"
        ),
        "ta": (
            "வணக்கம்! நான் EchoAid. அரசு திட்டங்கள் மற்றும் உதவி சேவைகளுடன் உங்களை இணைக்க "
            "உதவுகிறேன். உங்களுக்கு என்ன உதவி தேவை?"
        ),
    },
    "welcome.returning": {
        "hi": "नमस्ते! EchoAid में आपका स्वागत है। मैं आपकी पिछली बातचीत याद रखता हूं। आज मैं आपकी कैसे सहायता कर सकता हूं?",
        "en": "Hello! Welcome back to EchoAid. I remember our previous conversation. How can I help you today?",
        "ta": "வணக்கம்! EchoAid-க்கு மீண்டும் வரவேற்கிறோம். இன்று நான் உங்களுக்கு எப்படி உதவ முடியும்?",
    },
    "call.fallback": {
        "hi": "नमस्ते, मैं EchoAid हूं। मैं आपकी सहायता करने के लिए यहां हूं।",
        "en": "Hello, I'm EchoAid. I'm here to help you.",
    },
    # ── Transfers ──────────────────────────────────────────────────────
    "transfer.connecting": {
        "hi": "मैं आपको सही व्यक्ति से जोड़ रहा हूं। कृपया लाइन पर रुकें।",
        "en": "I'm connecting you to the right person. Please stay on the line.",
    },
    "transfer.connecting_alternative": {
        "hi": "मैं आपको एक वैकल्पिक सेवा प्रदाता से जोड़ रहा हूं। कृपया लाइन पर रुकें।",
        "en": "I'm connecting you to an alternative service provider. Please stay on the line.",
    },
    "transfer.connection_failed": {
        "hi": "कनेक्शन में समस्या हुई। क्या मैं आपका संदेश रिकॉर्ड कर सकता हूं?",
        "en": "There was a problem with the connection. May I record your message?",
    },
    "transfer.all_busy": {
        "hi": "सभी सेवा प्रदाता व्यस्त हैं। कृपया कुछ समय बाद कॉल करें या मैं आपका संदेश रिकॉर्ड कर सकता हूं।",
        "en": "All service providers are busy. Please call again later, or I can record your message.",
    },
    "transfer.error": {
        "hi": "कॉल ट्रांसफर में समस्या हुई। कृपया दोबारा कोशिश करें।",
        "en": "There was a problem transferring the call. Please try again.",
    },
    "transfer.technical_error": {
        "hi": "तकनीकी समस्या के कारण कॉल ट्रांसफर नहीं हो सका।",
        "en": "The call could not be transferred due to a technical problem.",
    },
    # ── Callbacks ──────────────────────────────────────────────────────
    "callback.confirmation": {
        "hi": "आपका कॉलबैक {time} बजे शेड्यूल किया गया है। हम आपको कॉल करेंगे।",
        "en": "Your callback is scheduled for {time}. We will call you back.",
        "ta": "உங்கள் கால்பேக் {time} மணிக்கு திட்டமிடப்பட்டுள்ளது। நாங்கள் உங்களை அழைப்போம்।",
    },
    "callback.error": {
        "hi": "कॉलबैक शेड्यूल करने में समस्या हुई।",
        "en": "There was a problem scheduling your callback.",
    },
    # ── Routing ────────────────────────────────────────────────────────
    "routing.employment.intro": {
        "en": "I understand you're looking for employment opportunities. ",
        "hi": "मैं समझता हूं कि आप रोजगार के अवसर ढूंढ रहे हैं। ",
    },
    "routing.employment.schemes": {
        "en": "There are {count} government schemes that might help you. ",
        "hi": "{count} सरकारी योजनाएं आपकी मदद कर सकती हैं। ",
    },
    "routing.employment.providers": {
        "en": "I've also found {count} organizations nearby that provide job placement services. ",
        "hi": "मुझे पास में {count} संस्थाएं भी मिली हैं जो नौकरी दिलाने में मदद करती हैं। ",
    },
    "routing.employment.closing": {
        "en": (
            "Would you like me to connect you with someone who can help, or would you prefer "
            "to hear about specific programs first?"
        ),
        "hi": "क्या मैं आपको किसी से जोड़ूं जो मदद कर सके, या आप पहले योजनाओं के बारे में सुनना चाहेंगे?",
    },
    "routing.shelter.urgent": {
        "en": (
            "I understand you need shelter urgently. Let me immediately connect you with the "
            "nearest shelter that has availability. Please stay on the line."
        ),
        "hi": "मैं समझता हूं कि आपको तुरंत आश्रय चाहिए। मैं आपको अभी नजदीकी उपलब्ध आश्रय से जोड़ रहा हूं। कृपया लाइन पर रुकें।",
    },
    "routing.shelter.intro": {
        "en": "I can help you find shelter options. ",
        "hi": "मैं आपको आश्रय के विकल्प ढूंढने में मदद कर सकता हूं। ",
    },
    "routing.shelter.providers": {
        "en": "There are {count} shelters and housing services in your area. ",
        "hi": "आपके क्षेत्र में {count} आश्रय और आवास सेवाएं हैं। ",
    },
    "routing.shelter.closing": {
        "en": "Would you like me to check availability and connect you with the nearest one?",
        "hi": "क्या मैं उपलब्धता जांचकर आपको सबसे नजदीकी से जोड़ दूं?",
    },
    "routing.emergency": {
        "en": (
            "This sounds like an emergency situation. I'm going to connect you immediately with "
            "the appropriate helpline. Please stay on the line while I transfer your call."
        ),
        "hi": "यह आपातकालीन स्थिति लगती है। मैं आपको तुरंत सही हेल्पलाइन से जोड़ रहा हूं। कॉल ट्रांसफर होने तक लाइन पर रहें।",
    },
    "routing.food": {
        "en": "I can help you find food assistance programs in your area.",
        "hi": "मैं आपके क्षेत्र में भोजन सहायता कार्यक्रम ढूंढने में मदद कर सकता हूं।",
    },
    "routing.healthcare": {
        "en": "I can help you access healthcare services and medical assistance.",
        "hi": "मैं आपको स्वास्थ्य सेवाओं और चिकित्सा सहायता तक पहुंचने में मदद कर सकता हूं।",
    },
    "routing.legal_aid": {
        "en": "I can connect you with legal aid services and assistance.",
        "hi": "मैं आपको कानूनी सहायता सेवाओं से जोड़ सकता हूं।",
    },
    "routing.general": {
        "en": "I'm here to help you access various social services. Can you tell me more about what you need?",
        "hi": "मैं आपको विभिन्न सामाजिक सेवाओं तक पहुंचने में मदद के लिए यहां हूं। क्या आप बता सकते हैं कि आपको क्या चाहिए?",
    },
    "routing.error": {
        "en": "I'm having trouble understanding your request. Let me connect you with someone who can help.",
        "hi": "मुझे आपका अनुरोध समझने में कठिनाई हो रही है। मैं आपको किसी ऐसे व्यक्ति से जोड़ता हूं जो मदद कर सके।",
    },
    # ── Identity verification ──────────────────────────────────────────
    "verification.self_declaration.ok": {
        "en": "Thank you for providing your information. We'll help you access the services you need.",
        "hi": "जानकारी देने के लिए धन्यवाद। हम आपको ज़रूरी सेवाओं तक पहुंचने में मदद करेंगे।",
    },
    "verification.self_declaration.incomplete": {
        "en": "Please provide more information to help us assist you better.",
        "hi": "कृपया थोड़ी और जानकारी दें ताकि हम आपकी बेहतर मदद कर सकें।",
    },
    "verification.community_referral.ok": {
        "en": "Thank you for the referral. We'll prioritize assistance based on community recommendation.",
        "hi": "रेफरल के लिए धन्यवाद। समुदाय की सिफारिश के आधार पर हम प्राथमिकता से सहायता करेंगे।",
    },
    "verification.voice_consent.ok": {
        "en": "Your consent has been recorded. We can now provide personalized assistance.",
        "hi": "आपकी सहमति दर्ज कर ली गई है। अब हम आपको व्यक्तिगत सहायता दे सकते हैं।",
    },
    "verification.voice_consent.unclear": {
        "en": "We need clearer consent to proceed. Let me explain what we're asking for.",
        "hi": "आगे बढ़ने के लिए हमें आपकी स्पष्ट सहमति चाहिए। मैं समझाता हूं कि हम क्या पूछ रहे हैं।",
    },
    "verification.document.physical": {
        "en": "Thank you. Your document is acceptable for verification.",
        "hi": "धन्यवाद। आपका दस्तावेज़ सत्यापन के लिए मान्य है।",
    },
    "verification.document.details_only": {
        "en": "We can work with the information you've provided.",
        "hi": "आपकी दी गई जानकारी से हम काम चला सकते हैं।",
    },
    "verification.document.unacceptable": {
        "en": "This document type is not sufficient. Let's try self-declaration instead.",
        "hi": "यह दस्तावेज़ पर्याप्त नहीं है। चलिए स्व-घोषणा से कोशिश करते हैं।",
    },
    "verification.failed": {
        "en": "Verification failed. Let's try a different method.",
        "hi": "सत्यापन नहीं हो सका। चलिए कोई दूसरा तरीका आज़माते हैं।",
    },
    # ── Voice processing ───────────────────────────────────────────────
    "voice.not_understood": {
        "hi": "माफ़ कीजिए, मैं समझ नहीं पाया। क्या आप दोबारा बोल सकते हैं?",
        "en": "I'm sorry, I didn't catch that. Could you please say it again?",
        "ta": "மன்னிக்கவும், எனக்குப் புரியவில்லை. மீண்டும் சொல்ல முடியுமா?",
    },
    "voice.general_help": {
        "hi": "मैं आपकी मदद के लिए यहां हूं। आपको रोजगार, आश्रय, भोजन, स्वास्थ्य या कानूनी सहायता में से क्या चाहिए?",
        "en": "I'm here to help. Do you need help with work, shelter, food, health or legal aid?",
    },
}


class MessageCatalog:
    """Looks up and formats caller-facing messages.

    Built once at startup and injected into every service that speaks
    to callers.
    """

    __slots__ = ("_default_language", "_messages")

    def __init__(
        self,
        messages: Mapping[str, Mapping[str, str]] | None = None,
        default_language: str = FALLBACK_LANGUAGE,
    ) -> None:
        self._messages = messages if messages is not None else MESSAGES
        self._default_language = default_language

    def get(self, key: str, language: str | None = None, **params: object) -> str:
        """Return message *key* in *language*, falling back to the default language."""
        table = self._messages.get(key)
        if table is None:
            logger.error("localization.unknown_key", key=key)
            raise KeyError(key)

        lang = resolve_language(language)
        template = table.get(lang) or table.get(self._default_language) or next(iter(table.values()))
        return template.format(**params) if params else template

    def has(self, key: str, language: str) -> bool:
        return language in self._messages.get(key, {})
