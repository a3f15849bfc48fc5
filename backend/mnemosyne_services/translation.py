from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import httpx

from .settings import external_disabled

logger = logging.getLogger(__name__)

TRANSLATE_URL = "https://translate.googleapis.com/translate_a/single"

SUPPORTED_LANGUAGES: tuple[dict[str, str], ...] = (
    {"code": "en", "name": "English", "nativeName": "English"},
    {"code": "as", "name": "Assamese", "nativeName": "অসমীয়া"},
    {"code": "bn", "name": "Bengali", "nativeName": "বাংলা"},
    {"code": "brx", "name": "Bodo", "nativeName": "बड़ो"},
    {"code": "doi", "name": "Dogri", "nativeName": "डोगरी"},
    {"code": "gu", "name": "Gujarati", "nativeName": "ગુજરાતી"},
    {"code": "hi", "name": "Hindi", "nativeName": "हिन्दी"},
    {"code": "kn", "name": "Kannada", "nativeName": "ಕನ್ನಡ"},
    {"code": "ks", "name": "Kashmiri", "nativeName": "کٲشُر"},
    {"code": "gom", "name": "Konkani", "nativeName": "कोंकणी"},
    {"code": "mai", "name": "Maithili", "nativeName": "मैथिली"},
    {"code": "ml", "name": "Malayalam", "nativeName": "മലയാളം"},
    {"code": "mni", "name": "Manipuri (Meitei)", "nativeName": "মৈতৈলোন্"},
    {"code": "mr", "name": "Marathi", "nativeName": "मराठी"},
    {"code": "ne", "name": "Nepali", "nativeName": "नेपाली"},
    {"code": "or", "name": "Odia", "nativeName": "ଓଡ଼ିଆ"},
    {"code": "pa", "name": "Punjabi", "nativeName": "ਪੰਜਾਬੀ"},
    {"code": "sa", "name": "Sanskrit", "nativeName": "संस्कृतम्"},
    {"code": "sat", "name": "Santali", "nativeName": "ᱥᱟᱱᱛᱟᱲᱤ"},
    {"code": "sd", "name": "Sindhi", "nativeName": "سنڌي"},
    {"code": "ta", "name": "Tamil", "nativeName": "தமிழ்"},
    {"code": "te", "name": "Telugu", "nativeName": "తెలుగు"},
    {"code": "ur", "name": "Urdu", "nativeName": "اردو"},
)
SUPPORTED_CODES = frozenset(language["code"] for language in SUPPORTED_LANGUAGES)


@dataclass
class TranslationResult:
    text: str
    target_language: str
    translated: bool

    def as_payload(self) -> dict[str, Any]:
        return {"translatedText": self.text, "targetLanguage": self.target_language, "translated": self.translated}


def _join_segments(payload: Any) -> str:
    if not isinstance(payload, list) or not payload or not isinstance(payload[0], list):
        return ""
    return "".join(
        str(segment[0]) for segment in payload[0] if isinstance(segment, list) and segment and segment[0] is not None
    )


class Translator:
    def __init__(self) -> None:
        self.disable_external = external_disabled()
        self.timeout = float(os.getenv("MNEMOSYNE_WEB_TIMEOUT_SECONDS", "5.0"))

    def translate(self, text: str, target_language: str) -> TranslationResult:
        target = (target_language or "en").strip()
        untranslated = TranslationResult(text=text, target_language=target, translated=False)
        if target == "en" or not (text or "").strip() or self.disable_external:
            return untranslated

        try:
            response = httpx.get(
                TRANSLATE_URL,
                params={"client": "gtx", "sl": "en", "tl": target, "dt": "t", "q": text},
                timeout=self.timeout,
            )
            response.raise_for_status()
            translated = _join_segments(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("translation to %s failed: %s", target, exc)
            return untranslated

        if not translated:
            logger.warning("translation to %s returned no segments", target)
            return untranslated
        return TranslationResult(text=translated, target_language=target, translated=True)
