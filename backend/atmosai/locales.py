from __future__ import annotations


SUPPORTED_LANGUAGES = {
    "en": {"name": "English", "speech_language": "en-US"},
    "ja": {"name": "Japanese", "speech_language": "ja-JP"},
}

TOPICS = ("general", "travel", "fashion", "sports", "music", "agriculture", "outings")

MESSAGES = {
    "message_needed": {
        "en": "Please enter a message.",
        "ja": "メッセージを入力してください。",
    },
    "location_needed": {
        "en": "Location is required. Please allow access to your current location.",
        "ja": "位置情報が必要です。現在地の使用を許可してください。",
    },
    "location_not_found": {
        "en": "I couldn't find that location. Please try another city name.",
        "ja": "場所が見つかりませんでした。別の都市名を入力してください。",
    },
    "fallback_reply": {
        "en": "Failed to generate a plan. Please try again.",
        "ja": "プランの生成に失敗しました。もう一度お試しください。",
    },
    "current_location": {
        "en": "Current location",
        "ja": "現在地",
    },
}


def normalize_language(language: str | None) -> str:
    normalized = str(language or "en").strip().lower().replace("_", "-")
    short = normalized.split("-")[0]
    if short in SUPPORTED_LANGUAGES:
        return short
    return "en"


def normalize_topic(topic: str | None) -> str:
    normalized = str(topic or "").strip().lower()
    if normalized in TOPICS:
        return normalized
    return "general"


def speech_language(language: str) -> str:
    return SUPPORTED_LANGUAGES[normalize_language(language)]["speech_language"]


def localized(key: str, language: str) -> str:
    return MESSAGES[key][normalize_language(language)]
