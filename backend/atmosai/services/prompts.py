from __future__ import annotations

from atmosai.locales import normalize_language, normalize_topic
from atmosai.schemas import WeatherRecord


TOPIC_ROLES = {
    "en": {
        "general": "a friendly weather assistant AI",
        "travel": "a travel planner AI",
        "fashion": "a fashion stylist AI",
        "sports": "a sports and fitness coach AI",
        "music": "a music curator AI",
        "agriculture": "an agricultural advisor AI",
        "outings": "an outing planner AI",
    },
    "ja": {
        "general": "親切な天気アシスタントAI",
        "travel": "旅行プランナーAI",
        "fashion": "ファッションスタイリストAI",
        "sports": "スポーツ・フィットネスコーチAI",
        "music": "音楽キュレーターAI",
        "agriculture": "農業アドバイザーAI",
        "outings": "お出かけプランナーAI",
    },
}

CHAT_PROMPT_TEMPLATES = {
    "en": (
        "You are {role}. Based on the following, answer the user's request in English.\n\n"
        "- User request: {message}\n"
        "- Location: {location}\n"
        "- Weather information:\n"
        "  City: {city} ({region}, {country})\n"
        "  Temperature: {temp}°C (min {temp_min}°C / max {temp_max}°C)\n"
        "  Feels like: {feels_like}°C\n"
        "  Condition: {condition}\n"
        "  Humidity: {humidity}%\n"
        "  Wind: {wind_speed} m/s ({wind_deg}°)\n"
        "  Visibility: {visibility} m\n"
        "  Cloud cover: {clouds}%\n"
        "  Sunrise / Sunset: {sunrise} / {sunset}\n"
        "  Time: {daypart}\n\n"
        "Output format:\n"
        "1) Recommended places/activities\n"
        "2) Outfit and items to bring\n"
        "3) Weather-related cautions\n"
    ),
    "ja": (
        "あなたは{role}です。以下の情報に基づいて、ユーザーのリクエストに日本語で答えてください。\n\n"
        "- ユーザーのリクエスト: {message}\n"
        "- 場所: {location}\n"
        "- 天気情報:\n"
        "  都市: {city} ({region}, {country})\n"
        "  気温: {temp}°C (最低 {temp_min}°C / 最高 {temp_max}°C)\n"
        "  体感温度: {feels_like}°C\n"
        "  状況: {condition}\n"
        "  湿度: {humidity}%\n"
        "  風: {wind_speed} m/s ({wind_deg}°)\n"
        "  視程: {visibility} m\n"
        "  雲量: {clouds}%\n"
        "  日の出 / 日の入り: {sunrise} / {sunset}\n"
        "  昼/夜: {daypart}\n\n"
        "出力フォーマット:\n"
        "1) おすすめの場所やアクティビティ\n"
        "2) 服装・持ち物のアドバイス\n"
        "3) 天気に関する注意点\n"
    ),
}

DAYPART_LABELS = {
    "en": {True: "daytime", False: "night"},
    "ja": {True: "昼", False: "夜"},
}

CITY_EXTRACTION_PROMPT_TEMPLATE = (
    "Extract the city or place name mentioned in the message below.\n"
    "Output only the city name in English, with no punctuation or explanation.\n"
    "If no place is mentioned, output only the literal token NONE.\n\n"
    "Message: {message}"
)


def compose_prompt(
    *,
    message: str,
    location: str,
    topic: str,
    weather: WeatherRecord,
    language: str,
) -> str:
    language = normalize_language(language)
    topic = normalize_topic(topic)

    return CHAT_PROMPT_TEMPLATES[language].format(
        role=TOPIC_ROLES[language][topic],
        message=message,
        location=location,
        city=weather.city,
        region=weather.region,
        country=weather.country,
        temp=_fmt_number(weather.temp),
        temp_min=_fmt_number(weather.temp_min),
        temp_max=_fmt_number(weather.temp_max),
        feels_like=_fmt_number(weather.feels_like),
        condition=weather.condition,
        humidity=_fmt_number(weather.humidity),
        wind_speed=_fmt_number(weather.wind_speed),
        wind_deg=_fmt_number(weather.wind_deg),
        visibility=_fmt_number(weather.visibility),
        clouds=_fmt_number(weather.clouds),
        sunrise=weather.sunrise,
        sunset=weather.sunset,
        daypart=DAYPART_LABELS[language][weather.is_day],
    )


def compose_city_extraction_prompt(message: str) -> str:
    return CITY_EXTRACTION_PROMPT_TEMPLATE.format(message=message)


def _fmt_number(value: float) -> str:
    rounded = round(value, 1)
    if rounded == int(rounded):
        return str(int(rounded))
    return f"{rounded:.1f}"
