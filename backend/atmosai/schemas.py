from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from atmosai.locales import normalize_language, normalize_topic


class ResolvedLocation(BaseModel):
    name: str | None = Field(default=None, description="Display name of the place.")
    latitude: float
    longitude: float


class WeatherRecord(BaseModel):
    """Current conditions in the shape every prompt template and the UI read.

    Numeric fields default to 0 and text fields to "Unknown" so that a sparse
    provider payload never drops a key.
    """

    temp: float = 0
    feels_like: float = 0
    temp_min: float = 0
    temp_max: float = 0
    humidity: float = 0
    wind_speed: float = 0
    wind_deg: float = 0
    main_weather: str = "Unknown"
    condition: str = "Unknown"
    visibility: float = 0
    clouds: float = 0
    sunrise: str = "Unknown"
    sunset: str = "Unknown"
    is_day: bool = True
    city: str = "Unknown"
    region: str = "Unknown"
    country: str = "Unknown"


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str | None = Field(default=None, validation_alias=AliasChoices("message", "query"))
    location: str | None = Field(
        default=None,
        validation_alias=AliasChoices("location", "city"),
        description="City or region text to geocode if coordinates are not provided.",
    )
    lat: float | None = Field(default=None, ge=-90, le=90)
    lon: float | None = Field(default=None, ge=-180, le=180)
    theme: str = Field(default="general", validation_alias=AliasChoices("theme", "topic"))
    lang: str = "en"

    @field_validator("message", "location", mode="before")
    @classmethod
    def blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("theme", mode="before")
    @classmethod
    def validate_theme(cls, value: object) -> str:
        return normalize_topic(value if isinstance(value, str) else None)

    @field_validator("lang", mode="before")
    @classmethod
    def validate_lang(cls, value: object) -> str:
        return normalize_language(value if isinstance(value, str) else None)

    @property
    def coordinates(self) -> tuple[float, float] | None:
        if self.lat is None or self.lon is None:
            return None
        return self.lat, self.lon


class TTSRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: str = ""
    lang: str = "en"

    @field_validator("lang", mode="before")
    @classmethod
    def validate_lang(cls, value: object) -> str:
        return normalize_language(value if isinstance(value, str) else None)
