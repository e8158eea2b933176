from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RELAYS = [
    "wss://relay.damus.io",
    "wss://relay.primal.net",
    "wss://nos.lol",
    "wss://relay.nostr.band",
]

# Seconds per km. Cycling floor is 120 km/h (downhill only).
DEFAULT_VALIDATION_LIMITS = {
    "running": {
        "min_pace_s_per_km": 120,
        "max_pace_s_per_km": 1800,
        "max_distance_km": 200,
        "max_duration_s": 172800,
    },
    "walking": {
        "min_pace_s_per_km": 180,
        "max_pace_s_per_km": 3600,
        "max_distance_km": 100,
        "max_duration_s": 86400,
    },
    "cycling": {
        "min_pace_s_per_km": 30,
        "max_pace_s_per_km": 600,
        "max_distance_km": 500,
        "max_duration_s": 172800,
    },
}

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")
    DATABASE_URL: str
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    ADMIN_TOKEN: str = "league-admin"

    RELAY_URLS: list[str] = DEFAULT_RELAYS
    WORKOUT_EVENT_KIND: int = 1301
    RELAY_TIMEOUT_S: float = 15.0
    FETCH_TIMEOUT_S: float = 30.0

    VALIDATION_LIMITS: dict[str, dict[str, float]] = DEFAULT_VALIDATION_LIMITS

settings = Settings()
