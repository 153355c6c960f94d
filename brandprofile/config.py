from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    DEBUG_BRANDING: bool = False  # keep diagnostic payloads in the final profile
    LOG_LEVEL: str = "INFO"

    # sampling caps applied by the in-page collector
    SAMPLE_LOGO_IMAGES: int = 5
    SAMPLE_BUTTONS: int = 50
    SAMPLE_INPUTS: int = 25
    SAMPLE_TEXT: int = 50
    SNAPSHOT_TEXT_LIMIT: int = 100
    MAX_BUTTON_CANDIDATES: int = 80
    MAX_LOGO_CANDIDATES: int = 10

    # semantic classifier transport
    GROQ_API_KEY: Optional[str] = None
    GROQ_API_URL: str = "https://api.groq.com/openai/v1/chat/completions"
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    LLM_TIMEOUT_SECS: float = 30.0
    LLM_RETRIES: int = 1
    USER_AGENT: str = ("Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
                       "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36")

    class Config:
        env_file = ".env"

settings = Settings()
