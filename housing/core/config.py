from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    DATABASE_URL: str
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # Supabase Auth
    SUPABASE_URL: str
    SUPABASE_JWT_SECRET: str

    # OpenAI (ID/passport OCR via Vision, dashboard insights)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_VISION_MODEL: str = "gpt-4o"

    # OCR results below this confidence (0-100) are flagged for manual review
    OCR_REVIEW_THRESHOLD: int = 80
    MAX_IMAGE_SIZE_MB: int = 10

    # S3-compatible storage for uploaded document images; local disk when unset
    S3_ENDPOINT: Optional[str] = None
    S3_ACCESS_KEY: Optional[str] = None
    S3_SECRET_KEY: Optional[str] = None
    S3_BUCKET: Optional[str] = None
    S3_REGION: str = "auto"
    UPLOADS_DIR: str = "uploads"

    # Google Sheets (resident import / eviction sources)
    GOOGLE_SHEETS_CREDENTIALS_FILE: str = "google-credentials.json"

    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def s3_configured(self) -> bool:
        return bool(self.S3_ENDPOINT and self.S3_ACCESS_KEY and self.S3_SECRET_KEY and self.S3_BUCKET)

settings = Settings()
