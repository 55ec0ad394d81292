# config/settings.py
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # API
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Card Studio"

    # CORS
    ALLOWED_HOSTS: List[str] = ["*"]

    # Auth
    BASIC_AUTH_USERNAME: str = "admin"
    BASIC_AUTH_PASSWORD: str = "secret"

    # Persistence (id_card_templates)
    DATABASE_URL: str = "sqlite+aiosqlite:///./card_studio.db"
    SEED_PRESETS: bool = True

    # Physical card (ISO/IEC 7810 ID-1), landscape long edge first
    CARD_WIDTH_MM: float = 85.6
    CARD_HEIGHT_MM: float = 53.98

    # Export
    EXPORT_DPI: int = 300
    JPEG_QUALITY: int = 90
    EXPORT_TIMEOUT_SECONDS: float = 60.0
    REQUEST_TIMEOUT: float = 30.0
    # Local image paths in records resolve only inside this directory; unset disables them
    ASSET_DIR: Optional[str] = None
    FONT_PATH: Optional[str] = None
    FONT_BOLD_PATH: Optional[str] = None

    # Field formatting (pt-BR)
    DATE_FORMAT: str = "%d/%m/%Y"

    # Designer
    GRID_SIZE_PX: int = 20
    MARGIN_GUIDE_MM: float = 5.0
    CLAMP_ON_DROP: bool = False

    # Env
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
