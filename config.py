# config.py

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_TITLE: str = "RankMaster"

    # Manual entry
    SUBJECT_COUNT: int = 5
    MAX_MARKS_PER_SUBJECT: float = 100
    # Denominator for "Use Total Marks" entries
    TOTAL_MARKS_MAX: float = 100

    # Recompute debounce window
    DEBOUNCE_MS: int = 200

    EXPORT_FILENAME: str = "rank_list.csv"
    EXCEL_FILENAME: str = "rank_list.xlsx"

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 8050
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    class Config:
        env_prefix = "RANKMASTER_"
        case_sensitive = False


CONFIG = Settings()
