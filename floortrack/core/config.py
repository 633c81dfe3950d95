# floortrack/core/config.py
from pydantic_settings import BaseSettings; from dotenv import load_dotenv
load_dotenv()
class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./floortrack.db"
    JWT_SECRET_KEY: str = "change_me_in_production"; JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    # Escalation: rejections on this many consecutive days, looked up this far back
    ESCALATION_LOOKBACK_DAYS: int = 14; ESCALATION_STREAK_DAYS: int = 3
    # 8 productive hours, break time excluded
    WORK_MINUTES_PER_DAY: int = 480
    LOG_LEVEL: str = "INFO"; LOG_FORMAT: str = "json"
    DEBUG: bool = False
settings = Settings()
