"""
Application configuration and environment settings.
"""
import math
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Application
    APP_NAME: str = "Tripledger"
    DEBUG: bool = False
    
    # Currency
    CURRENCY_CODE: str = "BDT"
    CURRENCY_SYMBOL: str = "Tk"
    CURRENCY_SCALE: int = 100  # Minor units per major unit (cents)
    
    # Per-expense paid/owed drift (in minor units) that is reconciled silently.
    # Larger drift is still reconciled but logged as a caller bug.
    ROUNDING_TOLERANCE_CENTS: int = 1
    
    @field_validator("CURRENCY_CODE", mode="before")
    @classmethod
    def normalize_currency_code(cls, v):
        """Store currency codes upper-cased (e.g. "bdt" -> "BDT")."""
        if isinstance(v, str):
            return v.strip().upper()
        return v
    
    @field_validator("CURRENCY_SCALE")
    @classmethod
    def check_currency_scale(cls, v):
        """Minor units must be a power of ten (1, 10, 100, 1000, ...)."""
        if v <= 0 or 10 ** round(math.log10(v)) != v:
            raise ValueError("CURRENCY_SCALE must be a positive power of 10")
        return v
    
    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
