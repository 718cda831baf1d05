from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./renoquote.db"
    APP_NAME: str = "renoquote"
    COMPANY_NAME: str = "RenoQuote"
    COMPANY_EMAIL: str = "contact@renoquote.example"
    DEFAULT_LABOR_RATE: float = 45.00  # Manual sub-quotes without an explicit rate
    QUOTE_VALID_DAYS: int = 30
    LOG_LEVEL: str = "INFO"

    # Simulated latency of the heuristic photo classifier, per photo
    ANALYSIS_DELAY_SECONDS: float = 0.5

    # Auth
    JWT_SECRET: str = ""  # REQUIRED in production; fail loudly if missing at auth time
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRE_MINUTES: int = 60

    class Config:
        env_file = ".env"


settings = Settings()
