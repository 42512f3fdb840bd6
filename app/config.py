"""
Application settings, read from the environment and an optional .env file
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """UniThrift API configuration"""

    # API
    API_TITLE: str = "UniThrift API"
    API_VERSION: str = "1.0.0"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Database (any SQLAlchemy URL)
    DATABASE_URL: str = "sqlite:///./unithrift.db"

    # CORS: browsers on any localhost port
    ALLOWED_ORIGIN_REGEX: str = r"^http://localhost:\d+$"

    # OpenRouteService (estimate falls back when the key is empty)
    ORS_API_KEY: str = ""
    ORS_DIRECTIONS_URL: str = "https://api.openrouteservice.org/v2/directions/foot-walking/geojson"
    ESTIMATE_TIMEOUT: float = 5.0

    # Catalog / checkout
    PRODUCTS_PAGE_SIZE: int = 60
    REJECT_UNPRICED_ORDERS: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
