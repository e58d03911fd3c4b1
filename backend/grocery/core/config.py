from decimal import Decimal
from typing import List, Union
import logging

from pydantic import AnyHttpUrl, Field, validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    PROJECT_NAME: str = "Grocery Commerce"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # CORS
    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @validator("BACKEND_CORS_ORIGINS", pre=True)
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    SQLITE_DATABASE_URI: str = "sqlite:///./grocery.db"

    # B2C rules
    B2C_MAX_ADD_QUANTITY: int = Field(default=10, description="Max units per single add-to-cart")
    B2C_MIN_ORDER_VALUE: Decimal = Decimal("99")
    B2C_FREE_DELIVERY_ABOVE: Decimal = Decimal("149")
    B2C_DELIVERY_FEE: Decimal = Decimal("25")

    # B2B rules
    B2B_MIN_ORDER_VALUE: Decimal = Decimal("5000")
    B2B_MIN_LOCATION_VALUE: Decimal = Decimal("2500")
    B2B_FREE_DELIVERY_ABOVE: Decimal = Decimal("25000")
    B2B_REDUCED_DELIVERY_FROM: Decimal = Decimal("10000")
    B2B_REDUCED_DELIVERY_FEE: Decimal = Decimal("500")
    B2B_DELIVERY_FEE: Decimal = Decimal("1000")
    GST_RATE: Decimal = Decimal("0.18")
    B2B_SCHEDULE_LEAD_HOURS: int = 24

    # Credit approval
    CREDIT_LIMIT_MIN: Decimal = Decimal("10000")
    CREDIT_LIMIT_MAX: Decimal = Decimal("500000")
    CREDIT_PERIOD_OPTIONS: List[int] = [7, 15, 30]

    # Inventory split used when reserved pools are not given explicitly
    B2C_STOCK_SHARE: Decimal = Decimal("0.3")
    B2B_STOCK_SHARE: Decimal = Decimal("0.7")

    # Cart lifetime
    B2C_CART_TTL_MINUTES: int = 30
    B2B_CART_TTL_MINUTES: int = 60 * 24

    # Expired cart sweep
    CART_SWEEP_ENABLED: bool = True
    CART_SWEEP_INTERVAL_MINUTES: int = 10

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
logger.info(f"Loaded settings: API_V1_STR={settings.API_V1_STR}, CORS={settings.BACKEND_CORS_ORIGINS}")
