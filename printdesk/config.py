from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./printdesk.db"
    COMPANY_NAME: str = "PrintDesk"
    WORKING_CURRENCY: str = "BYN"

    # Tier lookup basis for operation norms: "consumed" keys volume tiers off the
    # service-unit quantity the norm formula produces, "order" off the order quantity.
    TIER_BASIS: str = "consumed"
    TIER_BASIS_BY_PRODUCT: dict[str, str] = {}

    # Markup policy, unknown tags fall back to these defaults
    DEFAULT_CHANNEL: str = "manager"
    DEFAULT_CUSTOMER_TYPE: str = "regular"
    CHANNEL_MULTIPLIERS: dict[str, float] = {
        "manager": 1.0,
        "online": 0.95,
        "rush": 1.5,
        "promo": 0.9,
    }
    CHANNEL_SURCHARGES: dict[str, float] = {}
    CUSTOMER_MULTIPLIERS: dict[str, float] = {
        "regular": 1.0,
        "vip": 0.9,
        "wholesale": 0.95,
    }

    # Waste ratio for material rules stored without one
    DEFAULT_WASTE_RATIO: float = 0.02

    class Config:
        env_file = ".env"


settings = Settings()
