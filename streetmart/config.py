# streetmart/config.py
import os


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    """
    Very simple settings holder.
    Reads values from environment variables when present; any value can be
    overridden by passing it to the constructor (tests do this).
    """

    def __init__(
        self,
        database_url: str | None = None,
        db_timeout_seconds: float | None = None,
        delivery_fee: float | None = None,
        restock_on_cancel: bool | None = None,
        seed_demo_data: bool | None = None,
        log_level: str | None = None,
        default_page_size: int | None = None,
    ) -> None:
        self.database_url: str = database_url or os.getenv(
            "DATABASE_URL", "sqlite:///./streetmart.db"
        )
        self.db_timeout_seconds: float = (
            db_timeout_seconds
            if db_timeout_seconds is not None
            else float(os.getenv("DB_TIMEOUT_SECONDS", "5"))
        )
        self.delivery_fee: float = (
            delivery_fee if delivery_fee is not None else float(os.getenv("DELIVERY_FEE", "50"))
        )
        self.restock_on_cancel: bool = (
            restock_on_cancel
            if restock_on_cancel is not None
            else _env_bool("RESTOCK_ON_CANCEL", "false")
        )
        self.seed_demo_data: bool = (
            seed_demo_data if seed_demo_data is not None else _env_bool("SEED_DEMO_DATA", "true")
        )
        self.log_level: str = log_level or os.getenv("LOG_LEVEL", "INFO")
        self.default_page_size: int = default_page_size or int(
            os.getenv("DEFAULT_PAGE_SIZE", "10")
        )


settings = Settings()
