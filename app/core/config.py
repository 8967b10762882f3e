from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "Grand Horizon Hotel API"
    DEBUG: bool = False
    # Comma-separated origins for CORS (e.g. https://grandhorizon.com,https://admin.grandhorizon.com). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""

    SECRET_KEY: str = "dev-secret-key-change-me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    DATABASE_URL: str = "sqlite:///./hotel.db"

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v

    # Payments: "test" trusts the client callback, "stripe" verifies the PaymentIntent server-side
    PAYMENT_MODE: str = "test"

    @field_validator("PAYMENT_MODE", mode="after")
    @classmethod
    def normalize_payment_mode(cls, v: str) -> str:
        v = (v or "test").strip().lower()
        if v not in ("test", "stripe"):
            raise ValueError("PAYMENT_MODE must be 'test' or 'stripe'")
        return v

    PAYMENT_CURRENCY: str = "usd"
    STRIPE_SECRET_KEY: str = ""
    STRIPE_PUBLISHABLE_KEY: str = ""
    STRIPE_API_BASE: str = "https://api.stripe.com"
    STRIPE_TIMEOUT: int = 25

    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    MAIL_FROM: str = "bookings@grandhorizon.com"

    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = ""

    # Room image uploads (served under /uploads)
    UPLOAD_DIR: str = "./uploads"
    UPLOAD_MAX_FILES: int = 5
    UPLOAD_MAX_MB: int = 5
    # cloudinary://<key>:<secret>@<cloud>; when set, images go to Cloudinary instead of UPLOAD_DIR
    CLOUDINARY_URL: str = ""
    CLOUDINARY_FOLDER: str = "hotel-rooms"

    # Password used for the seeded admin/manager/customer accounts
    SEED_PASSWORD: str = "password123"


settings = Settings()
