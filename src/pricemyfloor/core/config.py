"""
Application configuration settings loaded from config.yaml
"""
import os
import yaml
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, field_validator


CONFIG_ENV_VAR = "PRICEMYFLOOR_CONFIG"


class DatabasePoolConfig(BaseModel):
    """Database connection pool configuration"""
    size: int = 10  # Number of connections to maintain
    max_overflow: int = 20  # Maximum overflow connections
    timeout: int = 30  # Seconds to wait for a connection
    recycle: int = 3600  # Seconds before recycling a connection
    echo: bool = False  # Log SQL queries


class DatabaseConfig(BaseModel):
    """Database configuration"""
    server: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    db: Optional[str] = None
    port: str = "5432"
    schema_name: str = "public"  # PostgreSQL schema (search_path)
    dsn: Optional[str] = None  # Full SQLAlchemy URL, overrides the fields above
    create_tables: bool = False  # Run metadata.create_all() on startup
    pool: DatabasePoolConfig = DatabasePoolConfig()

    @property
    def url(self) -> str:
        """Construct database URL"""
        if self.dsn:
            return self.dsn
        return f"postgresql://{self.user}:{self.password}@{self.server}:{self.port}/{self.db}"

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class BootstrapAdminConfig(BaseModel):
    """Admin account created on startup when missing"""
    email: str
    password: str
    first_name: str = "Admin"
    last_name: str = ""


class SecurityConfig(BaseModel):
    """Security configuration"""
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    trusted_proxies: List[str] = []  # Peers allowed to set X-Forwarded-For
    bootstrap_admin: Optional[BootstrapAdminConfig] = None


class RateLimitConfig(BaseModel):
    """Lead intake rate limiting"""
    window_minutes: int = 15
    max_per_ip: int = 3
    max_per_email: int = 2


class VerificationConfig(BaseModel):
    """OTP verification settings"""
    code_ttl_minutes: int = 10
    intake_token_ttl_hours: int = 24
    send_timeout: int = 10  # Seconds allowed for a single provider call
    resend_cooldown_seconds: int = 60
    max_attempts: int = 5  # Wrong codes allowed before the code is voided
    sms_test_mode: bool = False  # Accept any 6-digit SMS code


class CoverageConfig(BaseModel):
    """Retailer coverage area limits"""
    max_prefixes: int = 10


class DistributionConfig(BaseModel):
    """Lead distribution settings"""
    max_retailers: int = 10
    exclusive_lock_multiplier: float = 3.0  # Lock price as a multiple of the lead price


class BillingConfig(BaseModel):
    """Billing behaviour"""
    currency: str = "cad"
    auto_charge: bool = False  # Charge each distribution as it is created


class ResendConfig(BaseModel):
    """Resend transactional email API configuration"""
    base_url: str = "https://api.resend.com"
    api_key: Optional[str] = None
    from_address: str = "Price My Floor <onboarding@resend.dev>"
    timeout: int = 30


class TwilioConfig(BaseModel):
    """Twilio Verify API configuration"""
    account_sid: Optional[str] = None
    auth_token: Optional[str] = None
    verify_service_sid: Optional[str] = None
    timeout: int = 30


class StripeConfig(BaseModel):
    """Stripe API configuration"""
    secret_key: Optional[str] = None
    webhook_secret: Optional[str] = None
    webhook_tolerance: int = 300  # Seconds a signed webhook stays valid


class GoogleMapsConfig(BaseModel):
    """Google Maps JS API configuration"""
    api_key: Optional[str] = None


class Settings(BaseModel):
    """Application settings loaded from config.yaml"""

    # Project settings
    project_name: str = "Price My Floor API"
    version: str = "1.0.0"
    description: str = "Flooring quote marketplace connecting homeowners with verified retailers"
    api_v1_str: str = "/api/v1"
    public_site_url: str = "http://localhost:5173"

    # Database settings
    database: DatabaseConfig

    # CORS settings
    backend_cors_origins: List[str] = []

    @field_validator("backend_cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):
        if isinstance(v, str):
            return [i.strip() for i in v.split(",")]
        elif isinstance(v, list):
            return v
        return []

    # Security settings
    security: SecurityConfig

    # Funnel settings
    rate_limit: RateLimitConfig = RateLimitConfig()
    verification: VerificationConfig = VerificationConfig()
    coverage: CoverageConfig = CoverageConfig()
    distribution: DistributionConfig = DistributionConfig()
    billing: BillingConfig = BillingConfig()

    # Third-party services
    resend: ResendConfig = ResendConfig()
    twilio: TwilioConfig = TwilioConfig()
    stripe: StripeConfig = StripeConfig()
    google_maps: GoogleMapsConfig = GoogleMapsConfig()

    # Logging
    log_level: str = "INFO"


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config.yaml file. If None, looks for the file in:
                    1. The PRICEMYFLOOR_CONFIG environment variable
                    2. Current directory
                    3. Project root (src/../config.yaml)

    Returns:
        Settings: Loaded and validated settings
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR)

    if config_path is None:
        current_dir = Path.cwd() / "config.yaml"
        if current_dir.exists():
            config_path = str(current_dir)
        else:
            # Project root, assuming we're in src/pricemyfloor/core/
            project_root = Path(__file__).parent.parent.parent.parent / "config.yaml"
            if project_root.exists():
                config_path = str(project_root)
            else:
                raise FileNotFoundError(
                    "config.yaml not found. Copy config.example.yaml to config.yaml in the project root "
                    f"or set {CONFIG_ENV_VAR}."
                )

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, "r") as f:
        config_data = yaml.safe_load(f)

    if config_data is None:
        raise ValueError("Configuration file is empty or invalid")

    return Settings(**config_data)


# Load settings on module import
settings = load_config()
