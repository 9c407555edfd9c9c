from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, model_validator
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import json
import ipaddress


DEV_SECRET_PLACEHOLDER = "dev-secret-key-change-me"


class Settings(BaseSettings):
    # Project Info
    PROJECT_NAME: str = "The Cake Land API"
    API_V1_STR: str = "/api/v1"

    # Database
    DATABASE_URL: str = "sqlite:///./cakeland.db"

    # Security
    SECRET_KEY: str = DEV_SECRET_PLACEHOLDER
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "https://thecakeland.com",
        "https://www.thecakeland.com",
    ]

    # Environment
    ENVIRONMENT: str = "development"
    ENV: Optional[str] = Field(default=None)

    DEBUG: bool = False

    # Frontend
    FRONTEND_URL: str = "https://thecakeland.com"
    ALLOWED_HOSTS: List[str] = ["thecakeland.com", "www.thecakeland.com", "api.thecakeland.com"]

    # Monitoring (Optional - Add to .env for production)
    SENTRY_DSN: str = ""

    # Admin Security
    ADMIN_ALLOWED_IPS: str = ""  # Must be set via env in production
    DEFAULT_ADMIN_EMAIL: str = "admin@thecakeland.com"
    DEFAULT_ADMIN_PASSWORD: str = ""
    TRUST_PROXY_HEADERS: bool = True
    TRUSTED_PROXY_IPS: str = "127.0.0.1,::1"

    # Coupons & caching
    STORE_TIMEZONE: str = "Asia/Kolkata"  # naive valid-until input is read in this zone
    QUERY_CACHE_TTL_SECONDS: int = 300  # 0 keeps entries until a mutation invalidates them

    # Store information pages
    STORE_NAME: str = "The Cake Land"
    STORE_TAGLINE: str = "We're here to make your celebrations sweeter."
    STORE_EMAIL: str = "info@thecakeland.com"
    STORE_ADDRESS_LINES: List[str] = [
        "No 50, NSK Towers",
        "Near Indian Oil Petrol Bunk",
        "Arakkonam Road",
        "Tirutani Hills - 631209",
        "Tamil Nadu, India",
    ]
    STORE_HOURS: str = "Open until 10:00 PM"
    STORE_SERVICES: List[str] = ["Delivery Available", "Take Away Available", "Shop in Store"]
    STORE_HIGHLIGHTS: List[str] = ["Rating: 4.8/5 (49 reviews)", "Custom Cake Orders", "Fast Response"]

    @field_validator("ENVIRONMENT")
    @classmethod
    def normalize_environment(cls, value: str) -> str:
        return value.lower().strip()

    @field_validator("STORE_TIMEZONE")
    @classmethod
    def validate_store_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown STORE_TIMEZONE: {value}") from exc
        return value

    @field_validator("QUERY_CACHE_TTL_SECONDS")
    @classmethod
    def validate_cache_ttl(cls, value: int) -> int:
        if value < 0:
            raise ValueError("QUERY_CACHE_TTL_SECONDS must be 0 or greater")
        return value

    @classmethod
    def _parse_ip_list(cls, value) -> List[str]:
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return []
            if raw.startswith("["):
                try:
                    parsed = json.loads(raw)
                    if isinstance(parsed, list):
                        return parsed
                except json.JSONDecodeError as exc:
                    raise ValueError("IP lists must be valid JSON or comma-separated IPs") from exc
            return [ip.strip() for ip in raw.split(",")]
        if isinstance(value, list):
            return [str(ip).strip() for ip in value if str(ip).strip()]
        return value

    @field_validator("ADMIN_ALLOWED_IPS")
    @classmethod
    def validate_admin_ip_format(cls, value: str) -> str:
        normalized = cls._parse_ip_list(value)
        for ip in normalized:
            try:
                ipaddress.ip_address(ip)
            except ValueError as exc:
                raise ValueError(f"Invalid IP address: {ip}") from exc
        return ",".join(normalized)

    @field_validator("TRUSTED_PROXY_IPS")
    @classmethod
    def validate_trusted_proxy_ip_format(cls, value: str) -> str:
        normalized = cls._parse_ip_list(value)
        for ip in normalized:
            try:
                ipaddress.ip_address(ip)
            except ValueError as exc:
                raise ValueError(f"Invalid proxy IP address: {ip}") from exc
        return ",".join(normalized)

    @model_validator(mode="after")
    def validate_production_settings(self):
        if self.ENVIRONMENT == "production":
            if not self.admin_allowed_ips:
                raise ValueError("ADMIN_ALLOWED_IPS must be set in production")
            normalized_secret = (self.SECRET_KEY or "").strip()
            if len(normalized_secret) < 32 or normalized_secret == DEV_SECRET_PLACEHOLDER:
                raise ValueError("SECRET_KEY must be at least 32 chars and not use placeholders in production")
            if self.DATABASE_URL.startswith("sqlite"):
                raise ValueError("DATABASE_URL must point to a server database in production")
        return self

    @property
    def admin_allowed_ips(self) -> List[str]:
        return self._parse_ip_list(self.ADMIN_ALLOWED_IPS)

    @property
    def trusted_proxy_ips(self) -> List[str]:
        return self._parse_ip_list(self.TRUSTED_PROXY_IPS)

    @property
    def store_zone(self) -> ZoneInfo:
        return ZoneInfo(self.STORE_TIMEZONE)

    def is_trusted_proxy(self, ip: str | None) -> bool:
        if not ip:
            return False
        if ip in {"127.0.0.1", "::1"}:
            return True
        return ip in self.trusted_proxy_ips

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()
