import re
from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, UrlConstraints, computed_field, field_validator

from shortlink_app.clock import as_naive_utc, utcnow
from shortlink_app.config import settings

SHORT_CODE_PATTERN = re.compile(r"^[A-Za-z0-9]+$")

# HttpUrl without its 2083 character cap: long query strings are legitimate
_http_url = TypeAdapter(
    Annotated[AnyUrl, UrlConstraints(allowed_schemes=["http", "https"], host_required=True)]
)


class LinkCreate(BaseModel):
    """Caller input for allocation, validated before any store is touched"""
    target_url: str = Field(..., description="The long URL to shorten")
    owner_id: Optional[str] = Field(None, description="Owning account, None for anonymous links")
    requested_code: Optional[str] = Field(None, description="Custom short code")
    ttl_days: Optional[int] = Field(None, description="Days until expiry, <= 0 or None never expires")

    @field_validator("target_url")
    @classmethod
    def check_target_url(cls, value: str) -> str:
        value = value.strip()
        # Validate only; the caller's spelling is what gets stored
        _http_url.validate_python(value)
        return value

    @field_validator("ttl_days")
    @classmethod
    def check_ttl_days(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value > settings.max_ttl_days:
            raise ValueError(f"ttl_days must be at most {settings.max_ttl_days}")
        return value

    @field_validator("requested_code")
    @classmethod
    def check_requested_code(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if not SHORT_CODE_PATTERN.match(value):
            raise ValueError("short code may only contain letters and digits")
        if len(value) < settings.min_requested_code_length:
            raise ValueError(
                f"short code must be at least {settings.min_requested_code_length} characters"
            )
        if len(value) > settings.max_requested_code_length:
            raise ValueError(
                f"short code must be at most {settings.max_requested_code_length} characters"
            )
        return value


class LinkRecord(BaseModel):
    """Snapshot of a link row.

    Returned by allocation and resolution, and the payload stored under
    link:{code} in the cache.
    """
    id: str
    target_url: str
    short_code: str
    owner_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def short_url(self) -> str:
        return f"{settings.base_url}/{self.short_code}"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True once expires_at has passed. Links without expires_at never expire."""
        if self.expires_at is None:
            return False
        now = as_naive_utc(now) if now is not None else utcnow()
        return as_naive_utc(self.expires_at) <= now

    model_config = ConfigDict(from_attributes=True, frozen=True)


class ClickRecord(BaseModel):
    id: str
    link_id: str
    occurred_at: datetime
    user_agent: Optional[str] = None
    address: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, frozen=True)


class DailyClicks(BaseModel):
    """Click count for one calendar day (UTC)"""
    day: date
    count: int = 0

    model_config = ConfigDict(frozen=True)


class LinkWithClicks(BaseModel):
    link: LinkRecord
    clicks: int
