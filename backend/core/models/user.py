"""
User-related models.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from core.models.billing import PlanTier


class AuthUser(BaseModel):
    """User resolved from a Supabase Auth bearer token."""
    id: str
    email: Optional[str] = None


class Profile(BaseModel):
    """Profile row. `plan` is the profile-level tier, synced by the billing webhook."""
    id: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    avatar_url: Optional[str] = None
    plan: PlanTier = PlanTier.FREE
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSettings(BaseModel):
    """Business details printed on invoices."""
    user_id: str
    display_name: Optional[str] = None
    company_name: Optional[str] = None
    address: Optional[str] = None
    currency: str = "USD"

    class Config:
        from_attributes = True


class UserSettingsUpdate(BaseModel):
    """Update user settings."""
    display_name: Optional[str] = Field(None, max_length=200)
    company_name: Optional[str] = Field(None, max_length=200)
    address: Optional[str] = Field(None, max_length=500)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
