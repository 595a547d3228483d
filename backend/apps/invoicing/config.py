"""
Invoicing — app-specific configuration.

General settings (Supabase, email, checkout link) come from config.settings.
"""
APP_ID = "invoicing"
APP_NAME = "Invoicing"

ANALYTICS_CACHE_TTL = 30  # seconds
