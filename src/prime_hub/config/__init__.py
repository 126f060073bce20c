from .settings import (
    AppSettings,
    SupabaseSettings,
    DatabaseSettings,
    MetabaseSettings,
    ZendeskSettings,
    InsightsSettings,
    CORSSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "SupabaseSettings",
    "DatabaseSettings",
    "MetabaseSettings",
    "ZendeskSettings",
    "InsightsSettings",
    "CORSSettings",
    "get_settings",
]
