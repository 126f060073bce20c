from .client import MetabaseClient, CardResult

__all__ = ["MetabaseClient", "CardResult"]
