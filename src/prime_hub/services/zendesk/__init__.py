from .client import ZendeskClient, CREATED_DESC, UPDATED_DESC

__all__ = ["ZendeskClient", "CREATED_DESC", "UPDATED_DESC"]
