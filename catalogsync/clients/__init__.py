from catalogsync.clients.catalog import CatalogClient, CatalogFetchError

__all__ = ["CatalogClient", "CatalogFetchError"]
