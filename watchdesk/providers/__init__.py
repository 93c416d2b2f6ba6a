from watchdesk.providers.finnhub_provider import CachedFinnhubClient, EndpointKind, FinnhubClient

__all__ = ["CachedFinnhubClient", "EndpointKind", "FinnhubClient"]
