"""
watchdesk
------------------------------------------------------------
Watchlist market-data aggregation service: quote/profile/metric enrichment,
fair per-symbol news selection with general-news fallback, symbol search.
"""

__version__ = "0.1.0"
