"""Top-level package for the CoinFlow market-data dashboard core.

Subpackages cover the exchange data feed, the fallback/polling pipeline and
the in-memory view model consumed by the render layer. Each subpackage should
remain import-safe so the render layer can depend on it directly.
"""

__all__: list[str] = []
