"""Price Cache

Remembers gateway price IDs resolved by lookup key.
"""

from typing import Dict, Optional


class PriceCache:
    """
    Lookup-key -> gateway price ID map

    One instance is created per process (API app or worker) and passed to
    the use cases that resolve prices. Tests create their own.
    """

    def __init__(self):
        self._prices: Dict[str, str] = {}

    def get(self, lookup_key: str) -> Optional[str]:
        return self._prices.get(lookup_key)

    def put(self, lookup_key: str, price_id: str) -> None:
        self._prices[lookup_key] = price_id

    def invalidate(self, lookup_key: Optional[str] = None) -> None:
        if lookup_key is None:
            self._prices.clear()
        else:
            self._prices.pop(lookup_key, None)

    def __len__(self) -> int:
        return len(self._prices)
