"""
Grand Exchange prices from the RS Wiki bulk dump.

The bulk dump (one request, every tradeable item) is the main source; the
Jagex item-detail API is only used for items the dump is missing. Prices
are cached for 15 minutes.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Protocol, Tuple

import httpx

logger = logging.getLogger(__name__)

BULK_API_URL = "https://chisel.weirdgloop.org/gazproj/gazbot/rs_dump.json"
ITEM_DETAIL_URL = "https://services.runescape.com/m=itemdb_rs/api/catalogue/detail.json"
CACHE_EXPIRY = 15 * 60


@dataclass(frozen=True)
class GEItemPrice:
    item_id: int
    name: str
    price: int
    fetched_at: float


class PriceLookup(Protocol):
    def get_cached_price(self, item_id: int) -> Optional[GEItemPrice]: ...


def parse_price(raw: str) -> int:
    """Parse GE display prices like '1,234', '1.2k', '5.5m' or '1.2b'."""
    if not raw or not str(raw).strip():
        return 0
    text = str(raw).strip().lower().replace(",", "")
    multiplier = 1
    suffixes = {"k": 1_000, "m": 1_000_000, "b": 1_000_000_000}
    if text[-1] in suffixes:
        multiplier = suffixes[text[-1]]
        text = text[:-1]
    try:
        return int(float(text) * multiplier)
    except ValueError:
        return 0


class GrandExchangeClient:
    def __init__(
        self,
        timeout: float = 10.0,
        cache_expiry: float = CACHE_EXPIRY,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.client = httpx.Client(
            timeout=timeout,
            headers={"User-Agent": "Mozilla/5.0"},
            transport=transport,
        )
        self.cache_expiry = cache_expiry
        self._clock = clock
        self._cache: Dict[int, GEItemPrice] = {}
        self._last_bulk_fetch: Optional[float] = None
        self._lock = threading.Lock()

    def close(self) -> None:
        self.client.close()

    def _is_stale(self, fetched_at: Optional[float]) -> bool:
        return fetched_at is None or self._clock() - fetched_at > self.cache_expiry

    def get_cached_price(self, item_id: int) -> Optional[GEItemPrice]:
        """Cached price, or None if missing or older than the expiry."""
        with self._lock:
            price = self._cache.get(item_id)
        if price is not None and not self._is_stale(price.fetched_at):
            return price
        return None

    def fetch_bulk_prices(self) -> bool:
        """Refresh the whole cache from the bulk dump."""
        try:
            resp = self.client.get(BULK_API_URL)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to fetch bulk GE prices: {e}")
            return False

        if not isinstance(data, dict):
            return False

        now = self._clock()
        prices: Dict[int, GEItemPrice] = {}
        for key, value in data.items():
            # "%LAST_UPDATE%" and friends are metadata
            if key.startswith("%") or not key.isdigit() or not isinstance(value, dict):
                continue
            item_id = int(key)
            try:
                price = int(value.get("price") or 0)
            except (TypeError, ValueError):
                price = 0
            prices[item_id] = GEItemPrice(item_id, str(value.get("name", "")), price, now)

        with self._lock:
            self._cache = prices
            self._last_bulk_fetch = now
        logger.info(f"Loaded {len(prices)} GE prices")
        return True

    def get_price(self, item_id: int) -> Optional[GEItemPrice]:
        """Cached price, refreshing the bulk dump or falling back to item detail."""
        cached = self.get_cached_price(item_id)
        if cached is not None:
            return cached

        if self._is_stale(self._last_bulk_fetch):
            self.fetch_bulk_prices()
            cached = self.get_cached_price(item_id)
            if cached is not None:
                return cached

        try:
            resp = self.client.get(ITEM_DETAIL_URL, params={"item": item_id})
            resp.raise_for_status()
            item = (resp.json() or {}).get("item")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to fetch price for item {item_id}: {e}")
            return None
        if not item:
            return None

        result = GEItemPrice(
            item_id=item_id,
            name=item.get("name") or "",
            price=parse_price(str((item.get("current") or {}).get("price", "0"))),
            fetched_at=self._clock(),
        )
        with self._lock:
            self._cache[item_id] = result
        return result

    def get_prices(self, item_ids: Iterable[int]) -> Dict[int, GEItemPrice]:
        if self._is_stale(self._last_bulk_fetch):
            self.fetch_bulk_prices()
        result: Dict[int, GEItemPrice] = {}
        for item_id in item_ids:
            cached = self.get_cached_price(item_id)
            if cached is not None:
                result[item_id] = cached
        return result

    def calculate_total_value(self, items: Iterable[Tuple[int, int]]) -> int:
        return calculate_total_value(self, items)

    def preload_in_background(self) -> threading.Thread:
        """Warm the cache without holding up startup."""
        thread = threading.Thread(target=self.fetch_bulk_prices, name="ge-preload", daemon=True)
        thread.start()
        return thread


def calculate_total_value(prices: PriceLookup, items: Iterable[Tuple[int, int]]) -> int:
    """Sum of quantity * cached price. Items without a cached price count as 0."""
    total = 0
    for item_id, quantity in items:
        price = prices.get_cached_price(item_id)
        if price is not None:
            total += price.price * quantity
    return total
