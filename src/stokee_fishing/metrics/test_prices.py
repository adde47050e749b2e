import httpx

from stokee_fishing.metrics import GrandExchangeClient, parse_price
from stokee_fishing.metrics.prices import BULK_API_URL

BULK = {
    "%LAST_UPDATE%": 1700000000,
    "%LAST_UPDATE_F%": "whenever",
    "377": {"id": 377, "name": "Raw lobster", "price": 250},
    "383": {"id": 383, "name": "Raw shark", "price": 1100},
}


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


def _client(handler, clock=None):
    return GrandExchangeClient(transport=httpx.MockTransport(handler), clock=clock or FakeClock())


def test_parse_price():
    assert parse_price("1,234") == 1234
    assert parse_price("1.2k") == 1200
    assert parse_price("5.5m") == 5_500_000
    assert parse_price("1.2b") == 1_200_000_000
    assert parse_price(" 42 ") == 42
    assert parse_price("") == 0
    assert parse_price("abc") == 0


def test_bulk_fetch_skips_metadata():
    client = _client(lambda request: httpx.Response(200, json=BULK))

    assert client.fetch_bulk_prices()
    assert client.get_cached_price(377).price == 250
    assert client.get_cached_price(383).name == "Raw shark"
    assert client.get_cached_price(999) is None


def test_cache_expires_after_fifteen_minutes():
    clock = FakeClock()
    client = _client(lambda request: httpx.Response(200, json=BULK), clock)
    client.fetch_bulk_prices()

    clock.now = 14 * 60
    assert client.get_cached_price(377) is not None
    clock.now = 16 * 60
    assert client.get_cached_price(377) is None


def test_get_price_falls_back_to_item_detail():
    requests = []

    def handler(request):
        requests.append(request)
        if str(request.url).startswith(BULK_API_URL):
            return httpx.Response(200, json=BULK)
        return httpx.Response(200, json={"item": {"name": "Raw rocktail", "current": {"price": "1.5k"}}})

    client = _client(handler)
    price = client.get_price(15270)

    assert price.price == 1500
    assert price.name == "Raw rocktail"
    assert requests[-1].url.params["item"] == "15270"
    # cached afterwards
    assert client.get_cached_price(15270).price == 1500


def test_network_failure_returns_nothing():
    def handler(request):
        raise httpx.ConnectError("offline")

    client = _client(handler)
    assert client.fetch_bulk_prices() is False
    assert client.get_price(377) is None
    assert client.get_prices([377]) == {}


def test_total_value_uses_cache():
    client = _client(lambda request: httpx.Response(200, json=BULK))
    client.fetch_bulk_prices()
    assert client.calculate_total_value([(377, 2), (383, 1), (999, 50)]) == 1600
