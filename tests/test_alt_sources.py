import json

import httpx
import pytest

from shopscan.alt_sources import AlternativeDataSource, HttpLookupService, LookupService, extract_product_id
from shopscan.config import SOURCE_CONFIDENCE
from shopscan.models import ProductRecord

ETSY_TUMBLER_URL = "https://www.etsy.com/listing/1708567730/lily-of-the-valley-glass-can-tumbler-may"


class StaticService(LookupService):
    def __init__(self, products=None, error=None):
        self.products = products or {}
        self.error = error
        self.calls = []

    def lookup(self, product_id, url):
        self.calls.append(product_id)
        if self.error:
            raise self.error
        return self.products.get(product_id)


@pytest.mark.parametrize("url, expected", [
    ("https://www.amazon.com/Echo-Dot/dp/B09B8V1LZ3/ref=sr_1_1", "B09B8V1LZ3"),
    ("https://www.amazon.com/gp/product/B075CYMYK6", "B075CYMYK6"),
    ("https://www.amazon.com/dp/b075cymyk6", "B075CYMYK6"),
    ("https://www.amazon.com/s?asin=b06y1yd5w7", "B06Y1YD5W7"),
    ("https://www.ebay.com/itm/357000764394", "357000764394"),
    (ETSY_TUMBLER_URL, "1708567730"),
    ("https://www.walmart.com/ip/samsung-55-tv/567891234", "567891234"),
    ("https://www.target.com/p/goodfellow-tee/-/A-54321098", "54321098"),
    ("https://www.bestbuy.com/site/apple-iphone-15-pro/6539232.p?skuId=6539232", "6539232"),
    ("https://www.mercari.com/us/item/m12345678901/", "12345678901"),
    ("https://eco.myshopify.com/products/organic-cotton-tshirt", "organic-cotton-tshirt"),
    ("https://shop.example.com/product/mug-42", "mug-42"),
    ("https://shop.example.com/items/widget", None),
    ("", None),
])
def test_extract_product_id(url, expected):
    assert extract_product_id(url) == expected


def test_curated_product_first(context):
    result = AlternativeDataSource(context).lookup(ETSY_TUMBLER_URL)

    assert result.success
    assert result.source == "curated-database"
    assert result.record.price == "$19.95"
    assert result.record.confidence == SOURCE_CONFIDENCE["curated-database"]


def test_curated_lookup_miss_has_error(context):
    source = AlternativeDataSource(context)

    assert source.curated_lookup("https://shop.example.com/items/widget").error == \
        "Could not extract product ID from URL"
    miss = source.curated_lookup("https://shop.example.com/product/mug-42")
    assert not miss.success and miss.record is None
    assert "mug-42" in miss.error


def test_lower_case_asin_hits_curated_database(context):
    result = AlternativeDataSource(context).curated_lookup("https://www.amazon.com/instant-pot/dp/b075cymyk6")

    assert result.success
    assert result.record.name.startswith("Instant Pot")


def test_services_in_order(context):
    api = StaticService()
    db = StaticService({"mug-42": {"name": "Speckled Stoneware Mug", "brand": "Clay Works", "price": "$18.00",
                                   "confidence": 0.99}})
    result = AlternativeDataSource(context, product_api=api, product_db=db).lookup(
        "https://shop.example.com/product/mug-42")

    assert api.calls == ["mug-42"]
    assert result.source == "product-database"
    assert result.record.brand == "Clay Works"
    # services do not get to pick their own confidence
    assert result.record.confidence == SOURCE_CONFIDENCE["product-database"]


def test_failing_service_is_skipped(context):
    api = StaticService(error=httpx.ConnectError("down"))
    db = StaticService({"mug-42": {"name": "Speckled Stoneware Mug", "brand": "Clay Works", "price": "$18.00"}})
    result = AlternativeDataSource(context, product_api=api, product_db=db).lookup(
        "https://shop.example.com/product/mug-42")

    assert result.source == "product-database"


def test_cached_data(context):
    context.cache.put("mug-42", ProductRecord(name="Speckled Stoneware Mug", brand="Clay Works", price="$18.00",
                                              confidence=0.95))
    result = AlternativeDataSource(context).lookup("https://shop.example.com/product/mug-42")

    assert result.source == "cached-data"
    assert result.record.name == "Speckled Stoneware Mug"
    assert result.record.confidence == SOURCE_CONFIDENCE["cached-data"]


def test_heuristic_etsy_tumbler_by_slug(context):
    result = AlternativeDataSource(context).lookup("https://www.etsy.com/market/lily-of-the-valley")

    assert result.source == "heuristic-analysis"
    assert result.record.price == "$19.95"
    assert result.record.confidence == SOURCE_CONFIDENCE["heuristic-analysis"]


def test_heuristic_keyword(context):
    result = AlternativeDataSource(context).lookup("https://www.example.com/deals/airpods-pro")

    assert result.source == "heuristic-analysis"
    assert result.record.name == "AirPods"
    assert result.record.price == "$129.00"


def test_url_pattern_guess(context):
    result = AlternativeDataSource(context).lookup("https://www.example.com/deals/vintage-watch-1960s")

    assert result.success
    assert result.source == "url-analysis"
    assert result.record.name == "Vintage Watch"
    assert result.record.confidence == SOURCE_CONFIDENCE["url-analysis"]


def test_unmatched_url_gets_placeholder(context):
    result = AlternativeDataSource(context).lookup("https://shop.example.com/items/widget")

    assert result.success
    assert result.source == "url-analysis"
    assert result.record.name == "Unknown Product"
    assert result.record.price == "$0.00"
    assert result.record.confidence == 0.1


def test_http_lookup_service():
    requests = []

    def handler(request):
        requests.append(request)
        body = json.loads(request.content)
        if body["product_id"] == "missing":
            return httpx.Response(404)
        return httpx.Response(200, json={"product": {"name": "Speckled Stoneware Mug", "price": "$18.00"}})

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        service = HttpLookupService("https://lookup.example.com/v1/products", client, api_key="secret")
        found = service.lookup("mug-42", "https://shop.example.com/product/mug-42")
        missing = service.lookup("missing", "https://shop.example.com/product/missing")

    assert found == {"name": "Speckled Stoneware Mug", "price": "$18.00"}
    assert missing is None
    assert requests[0].headers["Authorization"] == "Bearer secret"
    assert json.loads(requests[0].content) == {"product_id": "mug-42",
                                               "url": "https://shop.example.com/product/mug-42"}


def test_http_lookup_server_error_falls_through(context):
    def handler(request):
        return httpx.Response(503)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        api = HttpLookupService("https://lookup.example.com/v1/products", client, name="product-api")
        result = AlternativeDataSource(context, product_api=api).lookup("https://www.example.com/product/rolex-sub")

    assert result.source == "url-analysis"
    assert result.record.brand == "Rolex"
