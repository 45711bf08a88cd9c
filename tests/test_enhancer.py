import pytest

from shopscan.alt_sources import AlternativeDataSource, LookupService
from shopscan.enhancer import AccuracyEnhancer
from shopscan.errors import AllSourcesExhausted, Blocked
from shopscan.fetch import RequestGateway
from shopscan.monitor import AccuracyMonitor

from conftest import load_fixture

ETSY_TUMBLER_URL = "https://www.etsy.com/listing/1708567730/lily-of-the-valley-glass-can-tumbler-may"
WIDGET_URL = "https://shop.example.com/items/widget"
MUG_URL = "https://shop.example.com/product/mug-42"


class MugService(LookupService):
    name = "product-api"

    def __init__(self):
        self.calls = 0

    def lookup(self, product_id, url):
        self.calls += 1
        return {"name": "Speckled Stoneware Coffee Mug", "brand": "Clay Works", "price": "$18.00"}


def serving(fixture):
    calls = []

    def fetcher(url, user_agent, timeout):
        calls.append(url)
        return load_fixture(fixture)

    fetcher.calls = calls
    return fetcher


def enhancer_for(context, fetcher, **kwargs):
    return AccuracyEnhancer(context, gateway=RequestGateway(context, fetcher=fetcher), **kwargs)


def test_curated_listing_needs_no_fetch(context):
    fetcher = serving("etsy_tumbler.html")
    result = enhancer_for(context, fetcher).resolve(ETSY_TUMBLER_URL)

    assert fetcher.calls == []
    assert result.product.price == "$19.95"
    assert result.product.seller == "Custom Print Shop"
    assert result.product.source == "etsy"
    assert result.data_sources == ["curated-database"]
    assert result.corrected_fields == []
    # curated record has no images
    assert result.confidence == 95
    assert result.validation_report.is_valid


def test_live_listing_without_price_stays_flagged(context):
    fetcher = serving("generic_no_price.html")
    result = enhancer_for(context, fetcher).resolve(WIDGET_URL)

    assert fetcher.calls == [WIDGET_URL]
    assert result.product.name == "Handmade Ceramic Mug with Blue Glaze"
    assert result.product.price == "$0.00"
    assert result.corrected_fields == []
    assert result.data_sources == ["live-scraper", "cross-reference"]
    assert result.confidence == 75
    high = [i for i in result.validation_report.issues if i.severity == "high"]
    assert [(i.field, i.message) for i in high] == [("price", "Price extraction failed or returned zero")]


def test_price_hint_in_url(context):
    url = WIDGET_URL + "?price=24.50"
    result = enhancer_for(context, serving("generic_no_price.html")).resolve(url)

    assert result.product.price == "$24.50"
    assert result.corrected_fields == ["price"]
    assert result.data_sources == ["live-scraper"]
    assert result.confidence == 100


def test_corrections_share_one_lookup(context):
    service = MugService()
    alt = AlternativeDataSource(context, product_api=service)
    result = enhancer_for(context, serving("blank_listing.html"), alt_source=alt).resolve(MUG_URL)

    assert service.calls == 1
    assert result.product.name == "Speckled Stoneware Coffee Mug"
    assert result.product.price == "$18.00"
    assert result.corrected_fields == ["price", "title"]
    assert len(set(result.corrected_fields)) == len(result.corrected_fields)
    assert result.data_sources == ["live-scraper"]
    assert result.confidence == 100
    # valid results are cached for later lookups
    cached = context.cache.get("mug-42")
    assert cached.price == "$18.00"
    assert cached.confidence == 1.0


def test_cross_reference_hook(context):
    seen = []

    def cross_reference(product, url):
        seen.append(url)
        return product

    enhancer_for(context, serving("generic_no_price.html"), cross_reference=cross_reference).resolve(WIDGET_URL)

    assert seen == [WIDGET_URL]


def test_all_sources_exhausted(context):
    def blocked(url, user_agent, timeout):
        raise Blocked("Access blocked by website", status=403, url=url)

    with pytest.raises(AllSourcesExhausted) as exc:
        enhancer_for(context, blocked).resolve(WIDGET_URL)
    assert isinstance(exc.value.__cause__, Blocked)
    assert exc.value.url == WIDGET_URL


def test_results_feed_monitor(context):
    monitor = AccuracyMonitor(context.store)
    enhancer_for(context, serving("etsy_tumbler.html"), monitor=monitor).resolve(ETSY_TUMBLER_URL)

    metrics = monitor.get_metrics()
    assert metrics.total_scans == 1
    assert metrics.successful_scans == 1
    assert metrics.platform_stats["etsy"].scans == 1


def test_generate_accuracy_metrics(context):
    def fetcher(url, user_agent, timeout):
        raise Blocked("Access blocked by website", status=403, url=url)

    metrics = enhancer_for(context, fetcher).generate_accuracy_metrics([ETSY_TUMBLER_URL, WIDGET_URL])

    assert metrics["processed"] == 1
    assert metrics["failed"] == 1
    assert metrics["success_rate"] == 100.0
    assert metrics["average_confidence"] == 95.0
    assert metrics["common_issues"] == ["No product images extracted"]
    assert len(metrics["recommendations"]) == 4


class PricedMugService(LookupService):
    name = "product-api"

    def __init__(self, price):
        self.price = price

    def lookup(self, product_id, url):
        return {"name": "Speckled Stoneware Coffee Mug", "brand": "Clay Works", "price": self.price}


@pytest.mark.parametrize("price", ["0.00", "$0", "Contact seller", "$75,000.00"])
def test_unusable_alternative_price_is_not_applied(context, price):
    alt = AlternativeDataSource(context, product_api=PricedMugService(price))
    result = enhancer_for(context, serving("generic_no_price.html"), alt_source=alt).resolve(MUG_URL)

    assert result.product.price == "$0.00"
    assert "price" not in result.corrected_fields
    assert ("price", "high") in [(i.field, i.severity) for i in result.validation_report.issues]


def test_unusable_alternative_price_falls_back_to_url_hint(context):
    alt = AlternativeDataSource(context, product_api=PricedMugService("Contact seller"))
    result = enhancer_for(context, serving("generic_no_price.html"), alt_source=alt).resolve(MUG_URL + "?price=18")

    assert result.product.price == "$18.00"
    assert "price" in result.corrected_fields


def test_alternative_price_is_normalised(context):
    alt = AlternativeDataSource(context, product_api=PricedMugService("USD 18"))
    result = enhancer_for(context, serving("generic_no_price.html"), alt_source=alt).resolve(MUG_URL)

    assert result.product.price == "$18.00"
    assert "price" in result.corrected_fields
