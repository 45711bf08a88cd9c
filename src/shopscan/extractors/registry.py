import logging
from typing import Callable, List, Optional, Tuple

from ..models import ScrapedProduct
from .amazon import AmazonExtractor
from .base import GenericExtractor, PlatformExtractor
from .bestbuy import BestBuyExtractor
from .ebay import EbayExtractor
from .etsy import EtsyExtractor
from .shopify import ShopifyExtractor
from .target import TargetExtractor
from .walmart import WalmartExtractor

logger = logging.getLogger(__name__)

Matcher = Callable[[str], bool]


class ExtractorRegistry:
    """
    Ordered (matcher, extractor) pairs. The first matcher accepting a URL
    picks the extractor; anything unmatched goes to the generic one.
    """

    def __init__(self, fallback: Optional[PlatformExtractor] = None):
        self._entries: List[Tuple[Matcher, PlatformExtractor]] = []
        self.fallback = fallback or GenericExtractor()

    def register(self, extractor: PlatformExtractor, matcher: Optional[Matcher] = None) -> None:
        self._entries.append((matcher or extractor.matches, extractor))

    @property
    def platforms(self) -> List[str]:
        return [ex.platform for _, ex in self._entries]

    def for_url(self, url: str) -> PlatformExtractor:
        for matcher, extractor in self._entries:
            try:
                if matcher(url):
                    return extractor
            except Exception as e:
                logger.warning(f"Matcher for {extractor.platform} failed on {url}: {e}")
        return self.fallback

    def for_platform(self, platform: str) -> PlatformExtractor:
        for _, extractor in self._entries:
            if extractor.platform == platform:
                return extractor
        return self.fallback

    def extract(self, html: str, platform: Optional[str] = None, url: str = "") -> ScrapedProduct:
        """Extract with the extractor for a platform tag, or for the URL when no tag is given."""
        extractor = self.for_platform(platform) if platform else self.for_url(url)
        return extractor.extract(html, url)


def default_registry() -> ExtractorRegistry:
    registry = ExtractorRegistry()
    for extractor in (
        AmazonExtractor(),
        EbayExtractor(),
        EtsyExtractor(),
        WalmartExtractor(),
        TargetExtractor(),
        BestBuyExtractor(),
        ShopifyExtractor(),
    ):
        registry.register(extractor)
    return registry
