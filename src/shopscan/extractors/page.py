from functools import cached_property
from typing import List, Optional

from bs4 import BeautifulSoup

from ..parse import classify_schema, clean_text, extract_jsonld, extract_meta, extract_ratings_fallback, first_offer


class PageContext:
    """
    Lazily parsed views of one product page, shared by every extraction rule.

    Rules only read from the context; each view is computed at most once.
    """

    def __init__(self, html: str, url: str = ""):
        self.html = html or ""
        self.url = url or ""

    @cached_property
    def lower(self) -> str:
        return self.html.lower()

    @cached_property
    def soup(self) -> BeautifulSoup:
        return BeautifulSoup(self.html, "lxml")

    @cached_property
    def jsonld(self) -> list:
        return extract_jsonld(self.html, self.url)

    @cached_property
    def buckets(self) -> dict:
        return classify_schema(self.jsonld)

    @cached_property
    def product(self) -> dict:
        """First schema.org Product (or ProductGroup) node on the page."""
        nodes = self.buckets["Product"] or self.buckets["ProductGroup"]
        return nodes[0] if nodes else {}

    @cached_property
    def offer(self) -> dict:
        offer = first_offer(self.product) if self.product else {}
        if not offer and self.buckets["Offer"]:
            offer = self.buckets["Offer"][0]
        return offer

    @cached_property
    def aggregate_rating(self) -> dict:
        agg = self.product.get("aggregateRating") if self.product else None
        if isinstance(agg, list):
            agg = agg[0] if agg else None
        if isinstance(agg, dict):
            return agg
        if self.buckets["AggregateRating"]:
            return self.buckets["AggregateRating"][0]
        return {}

    @cached_property
    def embedded_ratings(self):
        return extract_ratings_fallback(self.html)

    def meta(self, key: str) -> Optional[str]:
        return extract_meta(self.soup, key)

    def meta_all(self, key: str) -> List[str]:
        tags = self.soup.find_all("meta", attrs={"property": key}) + self.soup.find_all("meta", attrs={"name": key})
        return [t["content"].strip() for t in tags if t.get("content")]

    def text(self, selector: str) -> Optional[str]:
        """Cleaned text of the first element matching a CSS selector."""
        el = self.soup.select_one(selector)
        if el is None:
            return None
        text = clean_text(el.get_text(" "))
        return text or None

    def texts(self, selector: str, limit: int = 10) -> List[str]:
        out = []
        for el in self.soup.select(selector):
            text = clean_text(el.get_text(" "))
            if text and text not in out:
                out.append(text)
            if len(out) >= limit:
                break
        return out

    def attr(self, selector: str, name: str) -> Optional[str]:
        el = self.soup.select_one(selector)
        if el is None:
            return None
        value = el.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        return clean_text(value) if value else None

    def attrs(self, selector: str, *names: str, limit: int = 10) -> List[str]:
        """First non-empty attribute among names, for each matching element."""
        out = []
        for el in self.soup.select(selector):
            for name in names:
                value = el.get(name)
                if value and value not in out:
                    out.append(value.strip())
                    break
            if len(out) >= limit:
                break
        return out
