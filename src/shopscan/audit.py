import csv
import logging
import time
from pathlib import Path
from typing import Callable, List

from .errors import AllSourcesExhausted
from .platforms import platform_from_url

logger = logging.getLogger(__name__)

FIELDNAMES = [
    "url", "platform", "name", "brand", "price", "availability", "rating", "review_count", "seller",
    "confidence", "is_valid", "data_sources", "corrected_fields", "issues", "top_issue", "error",
]


def read_urls(path: str) -> List[str]:
    """
    URLs from either a plain text file (one per line) or a CSV with a 'url' column.
    """
    file_content = Path(path).read_text(encoding="utf-8")
    first_line = file_content.splitlines()[0] if file_content.strip() else ""
    if "url" in [c.strip().lower() for c in first_line.split(",")]:
        urls = []
        with open(path, encoding="utf-8", newline="") as f:
            for row in csv.DictReader(f):
                url = (row.get("url") or row.get("URL") or "").strip()
                if url.startswith("http"):
                    urls.append(url)
        return urls
    return [u.strip() for u in file_content.splitlines() if u.strip() and not u.strip().startswith("#")]


def result_row(url: str, result) -> dict:
    product = result.product
    issues = result.validation_report.issues
    top = next((i for i in issues if i.severity == "high"), issues[0] if issues else None)
    return {
        "url": url,
        "platform": platform_from_url(url),
        "name": product.name,
        "brand": product.brand,
        "price": product.price,
        "availability": product.availability,
        "rating": product.rating if product.rating is not None else "",
        "review_count": product.review_count if product.review_count is not None else "",
        "seller": product.seller,
        "confidence": result.confidence,
        "is_valid": int(result.validation_report.is_valid),
        "data_sources": "|".join(result.data_sources),
        "corrected_fields": "|".join(result.corrected_fields),
        "issues": len(issues),
        "top_issue": f"{top.field}: {top.message}" if top else "",
        "error": "",
    }


def audit_urls(enhancer, urls, out_csv: str, delay_s: float = 2.0,
               sleep: Callable[[float], None] = time.sleep) -> List[dict]:
    """
    Resolve every URL and write one CSV row per URL. URLs that cannot be
    resolved get a row with only the error filled in.
    """
    rows = []
    urls = [u.strip() for u in urls if u and u.strip()]
    total = len(urls)
    logger.info(f"Auditing {total} URLs")

    for idx, u in enumerate(urls, 1):
        if idx % 10 == 0 or idx == total:
            logger.info(f"  [{idx}/{total}] Auditing URLs... ({idx/total*100:.1f}%)")
        try:
            rows.append(result_row(u, enhancer.resolve(u)))
        except AllSourcesExhausted as e:
            logger.error(f"Could not resolve {u}: {e.__cause__ or e}")
            row = {k: "" for k in FIELDNAMES}
            row.update({"url": u, "platform": platform_from_url(u), "error": str(e.__cause__ or e)})
            rows.append(row)
        # stay outside the per-domain rate-limit window
        if delay_s and idx < total:
            sleep(delay_s)

    Path(out_csv).parent.mkdir(parents=True, exist_ok=True)
    with open(out_csv, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=FIELDNAMES)
        w.writeheader()
        for r in rows:
            w.writerow(r)
    return rows
