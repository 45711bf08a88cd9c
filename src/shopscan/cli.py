import json
import logging
from dataclasses import replace
from pathlib import Path

import typer

from .audit import audit_urls, read_urls
from .config import ResolverConfig
from .context import ResolverContext
from .enhancer import AccuracyEnhancer
from .errors import AllSourcesExhausted
from .fetch import RequestGateway
from .models import UserFeedback
from .monitor import AccuracyMonitor

app = typer.Typer(help="shopscan - accuracy-checked product data from listing URLs")

DEFAULT_METRICS_PATH = ".shopscan/metrics.json"


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def _context(metrics_path: str) -> ResolverContext:
    config = replace(ResolverConfig.from_env(), metrics_path=metrics_path)
    return ResolverContext(config)


def _enhancer(context: ResolverContext, render_js: bool) -> AccuracyEnhancer:
    gateway = None
    if render_js:
        from .js_fallback import render_html
        gateway = RequestGateway(context, fetcher=render_html)
    return AccuracyEnhancer(context, gateway=gateway, monitor=AccuracyMonitor(context.store))


MetricsPath = typer.Option(DEFAULT_METRICS_PATH, "--metrics-path", envvar="SHOPSCAN_METRICS_PATH",
                           help="JSON file holding accuracy metrics and feedback")


@app.command()
def resolve(
    url: str,
    product_id: str = typer.Option(None, "--product-id", help="Known platform product ID (ASIN, item ID, ...)"),
    render_js: bool = typer.Option(False, "--render-js", help="Render the page with Playwright before extracting"),
    as_json: bool = typer.Option(False, "--json", help="Print the full result as JSON"),
    metrics_path: str = MetricsPath,
):
    """
    Resolve one product URL into a validated, confidence-scored record.

    Example:
      shopscan resolve https://www.etsy.com/listing/1708567730/lily-of-the-valley-glass-can-tumbler-may
    """
    with _context(metrics_path) as context:
        try:
            result = _enhancer(context, render_js).resolve(url, product_id=product_id)
        except AllSourcesExhausted as e:
            typer.echo(f"✗ {e}", err=True)
            raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return

    product = result.product
    typer.echo(f"{product.name}")
    typer.echo(f"  price:       {product.price}")
    typer.echo(f"  brand:       {product.brand}")
    typer.echo(f"  seller:      {product.seller}")
    typer.echo(f"  confidence:  {result.confidence}% ({'valid' if result.validation_report.is_valid else 'invalid'})")
    typer.echo(f"  sources:     {', '.join(result.data_sources)}")
    if result.corrected_fields:
        typer.echo(f"  corrected:   {', '.join(result.corrected_fields)}")
    for issue in result.validation_report.issues:
        typer.echo(f"  [{issue.severity}] {issue.field}: {issue.message} ({issue.detected_value})")
    for suggestion in result.validation_report.suggestions:
        typer.echo(f"  → {suggestion}")


@app.command()
def audit(
    urls_file: str,
    out: str = "shopscan_audit.csv",
    delay: float = typer.Option(2.0, help="Seconds to wait between URLs"),
    render_js: bool = typer.Option(False, "--render-js", help="Render pages with Playwright"),
    metrics_path: str = MetricsPath,
):
    """
    Resolve every URL in a file and write one CSV row per URL.

    Accepts either:
    - Plain text file (one URL per line)
    - CSV file with 'url' column
    """
    urls = read_urls(urls_file)
    typer.echo(f"Found {len(urls)} URLs")
    with _context(metrics_path) as context:
        rows = audit_urls(_enhancer(context, render_js), urls, out, delay_s=delay)
    failed = sum(1 for r in rows if r["error"])
    typer.echo(f"Wrote audit to {out} ({len(rows) - failed} resolved, {failed} failed)")


@app.command()
def report(metrics_path: str = MetricsPath, as_json: bool = typer.Option(False, "--json")):
    """Summarise recorded accuracy metrics."""
    with _context(metrics_path) as context:
        rep = AccuracyMonitor(context.store).generate_report()
    if as_json:
        typer.echo(json.dumps(rep.to_dict(), indent=2, ensure_ascii=False))
        return
    typer.echo(rep.summary)
    for p in rep.platform_breakdown:
        typer.echo(f"  {p['platform']:<10} {p['scans']:>5} scans  {p['confidence']:.1f}% avg confidence")
    if rep.top_errors:
        typer.echo("Top errors:")
        for err in rep.top_errors:
            typer.echo(f"  - {err}")
    if rep.recommendations:
        typer.echo("Recommendations:")
        for rec in rep.recommendations:
            typer.echo(f"  - {rec}")


@app.command()
def feedback(
    url: str,
    field: str,
    correct: bool = typer.Option(..., "--correct/--incorrect", help="Was the reported value right?"),
    expected: str = typer.Option(None, help="Value the user expected"),
    actual: str = typer.Option(None, help="Value shopscan reported"),
    email: str = typer.Option(None, help="Reporter e-mail"),
    metrics_path: str = MetricsPath,
):
    """Record user feedback about one field of a resolved product."""
    with _context(metrics_path) as context:
        AccuracyMonitor(context.store).record_user_feedback(
            UserFeedback(url=url, is_correct=correct, field=field, expected_value=expected,
                         actual_value=actual, user_email=email)
        )
    typer.echo(f"Recorded feedback: {field} {'correct' if correct else 'incorrect'}")


@app.command()
def export(out: str = typer.Option(None, help="Write to this file instead of stdout"),
           metrics_path: str = MetricsPath):
    """Export metrics and feedback as JSON."""
    with _context(metrics_path) as context:
        payload = AccuracyMonitor(context.store).export_metrics()
    if out:
        Path(out).parent.mkdir(parents=True, exist_ok=True)
        Path(out).write_text(payload, encoding="utf-8")
        typer.echo(f"Wrote metrics to {out}")
    else:
        typer.echo(payload)


@app.command()
def reset(metrics_path: str = MetricsPath,
          yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation")):
    """Clear all recorded metrics and feedback."""
    if not yes:
        typer.confirm("Reset all accuracy metrics?", abort=True)
    with _context(metrics_path) as context:
        AccuracyMonitor(context.store).reset_metrics()
    typer.echo("Metrics reset")


if __name__ == "__main__":
    app()
