from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional

from selectolax.parser import HTMLParser

from .calculator import PriceCalculator, StaticSelector
from .config import PricingConfig, load_config, load_config_file
from .fetch import Fetcher
from .formatting import format_quantity_range
from .models import ONE_TIME
from .page import ProductPage, attach_to_page, scheme_key
from .render import BufferTarget, Renderer
from .writer import ladder_rows, open_writer


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Compute the live product price with subscription and bulk discounts",
    )
    src = p.add_mutually_exclusive_group()
    src.add_argument("--page", type=str, default=None, help="Stored product page HTML")
    src.add_argument("--url", type=str, default=None, help="Product page URL to fetch")
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Pricing configuration JSON (defaults to the data embedded in the page)",
    )
    p.add_argument("--quantity", type=str, default=None, help="Quantity input value")
    p.add_argument(
        "--scheme",
        type=str,
        default=None,
        help='Subscription scheme key; "0" selects one-time purchase',
    )
    p.add_argument(
        "--variation-price", type=float, default=None, help="Selected variation display price"
    )
    p.add_argument(
        "--variation-regular-price",
        type=float,
        default=None,
        help="Selected variation regular price",
    )
    p.add_argument(
        "--ladder",
        type=parse_range,
        default=None,
        help="Quantity range for a price ladder export, e.g. 1-10",
    )
    p.add_argument("--out", type=str, default="ladder.csv", help="Ladder output file")
    p.add_argument(
        "--format", choices=["csv", "ndjson"], default="csv", help="Ladder output format"
    )
    p.add_argument(
        "--render-out",
        type=str,
        default=None,
        help="Write the page with the rendered price to this file",
    )
    p.add_argument(
        "--list-tiers", action="store_true", help="Print the bulk discount tiers"
    )
    p.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Log level (default INFO)",
    )
    return p


def parse_range(value: str) -> List[int]:
    lo, _, hi = value.partition("-")
    try:
        start = max(1, int(lo))
        end = int(hi) if hi else start
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid quantity range: {value!r}")
    return list(range(start, max(start, end) + 1))


def html_to_text(html: str) -> str:
    if not html:
        return ""
    node = HTMLParser(html).body
    return node.text(separator=" ", strip=True) if node is not None else ""


def load_page(args: argparse.Namespace) -> Optional[ProductPage]:
    if args.page:
        return ProductPage(Path(args.page).read_text(encoding="utf-8"))
    if args.url:
        return ProductPage(Fetcher().get_page(args.url))
    return None


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = build_arg_parser().parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    log = logging.getLogger("dynamic_pricing.cli")

    page = load_page(args)

    config: Optional[PricingConfig] = None
    if args.config:
        config = load_config_file(Path(args.config))
    elif page is not None:
        data = page.embedded_config()
        config = load_config(data) if data is not None else None
    if config is None:
        log.error("No pricing configuration found (use --config or a page with embedded data)")
        return 2

    if args.list_tiers:
        for t in config.discount_tiers:
            print(f"{format_quantity_range(t.min, t.max)}: {t.percent:g}%")

    price_target = BufferTarget()
    savings_target = BufferTarget()
    selector = StaticSelector()
    calc: Optional[PriceCalculator] = None
    on_page = False
    if page is not None:
        calc = attach_to_page(page, config)
        on_page = calc is not None
        if calc is not None:
            calc.renderer.price_target = _Tee(calc.renderer.price_target, price_target)
            calc.renderer.savings_target = _Tee(calc.renderer.savings_target, savings_target)
    if calc is None:
        renderer = Renderer(config.currency_format, price_target, savings_target)
        calc = PriceCalculator(config, renderer, selector=selector)
        calc.init()

    if args.variation_price is not None:
        calc.on_variation_found(
            {
                "display_price": args.variation_price,
                "display_regular_price": args.variation_regular_price,
            }
        )
    if args.quantity is not None:
        if on_page:
            page.set_quantity(args.quantity)
        calc.on_quantity_change(args.quantity)
    if args.scheme is not None:
        key = scheme_key(args.scheme)
        if on_page:
            page.set_subscription_toggle(key is not ONE_TIME)
            if key is not ONE_TIME:
                page.check_scheme(args.scheme)
            page.set_prompt(key is not ONE_TIME)
        else:
            selector.choose(key)
        calc.on_subscription_change()
    calc.update_display()

    log.info(
        "Price: qty=%d subscription=%s base=%s",
        calc.state.quantity,
        calc.state.is_subscription_active,
        calc.state.base_price,
    )
    print(html_to_text(price_target.html))
    savings = html_to_text(savings_target.html)
    if savings:
        print(savings)

    if args.ladder:
        rows = ladder_rows(
            replace(
                config,
                base_price=calc.state.base_price,
                regular_price=calc.state.regular_price,
            ),
            args.ladder,
            calc.state.selected_scheme,
            calc.state.is_subscription_active,
        )
        with open_writer(Path(args.out), args.format) as w:
            w.write_many(rows)
        log.info("Ladder written: %d rows, file=%s", len(rows), args.out)

    if args.render_out and page is not None:
        out_path = Path(args.render_out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(page.html, encoding="utf-8")
        log.info("Rendered page written: %s", out_path)
    return 0


class _Tee:
    def __init__(self, *targets) -> None:
        self.targets = [t for t in targets if t is not None]

    def set_html(self, html: str) -> None:
        for t in self.targets:
            t.set_html(html)


if __name__ == "__main__":
    raise SystemExit(main())
