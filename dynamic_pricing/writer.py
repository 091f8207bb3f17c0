from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .config import PricingConfig
from .formatting import format_price
from .models import ONE_TIME, SchemeKey
from .pricing import bulk_discount_percent, compose_price, subscription_discount_percent
from .render import totals_for


LADDER_FIELDS = [
    "quantity",
    "bulkPercent",
    "subscriptionPercent",
    "unitPrice",
    "totalPrice",
    "totalSavings",
    "display",
]


def ladder_rows(
    config: PricingConfig,
    quantities: Sequence[int],
    scheme: Optional[SchemeKey] = ONE_TIME,
    is_active: bool = False,
) -> List[Dict[str, Any]]:
    """One row per quantity, priced with the given subscription selection."""
    sub = subscription_discount_percent(
        is_active, scheme, config.subscription_schemes, config.subscription_discount
    )
    rows: List[Dict[str, Any]] = []
    for qty in quantities:
        bulk = bulk_discount_percent(
            qty, config.discount_tiers, config.bulk_discounts_enabled
        )
        result = compose_price(config.base_price, config.regular_price, sub, bulk)
        totals = totals_for(result, qty)
        rows.append(
            {
                "quantity": qty,
                "bulkPercent": bulk,
                "subscriptionPercent": sub,
                "unitPrice": round(result.final_unit_price, config.currency_format.decimals),
                "totalPrice": round(totals.final, config.currency_format.decimals),
                "totalSavings": round(max(0.0, totals.savings), config.currency_format.decimals),
                "display": format_price(totals.final, config.currency_format),
            }
        )
    return rows


class BaseWriter:
    def write_many(self, rows: Iterable[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> "BaseWriter":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class CSVWriter(BaseWriter):
    def __init__(self, path: Path) -> None:
        self.file = Path(path).open("w", newline="", encoding="utf-8")
        self.writer = csv.DictWriter(self.file, fieldnames=LADDER_FIELDS)
        self.writer.writeheader()

    def write_many(self, rows: Iterable[Dict[str, Any]]) -> None:
        self.writer.writerows(rows)

    def close(self) -> None:
        self.file.close()


class NDJSONWriter(BaseWriter):
    def __init__(self, path: Path) -> None:
        self.file = Path(path).open("w", encoding="utf-8")

    def write_many(self, rows: Iterable[Dict[str, Any]]) -> None:
        for r in rows:
            self.file.write(json.dumps(r, ensure_ascii=False) + "\n")

    def close(self) -> None:
        self.file.close()


def open_writer(path: Path, fmt: str) -> BaseWriter:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return CSVWriter(path) if fmt == "csv" else NDJSONWriter(path)
