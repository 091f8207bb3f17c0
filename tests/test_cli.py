from __future__ import annotations

import csv
import json

import pytest

from dynamic_pricing.cli import main, parse_range
from dynamic_pricing.config import load_config
from dynamic_pricing.writer import ladder_rows

from .test_page import RADIOS, page_html


CONFIG = {
    "basePrice": 10,
    "regularPrice": 10,
    "discountTiers": [
        {"min": 2, "max": 2, "discount": 5},
        {"min": 3, "max": 4, "discount": 10},
        {"min": 5, "max": "", "discount": 15},
    ],
    "bulkDiscountsEnabled": True,
    "subscriptionDiscount": 10,
    "currencyFormat": {"symbol": "€", "decimals": 2, "decimal_sep": ",", "thousand_sep": ".", "currency_pos": "right_space"},
}


def test_parse_range():
    assert parse_range("1-4") == [1, 2, 3, 4]
    assert parse_range("3") == [3]


def test_ladder_rows():
    rows = ladder_rows(load_config(CONFIG), [1, 2, 5])
    assert [r["bulkPercent"] for r in rows] == [0, 5, 15]
    assert rows[2]["totalPrice"] == 42.5
    assert rows[2]["display"] == "42,50 €"


def test_cli_with_config(tmp_path, capsys):
    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps(CONFIG), encoding="utf-8")
    out = tmp_path / "ladder.csv"
    code = main(
        [
            "--config", str(cfg),
            "--quantity", "3",
            "--scheme", "monthly",
            "--ladder", "1-5",
            "--out", str(out),
            "--list-tiers",
        ]
    )
    assert code == 0
    printed = capsys.readouterr().out
    assert "5 +: 15%" in printed
    assert "24,30 €" in printed
    assert "with bulk discount + subscription" in printed
    with out.open(encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    assert [r["quantity"] for r in rows] == ["1", "2", "3", "4", "5"]
    assert rows[0]["subscriptionPercent"] == "10.0"


def test_cli_with_page(tmp_path, capsys):
    page = tmp_path / "product.html"
    page.write_text(page_html(RADIOS), encoding="utf-8")
    rendered = tmp_path / "rendered.html"
    code = main(
        ["--page", str(page), "--quantity", "5", "--render-out", str(rendered)]
    )
    assert code == 0
    assert "85,00 €" in capsys.readouterr().out
    assert "85,00 €" in rendered.read_text(encoding="utf-8")


def test_cli_without_config(tmp_path):
    page = tmp_path / "plain.html"
    page.write_text("<html><body></body></html>", encoding="utf-8")
    assert main(["--page", str(page)]) == 2


def test_cli_rejects_bad_ladder(tmp_path, capsys):
    cfg = tmp_path / "cfg.json"
    cfg.write_text(json.dumps(CONFIG), encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(["--config", str(cfg), "--ladder", "abc"])
    assert exc.value.code == 2
    assert "invalid quantity range" in capsys.readouterr().err
