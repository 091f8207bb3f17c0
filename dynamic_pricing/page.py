from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Sequence

from selectolax.parser import HTMLParser, Node

from .calculator import PriceCalculator, parse_quantity
from .config import PricingConfig
from .models import ONE_TIME, SchemeKey, Selection
from .render import Renderer


log = logging.getLogger("dynamic_pricing.page")

CONFIG_VAR = "mkDynamicPricing"

WRAPPER_SEL = ".mk-dynamic-price-wrapper"
PRICE_SEL = ".mk-dynamic-price-amount"
SAVINGS_SEL = ".mk-dynamic-price-savings"
QTY_SEL = "input.qty"
TOGGLE_SEL = ".mk-subscription-toggle-input"
PROMPT_SEL = ".wcsatt-options-prompt-action-input"
SCHEME_RADIO_SEL = 'input[name^="convert_to_sub_"]'
SCHEME_SELECT_SEL = 'select[name^="convert_to_sub_dropdown"]'

# Raw control value for "one-time purchase".
ONE_TIME_VALUE = "0"


def _checked(node: Node) -> bool:
    return "checked" in node.attributes


def _set_checked(node: Node, on: bool) -> None:
    if on:
        node.attrs["checked"] = "checked"
    elif "checked" in node.attributes:
        del node.attrs["checked"]


def scheme_key(value: Optional[str]) -> Optional[SchemeKey]:
    """Map a raw control value to a scheme key or the one-time tag."""
    if value is None:
        return None
    value = value.strip()
    if value in ("", ONE_TIME_VALUE):
        return ONE_TIME
    return value


class HtmlRegion:
    """Render target backed by a selectolax node; replaces its children."""

    def __init__(self, node: Node) -> None:
        self.node = node

    def set_html(self, html: str) -> None:
        for child in list(self.node.iter(include_text=True)):
            child.decompose()
        if not html:
            return
        fragment = HTMLParser(f"<div>{html}</div>")
        wrapper = fragment.body.child
        for child in list(wrapper.iter(include_text=True)):
            self.node.insert_child(child)


# -- subscription selector adapters --------------------------------------


class ToggleSelector:
    """Custom on/off switch."""

    def __init__(self, tree: HTMLParser) -> None:
        self.tree = tree

    def is_present(self) -> bool:
        return self.tree.css_first(TOGGLE_SEL) is not None

    def current_selection(self) -> Selection:
        node = self.tree.css_first(TOGGLE_SEL)
        return Selection(key=None, is_active=bool(node is not None and _checked(node)))


class PromptSelector:
    """Prompt checkbox, or prompt radio pair where "yes" means subscribe."""

    def __init__(self, tree: HTMLParser) -> None:
        self.tree = tree

    def is_present(self) -> bool:
        return self.tree.css_first(PROMPT_SEL) is not None

    def current_selection(self) -> Selection:
        active = False
        for node in self.tree.css(PROMPT_SEL):
            kind = (node.attributes.get("type") or "").lower()
            if kind == "checkbox":
                active = _checked(node)
            elif kind == "radio" and _checked(node):
                active = (node.attributes.get("value") or "") == "yes"
        return Selection(key=None, is_active=active)


class SchemeGroupSelector:
    """Scheme radio group or dropdown; the selected value is the scheme key."""

    def __init__(self, tree: HTMLParser) -> None:
        self.tree = tree

    def is_present(self) -> bool:
        return (
            self.tree.css_first(SCHEME_RADIO_SEL) is not None
            or self.tree.css_first(SCHEME_SELECT_SEL) is not None
        )

    def selected_value(self) -> Optional[str]:
        for node in self.tree.css(SCHEME_RADIO_SEL):
            if _checked(node):
                return node.attributes.get("value") or ""
        select = self.tree.css_first(SCHEME_SELECT_SEL)
        if select is not None:
            options = select.css("option")
            chosen = [o for o in options if "selected" in o.attributes]
            option = chosen[0] if chosen else (options[0] if options else None)
            if option is not None:
                value = option.attributes.get("value")
                return value if value is not None else option.text(strip=True)
        return None

    def current_selection(self) -> Selection:
        key = scheme_key(self.selected_value())
        return Selection(key=key, is_active=key is not None and key is not ONE_TIME)


class PrioritySelector:
    """
    Combines control adapters. The active flag comes from the first present
    adapter in priority order; the scheme key always comes from the scheme
    group, since only that control carries one.
    """

    def __init__(self, adapters: Sequence[Any], scheme_group: Optional[SchemeGroupSelector] = None) -> None:
        self.adapters = list(adapters)
        self.scheme_group = scheme_group

    def current_selection(self) -> Selection:
        key = None
        if self.scheme_group is not None and self.scheme_group.is_present():
            key = self.scheme_group.current_selection().key
        for adapter in self.adapters:
            if adapter.is_present():
                return Selection(key=key, is_active=adapter.current_selection().is_active)
        return Selection(key=key, is_active=False)


# -- page ----------------------------------------------------------------


class ProductPage:
    def __init__(self, html: str) -> None:
        self.tree = HTMLParser(html)

    @property
    def html(self) -> str:
        return self.tree.html or ""

    def has_price_wrapper(self) -> bool:
        return self.tree.css_first(WRAPPER_SEL) is not None

    def _region(self, sel: str) -> Optional[HtmlRegion]:
        node = self.tree.css_first(sel)
        return HtmlRegion(node) if node is not None else None

    def price_region(self) -> Optional[HtmlRegion]:
        return self._region(PRICE_SEL)

    def savings_region(self) -> Optional[HtmlRegion]:
        return self._region(SAVINGS_SEL)

    def region_text(self, sel: str) -> str:
        node = self.tree.css_first(sel)
        return node.text(strip=True) if node is not None else ""

    def selector(self) -> PrioritySelector:
        group = SchemeGroupSelector(self.tree)
        return PrioritySelector(
            [ToggleSelector(self.tree), PromptSelector(self.tree), group],
            scheme_group=group,
        )

    # -- control mutations (what the browser would do on user input) --

    def quantity_value(self) -> Optional[str]:
        node = self.tree.css_first(QTY_SEL)
        return node.attributes.get("value") if node is not None else None

    def set_quantity(self, value: Any) -> None:
        node = self.tree.css_first(QTY_SEL)
        if node is not None:
            node.attrs["value"] = str(value)

    def check_scheme(self, value: str) -> bool:
        radios = self.tree.css(SCHEME_RADIO_SEL)
        if not any(r.attributes.get("value") == value for r in radios):
            return False
        found = False
        for r in radios:
            hit = not found and r.attributes.get("value") == value
            _set_checked(r, hit)
            found = found or hit
        return found

    def set_prompt(self, subscribe: bool) -> None:
        for node in self.tree.css(PROMPT_SEL):
            kind = (node.attributes.get("type") or "").lower()
            if kind == "checkbox":
                _set_checked(node, subscribe)
            elif kind == "radio":
                is_yes = (node.attributes.get("value") or "") == "yes"
                _set_checked(node, is_yes == subscribe)

    def set_subscription_toggle(self, on: bool) -> None:
        """Flip the custom toggle and move the scheme radio to match it."""
        toggle = self.tree.css_first(TOGGLE_SEL)
        if toggle is not None:
            _set_checked(toggle, on)
        radios = self.tree.css(SCHEME_RADIO_SEL)
        if on:
            subs = [r for r in radios if r.attributes.get("value") != ONE_TIME_VALUE]
            if subs:
                log.debug("Activating subscription radio: %s", subs[0].attributes.get("value"))
                self.check_scheme(subs[0].attributes.get("value") or "")
        elif any(r.attributes.get("value") == ONE_TIME_VALUE for r in radios):
            log.debug("Activating one-time option")
            self.check_scheme(ONE_TIME_VALUE)

    # -- embedded configuration --

    def embedded_config(self) -> Optional[Dict[str, Any]]:
        for script in self.tree.css("script"):
            txt = script.text() or ""
            if CONFIG_VAR in txt:
                data = extract_object(txt, txt.find(CONFIG_VAR))
                if data is not None:
                    return data
        return None


def extract_object(txt: str, from_idx: int = 0) -> Optional[Dict[str, Any]]:
    """Parse the first balanced ``{...}`` JSON object at or after ``from_idx``."""
    start = txt.find("{", max(0, from_idx))
    if start == -1:
        return None
    depth = 0
    in_str = False
    escaped = False
    end = start
    while end < len(txt):
        ch = txt[end]
        if in_str:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_str = False
        elif ch == '"':
            in_str = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                end += 1
                break
        end += 1
    try:
        data = json.loads(txt[start:end])
    except Exception:
        return None
    return data if isinstance(data, dict) else None



def attach_to_page(page: ProductPage, config: PricingConfig) -> Optional[PriceCalculator]:
    """Wire a calculator to the page's regions and controls.

    Returns None on pages without the price wrapper.
    """
    if not page.has_price_wrapper():
        log.debug("No %s found on page", WRAPPER_SEL)
        return None
    renderer = Renderer(
        config.currency_format,
        price_target=page.price_region(),
        savings_target=page.savings_region(),
    )
    calc = PriceCalculator(config, renderer, selector=page.selector())
    qty = page.quantity_value()
    if qty is not None:
        calc.state.quantity = parse_quantity(qty)
    calc.init()
    return calc
