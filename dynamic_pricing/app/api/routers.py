from __future__ import annotations

from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ...calculator import PriceCalculator, StaticSelector
from ...config import EmbeddedDefaults, PricingConfig, load_config
from ...page import scheme_key
from ...render import BufferTarget, Renderer, totals_for


router = APIRouter(prefix="/api", tags=["pricing"])


class Variation(BaseModel):
    display_price: Optional[Union[float, str]] = None
    display_regular_price: Optional[Union[float, str]] = None


class QuoteRequest(BaseModel):
    config: Dict[str, Any] = Field(..., description="Localized pricing data blob")
    quantity: Union[int, str] = 1
    scheme: Optional[str] = Field(
        None, description='Selected scheme key, "0" for one-time purchase'
    )
    subscribe: Optional[bool] = Field(
        None, description="Subscription switch state when it differs from the scheme"
    )
    variation: Optional[Variation] = None


class QuoteResponse(BaseModel):
    quantity: int
    subscription_active: bool
    subscription_percent: float
    bulk_percent: float
    final_unit_price: float
    original_unit_price: float
    savings_unit: float
    has_discount: bool
    total_price: float
    total_original_price: float
    total_savings: float
    price_html: str
    savings_text: str


@router.post("/quote", response_model=QuoteResponse)
def quote(req: QuoteRequest):
    if "basePrice" not in req.config and not req.config.get("isVariable"):
        raise HTTPException(
            status_code=400, detail="config needs basePrice or isVariable"
        )
    config = load_config(req.config)
    price_target, savings_target = BufferTarget(), BufferTarget()
    selector = StaticSelector()
    calc = PriceCalculator(
        config,
        Renderer(config.currency_format, price_target, savings_target),
        selector=selector,
    )
    calc.init()
    if req.variation is not None:
        calc.on_variation_found(req.variation.model_dump())
    calc.on_quantity_change(req.quantity)
    if req.scheme is not None or req.subscribe is not None:
        selector.choose(scheme_key(req.scheme), req.subscribe)
        calc.on_subscription_change()

    result = calc.calculate()
    totals = totals_for(result, calc.state.quantity)
    return QuoteResponse(
        quantity=calc.state.quantity,
        subscription_active=calc.state.is_subscription_active,
        subscription_percent=calc.subscription_percent(),
        bulk_percent=calc.bulk_percent(),
        final_unit_price=result.final_unit_price,
        original_unit_price=result.original_unit_price,
        savings_unit=result.savings_unit,
        has_discount=result.has_discount,
        total_price=totals.final,
        total_original_price=totals.original,
        total_savings=totals.savings,
        price_html=price_target.html,
        savings_text=savings_target.html,
    )


@router.get("/defaults")
def defaults():
    return PricingConfig.from_source(EmbeddedDefaults()).to_dict()
