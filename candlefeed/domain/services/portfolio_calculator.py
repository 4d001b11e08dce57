"""
CandleFeed – Domain Service: Portfolio Calculator
=================================================
Suma amount × price de posiciones y precios suministrados desde fuera.

SANEAMIENTO (igual que la API de wallet):
- amount no parseable → 0
- amount negativo     → 0
- símbolo fuera de la whitelist → ignorado
- precio ausente      → 0
"""

from __future__ import annotations

import math
from typing import Any, Collection, Dict, Mapping, Optional

from candlefeed.domain.value_objects.portfolio_valuation import PortfolioValuation


def sanitize_amount(value: Any) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return max(0.0, amount)


def value_holdings(
    holdings: Mapping[str, Any],
    prices: Mapping[str, float],
    allowed: Optional[Collection[str]] = None,
) -> PortfolioValuation:
    positions: Dict[str, float] = {}
    for symbol, raw_amount in holdings.items():
        if allowed is not None and symbol not in allowed:
            continue
        amount = sanitize_amount(raw_amount)
        price = sanitize_amount(prices.get(symbol, 0.0))
        positions[symbol] = amount * price
    return PortfolioValuation(total=sum(positions.values()), positions=positions)
