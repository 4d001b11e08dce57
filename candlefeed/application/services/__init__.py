"""Application services - Carga histórica y suscripción en vivo."""
from candlefeed.application.services.historical_loader import HistoricalCandleLoader
from candlefeed.application.services.live_subscriber import (
    LiveUpdateSubscriber,
    SubscriberState,
)

__all__ = ["HistoricalCandleLoader", "LiveUpdateSubscriber", "SubscriberState"]
