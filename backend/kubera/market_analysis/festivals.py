"""
Festival calendar for promotional context.

Festival sales are high-competition periods: buyers are active and
competitors run aggressive promotions. The detector checks a date against a
static calendar of named ranges (month/day, year ignored) and reports the
first active festival.

The date is always passed in by the caller so results are reproducible.

Usage:
    from datetime import date
    from kubera.market_analysis.festivals import check_festival_context

    context = check_festival_context(date.today())
    if context.is_active_festival:
        print(context.festival_name)
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from .models import (
    ActionableRecommendation,
    Category,
    Confidence,
    FestivalContext,
    PricingZone,
    Zone,
)


FESTIVAL_STRATEGY = (
    "Festival season = high competition. Consider aggressive offers, "
    "limited-time deals, or bundle promotions."
)


@dataclass(frozen=True)
class FestivalWindow:
    """A named sale window, inclusive on both ends, within one calendar year."""
    name: str
    start_month: int
    start_day: int
    end_month: int
    end_day: int

    def contains(self, month: int, day: int) -> bool:
        after_start = month > self.start_month or (
            month == self.start_month and day >= self.start_day
        )
        before_end = month < self.end_month or (
            month == self.end_month and day <= self.end_day
        )
        return after_start and before_end


FESTIVAL_CALENDAR: tuple[FestivalWindow, ...] = (
    FestivalWindow("Republic Day Sale", 1, 20, 1, 31),
    FestivalWindow("Holi Sale", 3, 15, 3, 25),
    FestivalWindow("Summer Sale", 4, 1, 5, 31),
    FestivalWindow("Independence Day Sale", 8, 10, 8, 20),
    FestivalWindow("Diwali/Festive Season", 10, 1, 11, 15),
    FestivalWindow("Year-End Sale", 12, 15, 12, 31),
)


def check_festival_context(
    today: date,
    calendar: tuple[FestivalWindow, ...] = FESTIVAL_CALENDAR,
) -> FestivalContext:
    """Return the first festival window containing ``today``, if any."""
    for window in calendar:
        if window.contains(today.month, today.day):
            return FestivalContext(
                is_active_festival=True,
                festival_name=window.name,
                festival_strategy=FESTIVAL_STRATEGY,
            )
    return FestivalContext(is_active_festival=False)


def build_festival_recommendation(
    festival: FestivalContext,
    zone: PricingZone,
    priority: int = 3,
) -> Optional[ActionableRecommendation]:
    """Festival-category action for an active festival; None otherwise."""
    if not festival.is_active_festival:
        return None

    if zone.zone == Zone.OVERPRICED:
        offer = "Run a limited-time festival offer to close the gap with competitors"
    elif zone.zone == Zone.UNDERPRICED:
        offer = "Use festival traffic to push volume with a bundle promotion"
    else:
        offer = "Add a festival bundle or bank offer to stand out at market price"

    return ActionableRecommendation(
        priority=priority,
        action=f"{festival.festival_name}: {offer}",
        reasoning=[
            f"{festival.festival_name} brings peak buyer activity and heavier comparison shopping.",
            "Competitors are likely running aggressive promotions during this window.",
            "Time-boxed offers capture festival demand without a permanent price change.",
        ],
        expected_impact="Higher festival-period conversion",
        confidence=Confidence.MEDIUM,
        category=Category.FESTIVAL,
        rule="FESTIVAL_PROMOTION",
    )
