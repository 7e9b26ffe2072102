"""Tests for festival detection."""
from datetime import date

import pytest

from kubera.market_analysis.festivals import (
    FESTIVAL_STRATEGY,
    FestivalWindow,
    build_festival_recommendation,
    check_festival_context,
)
from kubera.market_analysis.models import (
    Category,
    Confidence,
    FestivalContext,
    PricingZone,
    Severity,
    Zone,
)


@pytest.mark.parametrize("today, name", [
    (date(2026, 10, 15), "Diwali/Festive Season"),
    (date(2026, 1, 20), "Republic Day Sale"),
    (date(2026, 1, 31), "Republic Day Sale"),
    (date(2026, 11, 15), "Diwali/Festive Season"),
    (date(2026, 5, 31), "Summer Sale"),
    (date(2026, 12, 31), "Year-End Sale"),
])
def test_active_festival(today, name):
    """Dates inside a window, including both ends, are active."""
    context = check_festival_context(today)
    assert context.is_active_festival
    assert context.festival_name == name
    assert context.festival_strategy == FESTIVAL_STRATEGY


@pytest.mark.parametrize("today", [
    date(2026, 6, 1),
    date(2026, 2, 1),
    date(2026, 1, 19),
    date(2026, 11, 16),
])
def test_no_active_festival(today):
    """Dates outside every window are inactive."""
    context = check_festival_context(today)
    assert not context.is_active_festival
    assert context.festival_name is None
    assert context.to_dict() == {"isActiveFestival": False}


def test_year_is_ignored():
    """Windows repeat every year."""
    assert check_festival_context(date(2031, 10, 15)).festival_name == "Diwali/Festive Season"


def test_custom_calendar():
    """The calendar can be injected."""
    calendar = (FestivalWindow("Launch Week", 6, 1, 6, 7),)
    context = check_festival_context(date(2026, 6, 3), calendar=calendar)
    assert context.festival_name == "Launch Week"


def test_festival_recommendation_for_active_festival():
    """An active festival yields a Festival-category action."""
    festival = check_festival_context(date(2026, 10, 15))
    zone = PricingZone(Zone.OVERPRICED, Severity.MODERATE, Confidence.MEDIUM)

    rec = build_festival_recommendation(festival, zone)

    assert rec is not None
    assert rec.category == Category.FESTIVAL
    assert rec.confidence == Confidence.MEDIUM
    assert rec.rule == "FESTIVAL_PROMOTION"
    assert rec.priority == 3
    assert "Diwali/Festive Season" in rec.action
    assert rec.reasoning


def test_no_festival_recommendation_when_inactive():
    """No festival, no festival action."""
    zone = PricingZone(Zone.MARKET_ALIGNED, Severity.OPTIMAL, Confidence.HIGH)
    assert build_festival_recommendation(FestivalContext(is_active_festival=False), zone) is None
