from __future__ import annotations

from fieldpress.storage import slug_from_name


def test_slug_sanitization() -> None:
    slug = slug_from_name("Budget / Planner: 2025!.pdf")
    assert slug == "budget-planner-2025"
