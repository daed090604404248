from typing import Optional

PERIOD_NOUNS = {"weekly": "week", "monthly": "month", "yearly": "year"}

# ------------------------------
# Rule-based tips per category
# ------------------------------

CATEGORY_TIPS = {
    "food": "Swap one meat-based meal for a plant-based one this week.",
    "beverage": "Carry a reusable bottle or cup instead of buying single-use drinks.",
    "clothing": "Try second-hand or repairing before buying new clothes.",
    "electronics": "Keep devices longer and buy refurbished when you upgrade.",
    "transportation": "Walk, cycle or take transit for short trips.",
    "household": "Choose durable household items and refill where possible.",
    "packaging": "Pick products with less or recyclable packaging.",
    "other": "Reduce waste and save energy where possible.",
}
DEFAULT_TIP = "Start scanning everyday items to find your biggest wins."


def comparison_text(improvement_percent: int, period: str, total_scans: int) -> str:
    """
    Describe the change against the previous period. Uses the signed
    improvement, so a worsening trend is still reported here.
    """
    noun = PERIOD_NOUNS.get(period, "period")
    if improvement_percent > 0:
        return f"You're {improvement_percent}% better than last {noun}!"
    if improvement_percent < 0:
        return f"{abs(improvement_percent)}% increase from last {noun}"
    if total_scans > 0:
        return "Same as last period"
    return "Start scanning to track progress!"


def category_tip(category: Optional[str]) -> str:
    if not category:
        return DEFAULT_TIP
    return CATEGORY_TIPS.get(category.lower(), CATEGORY_TIPS["other"])
