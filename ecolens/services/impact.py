from typing import Dict, Any

# --------------------------------------------------
# Reference footprints (grams CO2e)
# --------------------------------------------------

IDEAL_DAILY_FOOTPRINT = 11000        # 4 t/year target
IDEAL_ANNUAL_FOOTPRINT = 4000000     # 4 t
IDEAL_LIFETIME_FOOTPRINT = 320000000 # 4 t/year x 80 years

AVG_DAYS_PER_MONTH = 30.44

# Everyday equivalents (kg CO2e per unit)
EQUIVALENT_FACTORS = {
    "driving": (0.251, "km"),
    "flying": (0.255, "km"),
    "electricity": (0.475, "kWh"),
    "home_energy": (12.0, "days"),
}

# (upper bound in equivalent days, label, severity)
IMPACT_LEVELS = [
    (0.1, "Minimal Impact", "excellent"),
    (1, "Low Impact", "good"),
    (7, "Moderate Impact", "moderate"),
    (30, "High Impact", "high"),
    (90, "Very High Impact", "very-high"),
]
EXTREME_LEVEL = ("Extreme Impact", "extreme")

# --------------------------------------------------
# Formatting
# --------------------------------------------------

def format_number(value: float, default_decimals: int = 2) -> str:
    """Fewer decimals as the magnitude grows: 2 under 100, 1 under 1000, else 0."""
    magnitude = abs(value)
    if magnitude < 100:
        decimals = default_decimals
    elif magnitude < 1000:
        decimals = 1
    else:
        decimals = 0
    return f"{value:.{decimals}f}"


def format_carbon_footprint(grams: float) -> str:
    if grams < 1000:
        return f"{format_number(grams)}g CO₂e"
    return f"~{format_number(grams / 1000, 1)}kg CO₂e"

# --------------------------------------------------
# Impact metrics
# --------------------------------------------------

def _describe(days: float, annual_percent: float) -> str:
    if days < 0.1:
        return "Less than 2.4 hours of ideal carbon footprint"
    if days < 1:
        return f"Equivalent to {days * 24:.0f} hours of ideal carbon footprint"
    if days < 7:
        return f"Equivalent to {days:.1f} days of ideal carbon footprint"
    if days < 30:
        return (f"Equivalent to {days / 7:.1f} weeks of ideal carbon footprint "
                f"({annual_percent:.1f}% of annual budget)")
    if days < 90:
        return (f"Equivalent to {days / AVG_DAYS_PER_MONTH:.1f} months of ideal carbon footprint "
                f"({annual_percent:.1f}% of annual budget)")
    return (f"Equivalent to {days / 365:.1f} years of ideal carbon footprint "
            f"({annual_percent:.1f}% of annual budget)")


def impact_metrics(grams: float) -> Dict[str, Any]:
    """
    Place a footprint against an ideal personal carbon budget.

    Returns how many days, weeks and months of an ideal footprint the value
    amounts to, its share of the annual and lifetime budgets, and a label and
    severity bucket for display.
    """
    days = grams / IDEAL_DAILY_FOOTPRINT
    annual_percent = grams / IDEAL_ANNUAL_FOOTPRINT * 100

    label, severity = EXTREME_LEVEL
    for upper, level_label, level_severity in IMPACT_LEVELS:
        if days < upper:
            label, severity = level_label, level_severity
            break

    return {
        "equivalentDays": days,
        "equivalentWeeks": days / 7,
        "equivalentMonths": days / AVG_DAYS_PER_MONTH,
        "annualPercent": annual_percent,
        "lifetimePercent": grams / IDEAL_LIFETIME_FOOTPRINT * 100,
        "label": label,
        "severity": severity,
        "description": _describe(days, annual_percent),
    }


def equivalents(grams: float) -> Dict[str, Dict[str, Any]]:
    kg = grams / 1000
    return {
        name: {"value": round(kg / factor, 2), "unit": unit}
        for name, (factor, unit) in EQUIVALENT_FACTORS.items()
    }
