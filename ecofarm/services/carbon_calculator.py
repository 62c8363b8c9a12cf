"""Farm carbon footprint estimation.

Emission factors (kg CO2e per unit):
- Fertilizer: 1.3 per kg
- Diesel: 2.68 per litre
- Grid electricity: 0.82 per kWh
"""

from typing import Dict, List

from ecofarm.models.farm import CarbonRequest, CarbonResult

FERTILIZER_FACTOR = 1.3
DIESEL_FACTOR = 2.68
ELECTRICITY_FACTOR = 0.82

LOW_EMISSIONS_LIMIT = 100.0
MEDIUM_EMISSIONS_LIMIT = 500.0

# Per-source input levels above which a suggestion is made
FERTILIZER_SUGGESTION_KG = 50.0
DIESEL_SUGGESTION_LITRES = 30.0
ELECTRICITY_SUGGESTION_KWH = 200.0


def emissions_status(total_co2: float) -> str:
    if total_co2 < LOW_EMISSIONS_LIMIT:
        return "Low"
    if total_co2 < MEDIUM_EMISSIONS_LIMIT:
        return "Medium"
    return "High"


def _suggestions(request: CarbonRequest, by_source: Dict[str, float], status: str) -> List[str]:
    suggestions: List[str] = []

    if status == "High":
        dominant = max(by_source, key=lambda k: by_source[k])
        suggestions.append(
            f"Most emissions come from {dominant}; reduce it first."
        )

    if request.fertilizer > FERTILIZER_SUGGESTION_KG:
        suggestions.append(
            "Replace part of the chemical fertilizer with compost or organic manure "
            "and apply only what a soil test recommends."
        )
    if request.diesel > DIESEL_SUGGESTION_LITRES:
        suggestions.append(
            "Service tractors and pumps regularly, plan field routes and share "
            "machinery to cut diesel use."
        )
    if request.electricity > ELECTRICITY_SUGGESTION_KWH:
        suggestions.append(
            "Switch to solar-powered pumps and drip irrigation to lower electricity use."
        )

    if len(suggestions) == 0:
        suggestions.append("Your farm inputs are efficient. Keep it up!")

    return suggestions


def estimate_carbon_footprint(request: CarbonRequest) -> CarbonResult:
    """Estimate CO2e emissions from fertilizer, diesel and electricity use."""
    by_source = {
        "fertilizer": round(request.fertilizer * FERTILIZER_FACTOR, 2),
        "diesel": round(request.diesel * DIESEL_FACTOR, 2),
        "electricity": round(request.electricity * ELECTRICITY_FACTOR, 2),
    }
    total = round(sum(by_source.values()), 2)
    status = emissions_status(total)

    return CarbonResult(
        total_co2=total,
        status=status,
        suggestions=_suggestions(request, by_source, status),
        fertilizer_co2=by_source["fertilizer"],
        diesel_co2=by_source["diesel"],
        electricity_co2=by_source["electricity"],
    )
