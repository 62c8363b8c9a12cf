"""Season cost and profit estimation."""

from ecofarm.models.farm import ProfitRequest, ProfitResult


def estimate_profit(request: ProfitRequest) -> ProfitResult:
    total_cost = round(
        request.seed_cost + request.fertilizer_cost + request.labor_cost + request.water_cost,
        2,
    )
    total_income = round(request.expected_income, 2)
    profit = round(total_income - total_cost, 2)

    margin = round(profit / total_income * 100, 2) if total_income > 0 else 0.0

    if profit > 0:
        status = "Profitable"
    elif profit == 0:
        status = "Break-even"
    else:
        status = "Loss"

    return ProfitResult(
        total_cost=total_cost,
        total_income=total_income,
        profit=profit,
        profit_margin=margin,
        status=status,
    )
