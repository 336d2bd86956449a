from datetime import timedelta
from imagegen.models.generation import as_utc
from imagegen.workflows.generation import month_start

PERIODS = ("day", "week", "month", "all")
PROMPT_PREVIEW_LENGTH = 80


def period_start(period, now):
    """Start of the reporting window, or None for all time."""
    local = now.astimezone()
    if period == "day":
        return local.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "week":
        return local - timedelta(days=7)
    if period == "month":
        return month_start(now)
    if period == "all":
        return None
    raise ValueError(f"Unknown period: {period}. Use one of {', '.join(PERIODS)}")


def list_generations(ctx, limit=10):
    summary = []
    for gen in ctx.ledger.list_generations(limit):
        prompt = gen.prompt[:PROMPT_PREVIEW_LENGTH]
        if len(gen.prompt) > PROMPT_PREVIEW_LENGTH:
            prompt += "..."
        summary.append(
            {
                "id": gen.id,
                "prompt": prompt,
                "model": gen.model,
                "created_at": as_utc(gen.created_at).isoformat(),
                "cost": gen.cost,
                "selected": gen.is_selected,
                "public_url": gen.public_url,
            }
        )
    return {"count": len(summary), "generations": summary}


def get_costs(ctx, period="month"):
    since = period_start(period, ctx.clock())
    costs = ctx.ledger.get_costs(since=since)
    limit = ctx.config["BUDGET_MONTHLY_LIMIT"]

    response = {
        "period": period,
        "total": costs.total,
        "generation_count": costs.generation_count,
        "by_provider": costs.by_provider,
        "by_model": costs.by_model,
        "budget_limit": limit,
    }
    if period == "month":
        response["budget_remaining"] = max(0.0, limit - costs.total)
        response["budget_percent"] = (
            f"{costs.total / limit * 100:.1f}" if limit > 0 else None
        )
    return response
