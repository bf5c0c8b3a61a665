LEVEL_VALUES = {"high": 3, "medium": 2, "low": 1}


def calculate_priority(impact: str | None, urgency: str | None) -> str:
    """
    Priority from impact x urgency on a 1-3 scale (missing counts as low).

    Computed by clients when filling in a ticket; the server stores whatever
    priority it is sent.
    """
    score = LEVEL_VALUES.get(impact or "", 1) * LEVEL_VALUES.get(urgency or "", 1)
    if score >= 7:
        return "urgent"
    if score >= 5:
        return "high"
    if score >= 3:
        return "medium"
    return "low"


def generate_ticket_preview(title: str, max_length: int = 50) -> str:
    if len(title) <= max_length:
        return title
    return f"{title[:max_length]}..."
