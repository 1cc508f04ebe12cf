from datetime import datetime
from dateutil.relativedelta import relativedelta

# calendar steps; months clamp to the last day (Jan 31 -> Feb 29)
FREQUENCY_STEPS = {
    "daily": relativedelta(days=1),
    "weekly": relativedelta(weeks=1),
    "monthly": relativedelta(months=1),
    "quarterly": relativedelta(months=3),
}

def key_result_completion(kr) -> float:
    """Completion percentage (0-100) of one key result."""
    if kr.type == "Milestone":
        return 100.0 if kr.status == "Completed" else 0.0
    target = kr.target_value or 0
    if target <= 0:
        return 100.0 if kr.status == "Completed" else 0.0
    pct = (kr.current_value or 0) / target * 100
    return max(0.0, min(100.0, pct))

def objective_completion(key_results) -> float:
    krs = list(key_results)
    if not krs:
        return 0.0
    return round(sum(key_result_completion(kr) for kr in krs) / len(krs), 2)

def next_occurrence(due: datetime | None, frequency: str | None) -> datetime | None:
    if due is None or frequency not in FREQUENCY_STEPS:
        return due
    return due + FREQUENCY_STEPS[frequency]
