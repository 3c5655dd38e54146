"""Remedy effectiveness bookkeeping as a pure state transition."""

from __future__ import annotations

from ..schemas import FeedbackEvent, RemedyStats

EFFECTIVENESS_STEP = 3.0


def apply_feedback(stats: RemedyStats, event: FeedbackEvent) -> RemedyStats:
    """Return the counters after one piece of feedback; ``stats`` is left as is.

    Effectiveness moves by a fixed step and is clipped to [0, 100]. The
    success rate is the share of positive answers, as a percentage.
    """
    positive = stats.positive_feedback + (1 if event.effective else 0)
    negative = stats.negative_feedback + (0 if event.effective else 1)
    step = EFFECTIVENESS_STEP if event.effective else -EFFECTIVENESS_STEP
    return stats.model_copy(update={
        "usage_count": stats.usage_count + 1,
        "positive_feedback": positive,
        "negative_feedback": negative,
        "success_rate": 100.0 * positive / (positive + negative),
        "effectiveness": min(100.0, max(0.0, stats.effectiveness + step)),
        "last_used": event.timestamp,
    })
