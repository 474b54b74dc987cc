import logging
from datetime import datetime

from sqlalchemy.orm import Session

from dashboard import DEFAULT_INSIGHT, build_dashboard_summary, month_window
from goals import get_user_goals, goal_snapshots
from insights import generate_insights, pick_main_insight
from queries import DashboardInputs, load_dashboard_inputs
from schemas import DashboardSummary, MainInsight

logger = logging.getLogger(__name__)


def main_insight(inputs: DashboardInputs, now: datetime) -> MainInsight:
    """Insight on the signed-in member's own month so far; failures fall back to the neutral message."""
    start = month_window(now).start
    try:
        own = [t for t in inputs.transactions if t.user_id == inputs.user_id and start <= t.created_at <= now]
        subscriptions = [s for s in inputs.subscriptions if s.user_id == inputs.user_id]
        return pick_main_insight(generate_insights(own, subscriptions, now))
    except Exception:
        logger.exception("Failed to generate insights for user %s", inputs.user_id)
        return DEFAULT_INSIGHT


def dashboard_for_user(db: Session, user_id: int, now: datetime) -> DashboardSummary:
    """Load the family's data and build the summary as seen by ``user_id``."""
    inputs = load_dashboard_inputs(db, user_id, now)
    goals = goal_snapshots(get_user_goals(db, user_id), now, viewer_id=user_id)
    return build_dashboard_summary(
        inputs.transactions,
        inputs.subscriptions,
        inputs.profiles,
        now,
        installments=inputs.installments,
        users=inputs.users,
        goals=goals,
        insight=main_insight(inputs, now),
    )
