from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from categories import GoalStatus
from database import Goal
from queries import family_user_ids
from schemas import GoalSnapshot


def get_user_goals(db: Session, user_id: int) -> List[Goal]:
    """Goals of everyone in the user's family, active ones first, nearest deadline first."""
    member_ids = family_user_ids(db, user_id)
    return (
        db.query(Goal)
        .filter(Goal.user_id.in_(member_ids))
        .order_by(Goal.status, Goal.deadline, Goal.id)
        .all()
    )


def months_until(deadline: datetime, now: datetime) -> int:
    return max(1, (deadline.year - now.year) * 12 + (deadline.month - now.month))


def goal_snapshots(goals: Iterable[Goal], now: datetime, viewer_id: Optional[int] = None, limit: int = 3) -> List[GoalSnapshot]:
    """
    Dashboard view of the first ``limit`` active goals.

    A goal owned by another family member than ``viewer_id`` is marked shared.
    """
    snapshots = []
    for goal in goals:
        if goal.status != GoalStatus.ACTIVE:
            continue
        remaining = max((goal.target_amount or 0.0) - (goal.current_amount or 0.0), 0.0)
        snapshots.append(
            GoalSnapshot(
                id=goal.id,
                title=goal.name,
                current=float(goal.current_amount or 0.0),
                target=float(goal.target_amount or 0.0),
                due_date=goal.deadline.isoformat(),
                is_shared=viewer_id is not None and goal.user_id != viewer_id,
                icon=goal.icon,
                color=goal.color,
                category=goal.category,
                required_monthly=remaining / months_until(goal.deadline, now),
            )
        )
        if len(snapshots) >= limit:
            break
    return snapshots
