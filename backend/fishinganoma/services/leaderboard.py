from typing import Any, Dict, List

from fishinganoma import db
from fishinganoma.models import LeaderboardEntry

INSERTED = 'inserted'
UPDATED = 'updated'
UNCHANGED = 'unchanged'


def submit_score(name: str, score: int) -> str:
    """Record a score for ``name`` if it beats the stored one.

    Inserts a row for an unknown name, raises the stored score only when the
    new one is strictly greater, and otherwise leaves the row untouched.
    Returns which of the three happened. Callers validate the payload first;
    database errors propagate after the session is rolled back.
    """
    try:
        entry = LeaderboardEntry.query.filter_by(name=name).first()
        if entry is None:
            db.session.add(LeaderboardEntry(name=name, score=score))
            result = INSERTED
        elif score > entry.score:
            entry.score = score
            db.session.add(entry)
            result = UPDATED
        else:
            return UNCHANGED
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return result


def top_scores(limit: int = 5) -> List[Dict[str, Any]]:
    """Highest scores first, projected to name and score."""
    rows = (
        LeaderboardEntry.query
        .order_by(LeaderboardEntry.score.desc(), LeaderboardEntry.id.asc())
        .limit(limit)
        .all()
    )
    return [row.to_dict() for row in rows]


def reset_leaderboard() -> None:
    LeaderboardEntry.__table__.drop(db.engine, checkfirst=True)
    LeaderboardEntry.__table__.create(db.engine)
