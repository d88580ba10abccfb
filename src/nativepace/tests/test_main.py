"""Tests for the maintenance entry point."""
from datetime import timedelta

import pytest
from sqlalchemy.orm import Session

from nativepace.__main__ import build_parser, main
from nativepace.models.models import Pattern, User, UserPatternProgress
from nativepace.timeutils import utc_now


def test_parser_requires_command() -> None:
    """Test that a command is mandatory."""
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_due_command(db: Session, user: User, pattern: Pattern, capsys) -> None:
    """Test listing due patterns."""
    assert main(["due", str(user.id)]) == 0
    assert "No patterns due for review" in capsys.readouterr().out

    db.add(
        UserPatternProgress(
            user_id=user.id,
            pattern_id=pattern.id,
            times_practiced=1,
            next_review_at=utc_now() - timedelta(hours=1),
        )
    )
    db.commit()

    assert main(["due", str(user.id)]) == 0
    out = capsys.readouterr().out
    assert "1 pattern due for review" in out
    assert "Weak Forms: 1" in out


def test_stats_command(db: Session, user: User, capsys) -> None:
    """Test printing learner statistics."""
    assert main(["stats", str(user.id)]) == 0
    out = capsys.readouterr().out
    assert "Patterns learned: 0" in out
    assert "Current streak: 0" in out
    assert "Mastery by category:" in out
