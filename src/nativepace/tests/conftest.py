"""Test configuration."""
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Generator

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)

# Import after environment setup
from sqlalchemy.orm import Session

from nativepace.models.base import SessionLocal, drop_db, init_db
from nativepace.models.exercise_models import PatternCategory
from nativepace.models.models import Pattern, User

fake = Faker()

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """A fixed point in time."""
    return NOW


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    init_db()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        drop_db()


@pytest.fixture
def user(db: Session) -> User:
    """Create a test user."""
    user = User(email=fake.unique.email(), display_name=fake.name())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def pattern_factory(db: Session) -> Callable[..., Pattern]:
    """Create patterns with generated content."""
    def make_pattern(
        pattern_id: str,
        category: PatternCategory = PatternCategory.WEAK_FORMS,
        level: int = 1,
        order_index: int = 0,
    ) -> Pattern:
        pattern = Pattern(
            id=pattern_id,
            category=category,
            level=level,
            title=fake.sentence(nb_words=3),
            description=fake.paragraph(),
            phonetic_clear="/tuː/",
            phonetic_reduced="/tə/",
            example_sentence=fake.sentence(),
            example_transcription=fake.sentence(),
            tips=[fake.sentence(), fake.sentence()],
            difficulty=fake.random_int(min=1, max=5),
            order_index=order_index,
        )
        db.add(pattern)
        db.commit()
        db.refresh(pattern)
        return pattern

    return make_pattern


@pytest.fixture
def pattern(pattern_factory: Callable[..., Pattern]) -> Pattern:
    """Create a test pattern."""
    return pattern_factory("weak-form-to")
