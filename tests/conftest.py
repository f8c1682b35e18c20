"""
Pytest fixtures for tests.

Performance optimization: the schema and all migrations are built once per
session into a template database, and each test gets a file copy of it
instead of re-initializing the schema.
"""

import shutil

import pytest

from domain.services.odds_service import OddsCalculator
from infrastructure.schema_manager import SchemaManager
from rating_system import ArenaRatingSystem
from repositories.debate_repository import DebateRepository
from repositories.model_repository import ModelRepository
from repositories.profile_repository import ProfileRepository
from repositories.vote_repository import VoteRepository
from services.debate_resolution_service import DebateResolutionService
from services.prediction_market_service import PredictionMarketService
from services.rating_service import RatingService
from services.user_stats_service import UserStatsService


# =============================================================================
# CENTRALIZED CONSTANTS
# =============================================================================

PRO_MODEL_ID = "gpt-4o"
CON_MODEL_ID = "claude-3-5-sonnet"
TEST_DEBATE_ID = "debate-1"


@pytest.fixture(scope="session")
def _schema_template_path(tmp_path_factory):
    """Create a schema template database once per test session."""
    template_dir = tmp_path_factory.mktemp("schema_template")
    template_path = str(template_dir / "template.db")
    SchemaManager(template_path).initialize()
    yield template_path


@pytest.fixture
def temp_db_path(tmp_path):
    """Create a temporary database path (no schema)."""
    path = str(tmp_path / "temp.db")
    yield path


@pytest.fixture
def repo_db_path(_schema_template_path, tmp_path):
    """
    Create a temporary database with initialized schema for repository tests.

    Fast: file copy instead of schema initialization.
    """
    test_db_path = str(tmp_path / "test.db")
    shutil.copy2(_schema_template_path, test_db_path)
    yield test_db_path


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def profile_repository(repo_db_path):
    return ProfileRepository(repo_db_path)


@pytest.fixture
def vote_repository(repo_db_path):
    return VoteRepository(repo_db_path)


@pytest.fixture
def model_repository(repo_db_path):
    return ModelRepository(repo_db_path)


@pytest.fixture
def debate_repository(repo_db_path):
    return DebateRepository(repo_db_path)


@pytest.fixture
def models(model_repository):
    """Register the two debating models used across tests."""
    model_repository.add(PRO_MODEL_ID, "GPT-4o", "openai")
    model_repository.add(CON_MODEL_ID, "Claude 3.5 Sonnet", "anthropic")
    return PRO_MODEL_ID, CON_MODEL_ID


@pytest.fixture
def debate(debate_repository, models):
    """An in-progress debate between the two test models."""
    pro_id, con_id = models
    debate_repository.add(
        TEST_DEBATE_ID,
        pro_id,
        con_id,
        topic="AI should be regulated like aviation",
        status="in_progress",
    )
    return debate_repository.get_by_id(TEST_DEBATE_ID)


@pytest.fixture
def make_debate(debate_repository, models):
    """Factory for additional in-progress debates between the test models."""
    pro_id, con_id = models

    def _make(debate_id: str, topic: str | None = None):
        debate_repository.add(debate_id, pro_id, con_id, topic=topic or debate_id, status="in_progress")
        return debate_repository.get_by_id(debate_id)

    return _make


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def rating_system():
    return ArenaRatingSystem()


@pytest.fixture
def user_stats_service(profile_repository, vote_repository):
    return UserStatsService(profile_repository, vote_repository, starting_points=1000, history_limit=20)


@pytest.fixture
def market_service(vote_repository, profile_repository, debate_repository, user_stats_service):
    """Prediction market with the documented defaults pinned (independent of env)."""
    return PredictionMarketService(
        vote_repo=vote_repository,
        profile_repo=profile_repository,
        debate_repo=debate_repository,
        user_stats_service=user_stats_service,
        odds_calculator=OddsCalculator(),
        min_wager=10,
        max_wager=500,
        superforecaster_min_bets=10,
        superforecaster_min_accuracy=0.80,
        crowd_winner_min_votes=10,
    )


@pytest.fixture
def rating_service(model_repository, debate_repository, rating_system):
    return RatingService(
        model_repository,
        debate_repository,
        rating_system=rating_system,
        controversy_threshold=150.0,
        crowd_volatility=0.06,
        batch_window_hours=24,
    )


@pytest.fixture
def resolution_service(debate_repository, market_service, rating_service):
    return DebateResolutionService(
        debate_repository,
        market_service,
        rating_service,
        ratings_enabled=True,
        crowd_winner_min_votes=10,
    )
