"""
Service container for dependency injection and initialization.

Usage:
    container = ServiceContainer(ServiceConfig(db_path="arena.db"))
    container.initialize()

    market = container.market_service
    market.place_bet("debate-1", "session-abc", "pro", 50)
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import config
from domain.models.market import Odds
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

logger = logging.getLogger("arena.infrastructure.container")


@dataclass
class RepositoryContainer:
    """Container for all repositories."""

    profile: ProfileRepository | None = None
    vote: VoteRepository | None = None
    model: ModelRepository | None = None
    debate: DebateRepository | None = None


@dataclass
class ServiceConfig:
    """Configuration for service initialization. Defaults come from config.py."""

    # Database
    db_path: str = field(default_factory=lambda: config.DB_PATH)

    # Economy settings
    starting_points: int = field(default_factory=lambda: config.STARTING_DEBATE_POINTS)
    min_wager: int = field(default_factory=lambda: config.MIN_WAGER)
    max_wager: int = field(default_factory=lambda: config.MAX_WAGER)
    history_limit: int = field(default_factory=lambda: config.BETTING_HISTORY_DEFAULT_LIMIT)

    # Odds settings
    house_edge: float = field(default_factory=lambda: config.HOUSE_EDGE)
    min_odds: float = field(default_factory=lambda: config.MIN_ODDS)
    default_odds: Odds = field(
        default_factory=lambda: Odds(
            pro=config.DEFAULT_ODDS_PRO, con=config.DEFAULT_ODDS_CON, tie=config.DEFAULT_ODDS_TIE
        )
    )
    empty_side_odds: Odds = field(
        default_factory=lambda: Odds(
            pro=config.EMPTY_SIDE_ODDS_PRO_CON,
            con=config.EMPTY_SIDE_ODDS_PRO_CON,
            tie=config.EMPTY_SIDE_ODDS_TIE,
        )
    )

    # Superforecaster badge
    superforecaster_min_bets: int = field(default_factory=lambda: config.SUPERFORECASTER_MIN_BETS)
    superforecaster_min_accuracy: float = field(
        default_factory=lambda: config.SUPERFORECASTER_MIN_ACCURACY
    )
    crowd_winner_min_votes: int = field(default_factory=lambda: config.CROWD_WINNER_MIN_VOTES)

    # Rating settings
    initial_rating: float = field(default_factory=lambda: config.INITIAL_RATING)
    initial_rd: float = field(default_factory=lambda: config.INITIAL_RD)
    initial_volatility: float = field(default_factory=lambda: config.INITIAL_VOLATILITY)
    controversy_threshold: float = field(default_factory=lambda: config.CONTROVERSY_THRESHOLD)
    batch_window_hours: int = field(default_factory=lambda: config.RATING_BATCH_WINDOW_HOURS)
    ratings_enabled: bool = field(default_factory=lambda: config.RATINGS_ENABLED)


class ServiceContainer:
    """
    Central container for all application services.

    Handles initialization order and dependency injection.
    """

    def __init__(self, service_config: ServiceConfig | None = None):
        self.config = service_config or ServiceConfig()
        self._initialized = False
        self._repos = RepositoryContainer()
        self._services: dict[str, Any] = {}

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """
        Initialize schema, repositories and services in dependency order.

        Idempotent: calling it again has no effect.
        """
        if self._initialized:
            logger.debug("ServiceContainer already initialized, skipping")
            return

        logger.info("Initializing ServiceContainer...")
        self._init_database()
        self._init_repositories()
        self._init_market_services()
        self._init_rating_services()
        self._init_resolution_service()
        self._initialized = True
        logger.info("ServiceContainer initialization complete")

    def _init_database(self) -> None:
        logger.debug(f"Initializing database at {self.config.db_path}")
        SchemaManager(self.config.db_path).initialize()

    def _init_repositories(self) -> None:
        db_path = self.config.db_path
        self._repos.profile = ProfileRepository(db_path)
        self._repos.vote = VoteRepository(db_path)
        self._repos.model = ModelRepository(db_path)
        self._repos.debate = DebateRepository(db_path)

    def _init_market_services(self) -> None:
        cfg = self.config
        self._services["user_stats"] = UserStatsService(
            profile_repo=self._repos.profile,
            vote_repo=self._repos.vote,
            starting_points=cfg.starting_points,
            history_limit=cfg.history_limit,
        )
        self._services["market"] = PredictionMarketService(
            vote_repo=self._repos.vote,
            profile_repo=self._repos.profile,
            debate_repo=self._repos.debate,
            user_stats_service=self._services["user_stats"],
            odds_calculator=OddsCalculator(
                house_edge=cfg.house_edge,
                min_odds=cfg.min_odds,
                default_odds=cfg.default_odds,
                empty_side_odds=cfg.empty_side_odds,
            ),
            min_wager=cfg.min_wager,
            max_wager=cfg.max_wager,
            superforecaster_min_bets=cfg.superforecaster_min_bets,
            superforecaster_min_accuracy=cfg.superforecaster_min_accuracy,
            crowd_winner_min_votes=cfg.crowd_winner_min_votes,
        )

    def _init_rating_services(self) -> None:
        cfg = self.config
        self._services["rating"] = RatingService(
            model_repo=self._repos.model,
            debate_repo=self._repos.debate,
            rating_system=ArenaRatingSystem(
                initial_rating=cfg.initial_rating,
                initial_rd=cfg.initial_rd,
                initial_volatility=cfg.initial_volatility,
            ),
            controversy_threshold=cfg.controversy_threshold,
            crowd_volatility=cfg.initial_volatility,
            batch_window_hours=cfg.batch_window_hours,
        )

    def _init_resolution_service(self) -> None:
        self._services["resolution"] = DebateResolutionService(
            debate_repo=self._repos.debate,
            market_service=self._services["market"],
            rating_service=self._services["rating"],
            ratings_enabled=self.config.ratings_enabled,
            crowd_winner_min_votes=self.config.crowd_winner_min_votes,
        )

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def profile_repo(self) -> ProfileRepository:
        return self._repos.profile

    @property
    def vote_repo(self) -> VoteRepository:
        return self._repos.vote

    @property
    def model_repo(self) -> ModelRepository:
        return self._repos.model

    @property
    def debate_repo(self) -> DebateRepository:
        return self._repos.debate

    @property
    def user_stats_service(self) -> UserStatsService | None:
        return self._services.get("user_stats")

    @property
    def market_service(self) -> PredictionMarketService | None:
        return self._services.get("market")

    @property
    def rating_service(self) -> RatingService | None:
        return self._services.get("rating")

    @property
    def resolution_service(self) -> DebateResolutionService | None:
        return self._services.get("resolution")
