"""
Dual-track rating engine: applies Glicko-2 updates after debates and serves
rating diagnostics and the model leaderboard.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone

from config import CONTROVERSY_THRESHOLD, INITIAL_VOLATILITY, RATING_BATCH_WINDOW_HOURS
from domain.models.debate import CON, PRO, TIE, Debate
from domain.models.debater_model import AI_QUALITY, CROWD, RATING_TRACKS, DebaterModel, RatingSnapshot
from domain.services import rating_diagnostics
from rating_system import ArenaRatingSystem
from repositories.interfaces import IDebateRepository, IModelRepository
from services import error_codes
from services.interfaces import IRatingService
from services.result import Result

logger = logging.getLogger("arena.services.rating")

LEADERBOARD_SORT_KEYS = (
    "win_rate",
    "crowd_rating",
    "ai_quality_rating",
    "total_debates",
    "controversy_index",
)


@dataclass
class LeaderboardEntry:
    """One model's standing, with both rating tracks and their diagnostics."""

    model_id: str
    name: str
    provider: str
    crowd_rating: float
    crowd_rd: float
    ai_quality_rating: float
    ai_quality_rd: float
    ai_quality_volatility: float
    total_debates: int
    wins: int
    losses: int
    ties: int
    win_rate: float  # percent, 1 decimal
    controversy_index: float
    is_controversial: bool
    charismatic_liar_index: float
    is_calibrated: bool


def _parse_dt(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RatingService(IRatingService):
    """
    Maintains crowd and AI-quality ratings for debating models.

    The crowd track follows the crowd verdict and the AI-quality track the
    judge's verdict. Each (model, track) update is applied and reported on
    its own, and a history row keyed on the debate makes every update
    exactly-once.
    """

    def __init__(
        self,
        model_repo: IModelRepository,
        debate_repo: IDebateRepository,
        rating_system: ArenaRatingSystem | None = None,
        controversy_threshold: float | None = None,
        crowd_volatility: float | None = None,
        batch_window_hours: int | None = None,
    ):
        self.model_repo = model_repo
        self.debate_repo = debate_repo
        self.rating_system = rating_system or ArenaRatingSystem()
        self.controversy_threshold = (
            controversy_threshold if controversy_threshold is not None else CONTROVERSY_THRESHOLD
        )
        # Crowd volatility is not stored, every crowd update starts from this
        self.crowd_volatility = crowd_volatility if crowd_volatility is not None else INITIAL_VOLATILITY
        self.batch_window_hours = (
            batch_window_hours if batch_window_hours is not None else RATING_BATCH_WINDOW_HOURS
        )

    # --- Rating lifecycle ---

    def initialize_model_rating(self, model_id: str) -> Result[DebaterModel]:
        """Reset both tracks of a model to the initial rating triple."""
        initial = self.rating_system.initial_snapshot()
        try:
            self.model_repo.reset_ratings(model_id, crowd=initial, ai_quality=initial)
        except ValueError as e:
            return Result.fail(str(e), code=error_codes.MODEL_NOT_FOUND)
        logger.info(f"Initialized ratings for model {model_id}")
        return Result.ok(self.model_repo.get_by_id(model_id))

    def get_rating(self, model_id: str, track: str) -> RatingSnapshot | None:
        model = self.model_repo.get_by_id(model_id)
        if model is None:
            return None
        return model.get_rating(track, crowd_volatility=self.crowd_volatility)

    def _pre_debate_snapshot(self, model: DebaterModel, track: str, debate: Debate) -> RatingSnapshot:
        """
        Rating a model brought into a debate on one track.

        If this debate was already applied for the model, the stored
        pre-debate values are returned so a retry prices the opponent
        identically. Otherwise the current rating is used, with RD grown
        for the time the model sat idle before the debate.
        """
        applied = self.model_repo.get_rating_for_debate(model.model_id, track, debate.debate_id)
        if applied:
            return applied[0]

        current = model.get_rating(track, crowd_volatility=self.crowd_volatility)
        last_debate_dt = _parse_dt(model.last_debate_at)
        if last_debate_dt is None:
            return current

        reference_dt = _parse_dt(debate.completed_at) or datetime.now(timezone.utc)
        days_since = max(0, (reference_dt - last_debate_dt).days)
        decayed_rd = self.rating_system.apply_rd_decay(current.rd, days_since)
        return RatingSnapshot(current.rating, decayed_rd, current.volatility)

    def _update_track(
        self,
        debate: Debate,
        pro_model: DebaterModel,
        con_model: DebaterModel,
        track: str,
        verdict: str,
        summary: dict,
    ) -> None:
        pro_before = self._pre_debate_snapshot(pro_model, track, debate)
        con_before = self._pre_debate_snapshot(con_model, track, debate)
        new_pro, new_con = self.rating_system.update_ratings_after_debate(pro_before, con_before, verdict)

        sides = (
            (pro_model.model_id, PRO, pro_before, con_before, new_pro),
            (con_model.model_id, CON, con_before, pro_before, new_con),
        )
        for model_id, side, before, opponent, after in sides:
            score = self.rating_system.score_for_side(side, verdict)
            expected = self.rating_system.expected_outcome(
                before.rating, before.rd, opponent.rating, opponent.rd
            )
            try:
                applied = self.model_repo.apply_rating_update(
                    model_id, track, debate.debate_id, before, after, score, expected
                )
            except Exception as e:
                logger.exception(f"{track} rating update failed for {model_id} in debate {debate.debate_id}")
                summary["failures"].append({"model_id": model_id, "step": track, "error": str(e)})
                continue

            if applied:
                summary["applied"].append({"model_id": model_id, "track": track})
                logger.info(
                    f"{track} rating for {model_id}: {before.rating:.1f} -> {after.rating:.1f} "
                    f"(rd {before.rd:.1f} -> {after.rd:.1f})"
                )
            else:
                summary["already_applied"].append({"model_id": model_id, "track": track})

    def _record_results(self, debate: Debate, summary: dict) -> None:
        # A model with a failed track keeps its old last_debate_at so the retry
        # still sees the idle time before this debate
        failed_models = {failure["model_id"] for failure in summary["failures"]}
        for model_id, side in ((debate.pro_model_id, PRO), (debate.con_model_id, CON)):
            if model_id in failed_models:
                logger.warning(f"Deferring {model_id} record for debate {debate.debate_id} until its ratings apply")
                continue
            if debate.winner == TIE:
                outcome = "tie"
            else:
                outcome = "win" if debate.winner == side else "loss"
            try:
                recorded = self.model_repo.record_debate_result(
                    model_id, debate.debate_id, outcome, completed_at=debate.completed_at
                )
            except Exception as e:
                logger.exception(f"Recording {outcome} failed for {model_id} in debate {debate.debate_id}")
                summary["failures"].append({"model_id": model_id, "step": "record", "error": str(e)})
                continue
            if recorded:
                summary["records"].append({"model_id": model_id, "outcome": outcome})

    def update_ratings(self, debate_id: str) -> Result[dict]:
        """
        Apply both tracks' rating updates and the win/loss/tie record for a debate.

        Safe to call repeatedly: updates already applied for this debate are
        skipped. A failure for one model does not stop the other.

        Returns:
            Result with a summary of applied, already applied and skipped
            updates; failed (code RATING_UPDATE_FAILED) if any sub-step failed
        """
        debate = self.debate_repo.get_by_id(debate_id)
        if debate is None:
            return Result.fail(f"Debate {debate_id} not found", code=error_codes.DEBATE_NOT_FOUND)
        if not debate.is_completed:
            return Result.fail(
                f"Debate {debate_id} is {debate.status}, not completed",
                code=error_codes.DEBATE_NOT_COMPLETED,
            )

        pro_model = self.model_repo.get_by_id(debate.pro_model_id)
        con_model = self.model_repo.get_by_id(debate.con_model_id)
        missing = [
            model_id
            for model_id, model in ((debate.pro_model_id, pro_model), (debate.con_model_id, con_model))
            if model is None
        ]
        if missing:
            logger.warning(f"Skipping ratings for debate {debate_id}: unknown models {missing}")
            return Result.fail(
                f"Models not found: {', '.join(missing)}", code=error_codes.MODEL_NOT_FOUND
            )

        summary = {
            "debate_id": debate_id,
            "applied": [],
            "already_applied": [],
            "skipped_tracks": [],
            "records": [],
            "failures": [],
        }

        verdicts = {CROWD: debate.crowd_winner, AI_QUALITY: debate.ai_judge_winner}
        for track in RATING_TRACKS:
            verdict = verdicts[track]
            if verdict is None:
                summary["skipped_tracks"].append(track)
                continue
            self._update_track(debate, pro_model, con_model, track, verdict, summary)

        if debate.winner is not None:
            self._record_results(debate, summary)

        if summary["failures"]:
            return Result.fail(
                f"{len(summary['failures'])} rating step(s) failed for debate {debate_id}",
                code=error_codes.RATING_UPDATE_FAILED,
                value=summary,
            )
        return Result.ok(summary)

    def run_batch_update(self, since: datetime | None = None) -> dict:
        """
        Run update_ratings for every debate completed since a cutoff.

        Args:
            since: Cutoff; defaults to batch_window_hours ago

        Returns:
            Dict with processed, succeeded and failed debate ids
        """
        if since is None:
            since = datetime.now(timezone.utc) - timedelta(hours=self.batch_window_hours)
        elif since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)

        debates = self.debate_repo.get_completed_since(since.isoformat())
        logger.info(f"Batch rating update: {len(debates)} debates completed since {since.isoformat()}")

        result = {"processed": 0, "succeeded": [], "failed": []}
        for debate in debates:
            result["processed"] += 1
            outcome = self.update_ratings(debate.debate_id)
            if outcome.success:
                result["succeeded"].append(debate.debate_id)
            else:
                logger.warning(f"Batch rating update failed for {debate.debate_id}: {outcome.error}")
                result["failed"].append(debate.debate_id)
        return result

    # --- Diagnostics ---

    def controversy_index(self, model_id: str) -> float | None:
        """|crowd - ai_quality| for a model, or None if it does not exist."""
        model = self.model_repo.get_by_id(model_id)
        if model is None:
            return None
        return rating_diagnostics.controversy_index(model.crowd_rating, model.ai_quality_rating)

    def charismatic_liar_index(self, model_id: str) -> float | None:
        model = self.model_repo.get_by_id(model_id)
        if model is None:
            return None
        return rating_diagnostics.charismatic_liar_index(model.crowd_rating, model.ai_quality_rating)

    def win_probability(self, model_id: str, opponent_id: str, track: str = CROWD) -> float | None:
        """Expected score of one model against another on a track."""
        model = self.get_rating(model_id, track)
        opponent = self.get_rating(opponent_id, track)
        if model is None or opponent is None:
            return None
        return self.rating_system.win_probability(model, opponent)

    def _to_entry(self, model: DebaterModel) -> LeaderboardEntry:
        controversy = rating_diagnostics.controversy_index(model.crowd_rating, model.ai_quality_rating)
        return LeaderboardEntry(
            model_id=model.model_id,
            name=model.name,
            provider=model.provider,
            crowd_rating=model.crowd_rating,
            crowd_rd=model.crowd_rd,
            ai_quality_rating=model.ai_quality_rating,
            ai_quality_rd=model.ai_quality_rd,
            ai_quality_volatility=model.ai_quality_volatility,
            total_debates=model.total_debates,
            wins=model.wins,
            losses=model.losses,
            ties=model.ties,
            win_rate=round(model.win_rate * 100, 1),
            controversy_index=controversy,
            is_controversial=controversy > self.controversy_threshold,
            charismatic_liar_index=rating_diagnostics.charismatic_liar_index(
                model.crowd_rating, model.ai_quality_rating
            ),
            is_calibrated=self.rating_system.is_calibrated(max(model.crowd_rd, model.ai_quality_rd)),
        )

    def get_leaderboard(
        self,
        sort_by: str = "crowd_rating",
        filter_controversial: bool = False,
        limit: int | None = None,
    ) -> list[LeaderboardEntry]:
        """
        Active models ranked by one metric, highest first.

        Args:
            sort_by: One of LEADERBOARD_SORT_KEYS
            filter_controversial: Only include controversial models
            limit: Maximum number of entries

        Raises:
            ValueError: If sort_by is not a supported key
        """
        if sort_by not in LEADERBOARD_SORT_KEYS:
            raise ValueError(f"Invalid sort key '{sort_by}'. Must be one of {', '.join(LEADERBOARD_SORT_KEYS)}")

        entries = [self._to_entry(model) for model in self.model_repo.get_all(active_only=True)]
        if filter_controversial:
            entries = [entry for entry in entries if entry.is_controversial]

        entries.sort(key=lambda entry: (-getattr(entry, sort_by), entry.name))
        if limit is not None:
            entries = entries[:limit]
        return entries

    def get_model_stats(self, model_id: str, history_limit: int = 20) -> dict | None:
        """Leaderboard fields for one model plus its recent rating history."""
        model = self.model_repo.get_by_id(model_id)
        if model is None:
            return None
        stats = asdict(self._to_entry(model))
        stats["crowd_uncertainty_pct"] = self.rating_system.get_rating_uncertainty_percentage(model.crowd_rd)
        stats["ai_quality_uncertainty_pct"] = self.rating_system.get_rating_uncertainty_percentage(
            model.ai_quality_rd
        )
        stats["last_debate_at"] = model.last_debate_at
        stats["rating_history"] = self.model_repo.get_rating_history(model_id, limit=history_limit)
        return stats
