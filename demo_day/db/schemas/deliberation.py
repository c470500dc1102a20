# db/schemas/deliberation.py
import uuid
from datetime import datetime
from typing import Dict, List, Optional
from demo_day.db.schemas._base import OrmModel
from demo_day.db.schemas.prize import PrizeRead
from demo_day.db.schemas.score import CategoryScore
from demo_day.db.schemas.team import TeamRead

class TeamScoreSummary(OrmModel):
    team_id: uuid.UUID
    average_score: float = 0.0
    judge_count: int = 0

class DeliberationCandidate(TeamScoreSummary):
    team_name: str
    track: Optional[str] = None
    project_url: Optional[str] = None

class PrizeCard(OrmModel):
    prize: PrizeRead
    submission_count: int
    candidates: List[DeliberationCandidate]

class DeliberationView(OrmModel):
    event_id: uuid.UUID
    scoring_locked_at: Optional[datetime] = None
    prizes: List[PrizeCard]

class TeamRanking(OrmModel):
    team: TeamRead
    average_score: float
    judge_count: int
    category_averages: Dict[str, float]

class CategoryRankingRow(OrmModel):
    team: TeamRead
    category_average: float
    judge_count: int

class JudgeScoreLine(OrmModel):
    team_id: uuid.UUID
    team_name: str
    total_score: float
    category_scores: List[CategoryScore]

class JudgeBreakdown(OrmModel):
    judge_id: uuid.UUID
    judge_name: str
    is_admin: bool
    teams_scored: int
    scores: List[JudgeScoreLine]

class EventRankings(OrmModel):
    categories: List[str]
    team_rankings: List[TeamRanking]
    category_rankings: Dict[str, List[CategoryRankingRow]]
    judge_breakdown: List[JudgeBreakdown]
