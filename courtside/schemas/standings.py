from typing import Optional

from courtside.schemas.common import Record, StatBag


class OutcomeTotals(Record):
    wins: int = 0
    losses: int = 0
    ties: int = 0
    percentage: Optional[float] = None


class StandingsEntry(Record):
    team_key: str
    name: Optional[str] = None
    rank: Optional[int] = None
    outcome_totals: OutcomeTotals = OutcomeTotals()
    games_back: str = "-"
    playoff_seed: Optional[int] = None
    stats: StatBag = {}
