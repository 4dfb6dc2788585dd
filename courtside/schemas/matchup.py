from typing import Dict, List, Optional

from courtside.schemas.common import Record, StatBag

UPCOMING = "upcoming"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"

WIN = "win"
LOSS = "loss"
TIE = "tie"


class MatchupTeam(Record):
    key: str
    name: Optional[str] = None
    logo_url: Optional[str] = None
    points: Optional[float] = None
    projected_points: Optional[float] = None
    stats: StatBag = {}
    roster_adds: Optional[int] = None
    remaining_games: Optional[int] = None


class Matchup(Record):
    week: Optional[int] = None
    week_start: Optional[str] = None
    week_end: Optional[str] = None
    status: str = UPCOMING
    is_playoffs: bool = False
    teams: List[MatchupTeam] = []
    winner_team_key: Optional[str] = None
    is_tied: bool = False
    # category id -> win/loss/tie from the first team's side
    verdicts: Dict[str, str] = {}

    @property
    def is_bye(self) -> bool:
        return len(self.teams) < 2


class Scoreboard(Record):
    league_key: str
    week: Optional[int] = None
    matchups: List[Matchup] = []
