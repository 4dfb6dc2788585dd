from typing import List, Optional

from courtside.schemas.common import Record


class NbaTeamRef(Record):
    id: int
    abbreviation: Optional[str] = None
    full_name: Optional[str] = None


class NbaGame(Record):
    id: int
    date: str  # YYYY-MM-DD
    season: Optional[int] = None
    status: Optional[str] = None
    home_team: NbaTeamRef
    visitor_team: NbaTeamRef


class PlayerGames(Record):
    player_key: str
    name: str
    team_abbr: Optional[str] = None
    games: int = 0
    game_dates: List[str] = []
