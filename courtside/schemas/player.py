from typing import List, Optional

from pydantic import BaseModel

from courtside.schemas.common import Record, StatBag


class Player(Record):
    key: str
    id: Optional[str] = None
    name: str
    team_abbr: Optional[str] = None
    team_name: Optional[str] = None
    display_position: Optional[str] = None
    eligible_positions: List[str] = []
    selected_position: Optional[str] = None
    status: Optional[str] = None  # INJ, O, DTD, GTD ...
    status_full: Optional[str] = None
    injury_note: Optional[str] = None
    percent_owned: Optional[float] = None
    on_waivers: bool = False
    image_url: Optional[str] = None
    stats: Optional[StatBag] = None


class StatLine(Record):
    """One player's or team's stat bag for a period (season, week, date)."""

    key: str
    period: str = "season"
    week: Optional[int] = None
    date: Optional[str] = None
    stats: StatBag = {}


class PlayerFilters(BaseModel):
    status: str = "A"  # A all available, FA, W, T, K
    position: Optional[str] = None
    sort: Optional[str] = None  # stat id, "AR", "OR", "PTS", "NAME"
    sort_type: Optional[str] = None  # season, lastweek, lastmonth, week, date
    sort_week: Optional[int] = None
    search: Optional[str] = None
    start: int = 0
    count: int = 25
    fetch_all: bool = False
    compound_sort: Optional[str] = None  # stocks, fgFtPct, ftPct3ptm; ordered after fetch
