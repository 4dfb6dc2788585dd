from typing import List, Optional

from courtside.schemas.common import Record


class League(Record):
    key: str
    id: str
    name: str
    season: Optional[str] = None
    game_code: Optional[str] = None
    current_week: Optional[int] = None
    start_week: Optional[int] = None
    end_week: Optional[int] = None
    num_teams: Optional[int] = None
    scoring_type: Optional[str] = None
    is_active: bool = True
    logo_url: Optional[str] = None
    url: Optional[str] = None


class StatCategory(Record):
    id: str
    name: Optional[str] = None
    display_name: Optional[str] = None
    abbr: Optional[str] = None
    sort_direction: str = "desc"
    enabled: bool = True
    display_only: bool = False
    position_type: Optional[str] = None


class RosterSlot(Record):
    position: str
    count: int = 1
    position_type: Optional[str] = None
    is_starting: bool = True


class LeagueSettings(Record):
    league_key: str
    scoring_type: Optional[str] = None
    uses_faab: bool = False
    max_weekly_adds: Optional[int] = None
    trade_end_date: Optional[str] = None
    playoff_start_week: Optional[int] = None
    roster_positions: List[RosterSlot] = []
    categories: List[StatCategory] = []

    @property
    def enabled_categories(self) -> List[StatCategory]:
        return [c for c in self.categories if c.enabled]

    @property
    def scoring_categories(self) -> List[StatCategory]:
        """Enabled categories that decide a matchup (display-only ones excluded)."""
        return [c for c in self.categories if c.enabled and not c.display_only]
