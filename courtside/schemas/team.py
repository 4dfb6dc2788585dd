from typing import List, Optional

from courtside.schemas.common import Record
from courtside.schemas.player import Player


class Manager(Record):
    nickname: Optional[str] = None
    image_url: Optional[str] = None
    guid: Optional[str] = None


class Team(Record):
    key: str
    id: str
    name: str
    league_key: Optional[str] = None
    logo_url: Optional[str] = None
    url: Optional[str] = None
    is_owned: bool = False
    wins: int = 0
    losses: int = 0
    ties: int = 0
    rank: Optional[int] = None
    faab_balance: Optional[int] = None
    waiver_priority: Optional[int] = None
    number_of_moves: int = 0
    number_of_trades: int = 0
    managers: List[Manager] = []


class TeamWithRoster(Record):
    team: Team
    players: List[Player] = []
