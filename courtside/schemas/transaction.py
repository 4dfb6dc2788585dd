from typing import List, Optional

from pydantic import BaseModel

from courtside.schemas.common import Record


class TransactionPlayer(Record):
    key: str
    name: Optional[str] = None
    move_type: Optional[str] = None  # add, drop
    source_type: Optional[str] = None  # freeagents, waivers, team
    source_team_key: Optional[str] = None
    source_team_name: Optional[str] = None
    destination_type: Optional[str] = None
    destination_team_key: Optional[str] = None
    destination_team_name: Optional[str] = None


class Transaction(Record):
    key: str
    type: Optional[str] = None  # add, drop, add/drop, trade, waiver
    status: Optional[str] = None
    timestamp: Optional[int] = None
    faab_bid: Optional[int] = None
    players: List[TransactionPlayer] = []


class TransactionFilters(BaseModel):
    types: Optional[List[str]] = None
    team_key: Optional[str] = None
    start: int = 0
    count: Optional[int] = 25


class DraftPick(Record):
    pick: int
    round: Optional[int] = None
    team_key: Optional[str] = None
    player_key: Optional[str] = None
