from typing import List, Optional

from pydantic import BaseModel, model_validator

from courtside.schemas.common import Record


class RosterMove(BaseModel):
    player_key: str
    position: str


class RosterUpdate(BaseModel):
    """Lineup change. NBA leagues set slots per date; weekly leagues per week."""

    date: Optional[str] = None  # YYYY-MM-DD
    week: Optional[int] = None
    players: List[RosterMove]

    @model_validator(mode="after")
    def _one_coverage(self):
        if self.date and self.week is not None:
            raise ValueError("Pass either date or week, not both")
        return self


class MutationResult(Record):
    success: bool
    message: str


class AddPlayerRequest(BaseModel):
    team_key: str
    player_key: str
    faab_bid: Optional[int] = None


class AddDropRequest(BaseModel):
    team_key: str
    add_player_key: str
    drop_player_key: str
    faab_bid: Optional[int] = None


class DropPlayerRequest(BaseModel):
    team_key: str
    player_key: str
