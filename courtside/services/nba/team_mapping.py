# courtside/services/nba/team_mapping.py
"""Yahoo NBA team abbreviations <-> balldontlie team ids."""
from typing import Dict, Optional

YAHOO_TO_BALLDONTLIE: Dict[str, int] = {
    "ATL": 1, "BOS": 2, "BKN": 3, "CHA": 4, "CHI": 5,
    "CLE": 6, "DAL": 7, "DEN": 8, "DET": 9, "GSW": 10,
    "HOU": 11, "IND": 12, "LAC": 13, "LAL": 14, "MEM": 15,
    "MIA": 16, "MIL": 17, "MIN": 18, "NOP": 19, "NYK": 20,
    "OKC": 21, "ORL": 22, "PHI": 23, "PHX": 24, "POR": 25,
    "SAC": 26, "SAS": 27, "TOR": 28, "UTA": 29, "WAS": 30,
}

# Yahoo's short forms
ALIASES: Dict[str, str] = {
    "NO": "NOP",
    "NY": "NYK",
    "GS": "GSW",
    "SA": "SAS",
    "PHO": "PHX",
    "UTAH": "UTA",
    "WSH": "WAS",
    "BRK": "BKN",
}

BALLDONTLIE_TO_YAHOO: Dict[int, str] = {v: k for k, v in YAHOO_TO_BALLDONTLIE.items()}


def normalize_abbr(abbr: Optional[str]) -> Optional[str]:
    if not abbr:
        return None
    upper = abbr.strip().upper()
    return ALIASES.get(upper, upper)


def team_id_for(abbr: Optional[str]) -> Optional[int]:
    normalized = normalize_abbr(abbr)
    return YAHOO_TO_BALLDONTLIE.get(normalized) if normalized else None


def abbr_for(team_id: int) -> Optional[str]:
    return BALLDONTLIE_TO_YAHOO.get(team_id)
