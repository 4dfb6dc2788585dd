# courtside/services/yahoo/writes.py
"""XML bodies for Yahoo's write endpoints (roster PUT, transaction POST)."""
from __future__ import annotations

from typing import Iterable, Optional, Tuple
from xml.etree import ElementTree as ET


def _document(root: ET.Element) -> str:
    return '<?xml version="1.0" encoding="UTF-8"?>' + ET.tostring(root, encoding="unicode")


def _child(parent: ET.Element, tag: str, value: Optional[str] = None) -> ET.Element:
    el = ET.SubElement(parent, tag)
    if value is not None:
        el.text = str(value)
    return el


def roster_xml(
    moves: Iterable[Tuple[str, str]],
    date: Optional[str] = None,
    week: Optional[int] = None,
) -> str:
    """
    ``moves`` is (player_key, position). NBA leagues set lineups per date;
    weekly leagues per week.
    """
    root = ET.Element("fantasy_content")
    roster = _child(root, "roster")
    if week is not None:
        _child(roster, "coverage_type", "week")
        _child(roster, "week", str(week))
    else:
        _child(roster, "coverage_type", "date")
        _child(roster, "date", date)
    players = _child(roster, "players")
    for player_key, position in moves:
        player = _child(players, "player")
        _child(player, "player_key", player_key)
        _child(player, "position", position)
    return _document(root)


def _transaction_root(kind: str) -> Tuple[ET.Element, ET.Element]:
    root = ET.Element("fantasy_content")
    tx = _child(root, "transaction")
    _child(tx, "type", kind)
    return root, tx


def _player(parent: ET.Element, player_key: str, move: str, team_key: str) -> None:
    player = _child(parent, "player")
    _child(player, "player_key", player_key)
    data = _child(player, "transaction_data")
    _child(data, "type", move)
    _child(data, "destination_team_key" if move == "add" else "source_team_key", team_key)


def add_xml(player_key: str, team_key: str, faab_bid: Optional[int] = None) -> str:
    root, tx = _transaction_root("add")
    if faab_bid is not None:
        _child(tx, "faab_bid", str(faab_bid))
    _player(tx, player_key, "add", team_key)
    return _document(root)


def drop_xml(player_key: str, team_key: str) -> str:
    root, tx = _transaction_root("drop")
    _player(tx, player_key, "drop", team_key)
    return _document(root)


def add_drop_xml(add_key: str, drop_key: str, team_key: str, faab_bid: Optional[int] = None) -> str:
    root, tx = _transaction_root("add/drop")
    if faab_bid is not None:
        _child(tx, "faab_bid", str(faab_bid))
    players = _child(tx, "players")
    _player(players, add_key, "add", team_key)
    _player(players, drop_key, "drop", team_key)
    return _document(root)
