# courtside/services/yahoo/transactions.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from courtside.schemas.transaction import Transaction, TransactionPlayer
from courtside.services.yahoo.parsers import (
    content,
    entities,
    find_key,
    indexed,
    maybe_int,
    merge,
    normalizer,
    text,
    warn_shape,
)


def _transaction_data(node: Any) -> Dict[str, Any]:
    # a dict for single moves, a one-item list inside add/drop pairs
    if isinstance(node, dict) and not any(str(k).isdigit() for k in node):
        return node
    items = indexed(node)
    return items[0] if items and isinstance(items[0], dict) else {}


def _move(p: Dict[str, Any]) -> Optional[TransactionPlayer]:
    key = text(p.get("player_key"))
    if not key:
        return None
    name = p.get("name")
    td = _transaction_data(p.get("transaction_data"))
    return TransactionPlayer(
        key=key,
        name=text(name.get("full") if isinstance(name, dict) else name),
        move_type=text(td.get("type")),
        source_type=text(td.get("source_type")),
        source_team_key=text(td.get("source_team_key")),
        source_team_name=text(td.get("source_team_name")),
        destination_type=text(td.get("destination_type")),
        destination_team_key=text(td.get("destination_team_key")),
        destination_team_name=text(td.get("destination_team_name")),
    )


def transaction_from_fragments(t: Dict[str, Any]) -> Optional[Transaction]:
    key = text(t.get("transaction_key"))
    if not key:
        warn_shape("transaction", "transaction without transaction_key")
        return None
    players = [m for m in (_move(p) for p in entities(t.get("players"), "player")) if m is not None]
    return Transaction(
        key=key,
        type=text(t.get("type")),
        status=text(t.get("status")),
        timestamp=maybe_int(t.get("timestamp")),
        faab_bid=maybe_int(t.get("faab_bid")),
        players=players,
    )


@normalizer("transactions", default=list)
def normalize_transactions(payload: Any) -> List[Transaction]:
    """``/league/{key}/transactions``, newest first as Yahoo sends them."""
    collection = find_key(content(payload, "league"), "transactions")
    out: List[Transaction] = []
    for frag in entities(collection, "transaction"):
        tx = transaction_from_fragments(frag)
        if tx is not None:
            out.append(tx)
    return out
