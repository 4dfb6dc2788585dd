# courtside/services/yahoo/leagues.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from courtside.schemas.league import League, LeagueSettings, RosterSlot, StatCategory
from courtside.schemas.transaction import DraftPick
from courtside.services import stat_catalog
from courtside.services.yahoo.parsers import (
    content,
    dig,
    entities,
    find_key,
    flag,
    indexed,
    maybe_int,
    merge,
    normalizer,
    text,
    unwrap,
    warn_shape,
)


def league_from_fragments(meta: Dict[str, Any], game_over: bool = False) -> Optional[League]:
    key = text(meta.get("league_key"))
    if not key:
        warn_shape("league", "league without league_key")
        return None
    logo = meta.get("logo_url")
    return League(
        key=key,
        id=text(meta.get("league_id"), key.rsplit(".", 1)[-1]),
        name=text(meta.get("name"), key),
        season=text(meta.get("season")),
        game_code=text(meta.get("game_code")),
        current_week=maybe_int(meta.get("current_week")),
        start_week=maybe_int(meta.get("start_week")),
        end_week=maybe_int(meta.get("end_week")),
        num_teams=maybe_int(meta.get("num_teams")),
        scoring_type=text(meta.get("scoring_type")),
        is_active=not (game_over or flag(meta.get("is_finished"))),
        logo_url=logo if isinstance(logo, str) and logo else None,
        url=text(meta.get("url")),
    )


@normalizer("league", default=lambda: None)
def normalize_league(payload: Any) -> Optional[League]:
    node = content(payload, "league") if isinstance(payload, dict) and "fantasy_content" in payload else payload
    return league_from_fragments(merge(unwrap(node, "league")))


@normalizer("leagues", default=list)
def normalize_leagues(payload: Any) -> List[League]:
    """
    ``/users;use_login=1/games;game_keys=.../leagues``: leagues grouped under
    each game. A finished game marks its leagues inactive.
    """
    games = find_key(content(payload, "users"), "games")
    out: List[League] = []
    for game in entities(games, "game"):
        game_over = flag(game.get("is_game_over"))
        for meta in entities(game.get("leagues"), "league"):
            league = league_from_fragments(meta, game_over=game_over)
            if league is not None:
                out.append(league)
    return out


def _category(stat: Dict[str, Any]) -> Optional[StatCategory]:
    cid = text(stat.get("stat_id"))
    if cid is None:
        return None
    definition = stat_catalog.resolve(cid)
    sort_order = text(stat.get("sort_order"))
    if sort_order == "1":
        direction = stat_catalog.HIGHER_IS_BETTER
    elif sort_order == "0":
        direction = stat_catalog.LOWER_IS_BETTER
    else:
        direction = definition.sort_direction
    return StatCategory(
        id=cid,
        name=text(stat.get("name"), definition.name),
        display_name=text(stat.get("display_name")),
        abbr=text(stat.get("abbr"), stat.get("display_name"), definition.abbr),
        sort_direction=direction,
        enabled=stat.get("enabled") is None or flag(stat.get("enabled")),
        display_only=flag(stat.get("is_only_display_stat")) or stat_catalog.is_compound(cid),
        position_type=text(stat.get("position_type")),
    )


@normalizer("settings", default=lambda: None)
def normalize_league_settings(payload: Any) -> Optional[LeagueSettings]:
    league = merge(content(payload, "league"))
    key = text(league.get("league_key"))
    settings_node = merge(league.get("settings"))
    if not key or not settings_node:
        warn_shape("settings", "response without league_key or settings")
        return None

    categories = []
    for entry in indexed(dig(settings_node, "stat_categories", "stats")):
        cat = _category(unwrap(entry, "stat") or {})
        if cat is not None:
            categories.append(cat)

    slots = []
    for entry in indexed(settings_node.get("roster_positions")):
        rp = unwrap(entry, "roster_position")
        if not isinstance(rp, dict) or not text(rp.get("position")):
            continue
        slots.append(
            RosterSlot(
                position=text(rp.get("position")),
                count=maybe_int(rp.get("count")) or 1,
                position_type=text(rp.get("position_type")),
                is_starting=rp.get("is_starting_position") is None or flag(rp.get("is_starting_position")),
            )
        )

    return LeagueSettings(
        league_key=key,
        scoring_type=text(league.get("scoring_type"), settings_node.get("scoring_type")),
        uses_faab=flag(settings_node.get("uses_faab")),
        max_weekly_adds=maybe_int(settings_node.get("max_weekly_adds")),
        trade_end_date=text(settings_node.get("trade_end_date")),
        playoff_start_week=maybe_int(settings_node.get("playoff_start_week")),
        roster_positions=slots,
        categories=categories,
    )


@normalizer("draft_results", default=list)
def normalize_draft_results(payload: Any) -> List[DraftPick]:
    picks: List[DraftPick] = []
    for entry in indexed(find_key(content(payload, "league"), "draft_results")):
        d = merge(unwrap(entry, "draft_result"))
        pick = maybe_int(d.get("pick"))
        if pick is None:
            continue
        picks.append(
            DraftPick(
                pick=pick,
                round=maybe_int(d.get("round")),
                team_key=text(d.get("team_key")),
                player_key=text(d.get("player_key")),
            )
        )
    return sorted(picks, key=lambda p: p.pick)


@normalizer("profile", default=dict)
def normalize_login_profile(payload: Any) -> Dict[str, Optional[str]]:
    """``/users;use_login=1`` -> {guid, nickname, image_url}"""
    user = merge(unwrap(dig(content(payload, "users"), "0"), "user"))
    profile = user.get("profile") if isinstance(user.get("profile"), dict) else {}
    guid = text(user.get("guid"))
    if not guid:
        warn_shape("profile", "no guid on /users;use_login=1")
        return {}
    return {
        "guid": guid,
        "nickname": text(profile.get("nickname"), profile.get("display_name")),
        "image_url": text(profile.get("image_url"), profile.get("image_url_small")),
    }
