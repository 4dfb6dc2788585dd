"""Yahoo Fantasy JSON responses, trimmed to the fields the normalizers read."""

LEAGUE_KEY = "466.l.1"
TEAM_KEY = "466.l.1.t.3"
OTHER_TEAM_KEY = "466.l.1.t.7"


def collection(name, items):
    out = {str(i): {name: item} for i, item in enumerate(items)}
    out["count"] = len(items)
    return out


def stats(values):
    return {
        "coverage_type": "week",
        "stats": [{"stat": {"stat_id": str(k), "value": v}} for k, v in values.items()],
    }


def team_fragments(key, name, extra=()):
    return [[{"team_key": key}, {"team_id": key.rsplit(".", 1)[-1]}, {"name": name}], *extra]


def leagues_payload():
    league = [{
        "league_key": LEAGUE_KEY, "league_id": "1", "name": "Hardwood", "season": "2025",
        "game_code": "nba", "current_week": 5, "num_teams": 10, "scoring_type": "head",
    }]
    old = [{"league_key": "454.l.9", "league_id": "9", "name": "Last Year", "season": "2024"}]
    games = collection("game", [
        [{"game_key": "466", "is_game_over": 0}, {"leagues": collection("league", [league])}],
        [{"game_key": "454", "is_game_over": 1}, {"leagues": collection("league", [old])}],
    ])
    return {"fantasy_content": {"users": collection("user", [[{"guid": "GUID1"}, {"games": games}]])}}


def league_payload(current_week=5):
    return {"fantasy_content": {"league": [{
        "league_key": LEAGUE_KEY, "league_id": "1", "name": "Hardwood",
        "season": "2025", "current_week": str(current_week), "num_teams": "10",
    }]}}


def settings_payload(extra=()):
    def stat(sid, name, sort_order="1", enabled="1", display_only=None):
        s = {"stat_id": sid, "name": name, "display_name": name, "sort_order": sort_order, "enabled": enabled}
        if display_only:
            s["is_only_display_stat"] = "1"
        return {"stat": s}

    return {"fantasy_content": {"league": [
        {"league_key": LEAGUE_KEY, "name": "Hardwood", "scoring_type": "head"},
        {"settings": [{
            "uses_faab": "1",
            "max_weekly_adds": "4",
            "stat_categories": {"stats": [
                stat(9004003, "FGM/FGA", display_only=True),
                stat(5, "FG%"),
                stat(12, "PTS"),
                stat(15, "REB"),
                stat(19, "TO", sort_order="0"),
                stat(21, "PF", enabled="0"),
                *[stat(sid, name) for sid, name in extra],
            ]},
            "roster_positions": [
                {"roster_position": {"position": "PG", "count": 1}},
                {"roster_position": {"position": "BN", "count": 3, "is_starting_position": 0}},
            ],
        }]},
    ]}}


def standings_payload():
    def entry(key, name, rank, wins, losses, ties, pts):
        return team_fragments(key, name, [
            {"team_stats": stats({"9004003": "400/850", "5": ".471", "12": pts})},
            {"team_standings": {
                "rank": rank,
                "outcome_totals": {"wins": wins, "losses": losses, "ties": ties, "percentage": ""},
                "games_back": "-" if rank == "1" else "2.0",
            }},
        ])

    teams = collection("team", [
        entry(OTHER_TEAM_KEY, "Second", "2", "30", "20", "0", "1100"),
        entry(TEAM_KEY, "First", "1", "35", "14", "1", "1200"),
    ])
    return {"fantasy_content": {"league": [
        {"league_key": LEAGUE_KEY},
        {"standings": [{"teams": teams}]},
    ]}}


def teams_payload(owned_key=TEAM_KEY):
    def team(key, name):
        extra = [{"is_owned_by_current_login": 1}] if key == owned_key else []
        return team_fragments(key, name) + extra

    return {"fantasy_content": {"league": [
        {"league_key": LEAGUE_KEY},
        {"teams": collection("team", [team(TEAM_KEY, "Mine"), team(OTHER_TEAM_KEY, "Theirs")])},
    ]}}


def player_fragments(key, name, abbr, positions, stat_values=None, selected=None):
    meta = [
        {"player_key": key},
        {"player_id": key.rsplit(".", 1)[-1]},
        {"name": {"full": name}},
        {"editorial_team_abbr": abbr},
        {"display_position": ",".join(positions)},
        {"eligible_positions": [{"position": p} for p in positions]},
    ]
    out = [meta]
    if selected:
        out.append({"selected_position": [{"coverage_type": "date"}, {"position": selected}]})
    if stat_values is not None:
        out.append({"player_stats": stats(stat_values)})
    return out


def roster_payload(players):
    return {"fantasy_content": {"team": [
        [{"team_key": TEAM_KEY}],
        {"roster": {"coverage_type": "week", "week": "5", "0": {"players": collection("player", players) if players else []}}},
    ]}}


def players_payload(players):
    return {"fantasy_content": {"league": [
        {"league_key": LEAGUE_KEY},
        {"players": collection("player", players) if players else []},
    ]}}


def matchup_node(week, teams, status="postevent", winner=None, is_tied=0):
    return {
        "week": str(week),
        "week_start": "2025-11-17",
        "week_end": "2025-11-23",
        "status": status,
        "is_playoffs": "0",
        "is_tied": is_tied,
        **({"winner_team_key": winner} if winner else {}),
        "0": {"teams": collection("team", teams)},
    }


def matchup_team(key, name, stat_values, points=None):
    extra = [{"team_stats": stats(stat_values)}]
    if points is not None:
        extra.append({"team_points": {"coverage_type": "week", "total": str(points)}})
    return team_fragments(key, name, extra)


def scoreboard_payload(matchups, week=5):
    return {"fantasy_content": {"league": [
        {"league_key": LEAGUE_KEY},
        {"scoreboard": {"0": {"matchups": collection("matchup", matchups)}, "week": str(week)}},
    ]}}


def team_matchups_payload(matchups, team_key=TEAM_KEY):
    return {"fantasy_content": {"team": [
        [{"team_key": team_key}],
        {"matchups": collection("matchup", matchups)},
    ]}}


def transactions_payload(transactions):
    return {"fantasy_content": {"league": [
        {"league_key": LEAGUE_KEY},
        {"transactions": collection("transaction", transactions)},
    ]}}


def add_drop_transaction(key="466.l.1.tr.10"):
    return [
        {"transaction_key": key, "type": "add/drop", "status": "successful", "timestamp": "1700000000"},
        {"players": collection("player", [
            [[{"player_key": "466.p.5"}, {"name": {"full": "Five"}}],
             {"transaction_data": [{"type": "add", "source_type": "freeagents",
                                    "destination_type": "team", "destination_team_key": TEAM_KEY}]}],
            [[{"player_key": "466.p.6"}, {"name": {"full": "Six"}}],
             {"transaction_data": {"type": "drop", "source_type": "team",
                                   "source_team_key": TEAM_KEY, "destination_type": "waivers"}}],
        ])},
    ]


def profile_payload(guid="GUID1"):
    return {"fantasy_content": {"users": collection("user", [[
        {"guid": guid},
        {"profile": {"nickname": "hooper", "image_url": "https://img/x.png"}},
    ]])}}
