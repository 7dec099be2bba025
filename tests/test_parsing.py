"""Team names, market classification, token ids and event dates."""

from datetime import datetime, timedelta, timezone

from edgescan.parsing.dates import date_from_slug, date_from_text, parse_iso, resolve_event_date, within_window
from edgescan.parsing.markets import (
    detect_market_type,
    extract_threshold,
    extract_token_ids,
    is_blocked,
    parse_outcome_prices,
    select_h2h_market,
)
from edgescan.parsing.teams import (
    extract_team_names,
    normalize_team_name,
    resolve_team_name,
    split_teams,
    team_id,
)
from edgescan.sports import detect_sport, get_sport, league_for_odds_key

NOW = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


def test_extract_team_names_fallbacks():
    assert extract_team_names("Celtics vs. Knicks") == ("Celtics", "Knicks")
    assert extract_team_names("NBA game", "Lakers vs Heat?") == ("Lakers", "Heat")
    assert extract_team_names("Lakers @ Heat (Jan 15)") == ("Lakers", "Heat")
    assert extract_team_names("NBA: who wins?", "Will the Lakers beat the Heat?") == ("Lakers", "Heat")
    assert extract_team_names("Who will win the MVP?") == (None, None)


def test_normalization():
    assert normalize_team_name("The Arsenal FC") == "arsenal"
    assert normalize_team_name("  St. Louis   Blues ") == "st louis blues"
    assert team_id("Toronto Maple Leafs") == "toronto_maple_leafs"
    assert split_teams("Lakers vs. Heat - Game 3") == ("Lakers", "Heat")


def test_resolve_team_name():
    assert resolve_team_name("LAL", "NBA") == "Los Angeles Lakers"
    assert resolve_team_name("Celtics", "NBA") == "Boston Celtics"
    assert resolve_team_name("Maple Leafs", "NHL") == "Toronto Maple Leafs"
    assert resolve_team_name("boston celtics", "NBA") == "Boston Celtics"
    assert resolve_team_name("Gotham Rogues", "NBA") is None
    assert resolve_team_name("Celtics", "Sports") is None


def test_user_mapping_wins():
    mappings = {"cs": "Boston Celtics"}
    assert resolve_team_name("C's", "NBA", user_mappings=mappings) == "Boston Celtics"


def test_sport_detection():
    assert detect_sport("Celtics vs. Knicks") == "NBA"
    assert detect_sport("Blackhawks vs. Blues") == "NHL"
    assert detect_sport("Will the Sharks beat the Ducks?") == "NHL"
    assert detect_sport("Who will win the cooking contest?") is None
    assert get_sport("nba").name == "NBA"
    assert league_for_odds_key("icehockey_nhl") == "NHL"


def test_market_type_and_threshold():
    assert detect_market_type("Celtics vs. Knicks", "moneyline") == "h2h"
    assert detect_market_type("Lakers vs. Heat: O/U 220.5", "totals") == "total"
    assert detect_market_type("Will the Lakers score over 220.5 points?") == "total"
    assert detect_market_type("Celtics -5.5 vs Knicks") == "spread"
    assert detect_market_type("Will LeBron score 30+ points?") == "player_prop"
    assert detect_market_type("NBA Championship 2026") == "futures"
    assert extract_threshold("Will the Lakers score over 220.5 points?") == 220.5
    assert extract_threshold("Celtics -5.5 vs Knicks") == -5.5
    assert extract_threshold("Will LeBron score 30+ points?") == 30.0


def test_blocklist():
    assert is_blocked("Will the Celtics win the championship?")
    assert is_blocked("NBA MVP 2026")
    assert is_blocked("Will the Oilers win the Stanley Cup?")
    assert is_blocked("Will the Dodgers win the 2026 World Series?")
    assert is_blocked("Will the Eagles win the NFC Championship?")
    assert not is_blocked("Celtics vs. Knicks")


def test_select_h2h_market_skips_totals():
    markets = [
        {"question": "Celtics vs. Knicks: O/U 221.5", "sportsMarketType": "totals"},
        {"question": "Celtics -4.5", "sportsMarketType": "spreads"},
        {"question": "Celtics vs. Knicks", "sportsMarketType": "moneyline"},
    ]
    assert select_h2h_market(markets)["sportsMarketType"] == "moneyline"
    assert select_h2h_market(markets[:2]) is None


def test_token_ids_from_each_shape():
    assert extract_token_ids({"clobTokenIds": '["1", "2"]'}) == ("1", "2")
    assert extract_token_ids({"clobTokenIds": ["3", "4"]}) == ("3", "4")
    assert extract_token_ids({"tokens": [{"token_id": "5"}, {"token_id": "6"}]}) == ("5", "6")
    assert extract_token_ids({"outcomes": [{"clobTokenId": "7"}, {"clobTokenId": "8"}]}) == ("7", "8")
    assert extract_token_ids({"outcomes": ["Yes", "No"]}) == (None, None)


def test_outcome_prices_default_to_half():
    assert parse_outcome_prices({"outcomePrices": '["0.45", "0.55"]'}) == (0.45, 0.55)
    assert parse_outcome_prices({"outcomePrices": ["abc", "1.7"]}) == (0.5, 0.5)
    assert parse_outcome_prices({}) == (0.5, 0.5)


def test_parse_iso_placeholders():
    dt, placeholder = parse_iso("2026-01-15T00:30:00Z")
    assert dt == datetime(2026, 1, 15, 0, 30, tzinfo=timezone.utc) and not placeholder
    assert parse_iso("2026-01-15T00:00:00Z")[1] is True
    dt, placeholder = parse_iso("2026-01-15")
    assert placeholder and dt.hour == 23
    assert parse_iso("not a date") is None


def test_date_phrases():
    assert date_from_slug("nba-bos-nyk-2026-01-15") == datetime(2026, 1, 15, 23, 59, 59, tzinfo=timezone.utc)
    assert date_from_text("Lakers vs Heat on January 15", NOW).date().isoformat() == "2026-01-15"
    assert date_from_text("Game on Jan 3, 2027", NOW).year == 2027
    later = datetime(2026, 3, 1, tzinfo=timezone.utc)
    assert date_from_text("Rematch 1/15", later).date().isoformat() == "2027-01-15"
    assert date_from_text("no date here", NOW) is None


def test_resolve_event_date_priority():
    event = {"slug": "nba-bos-nyk-2026-01-15", "endDate": "2026-01-20T00:00:00Z"}
    market = {"gameStartTime": "2026-01-15T00:30:00Z"}
    resolved = resolve_event_date(event, market, now=NOW)
    assert resolved.source == "slug"
    assert resolved.value.hour == 0 and not resolved.is_placeholder

    resolved = resolve_event_date({"slug": "celtics-knicks", "endDate": "2026-01-20T03:00:00Z"}, {}, now=NOW)
    assert resolved.source == "end_date"

    resolved = resolve_event_date({"title": "Celtics vs Knicks - January 12"}, {}, now=NOW)
    assert resolved.source == "text" and resolved.is_placeholder


def test_slug_date_keeps_next_utc_day_kickoff():
    # 10pm ET on Jan 15 is 03:00 UTC on Jan 16
    now = datetime(2026, 1, 16, 1, 0, tzinfo=timezone.utc)
    resolved = resolve_event_date({"slug": "nba-lal-bos-2026-01-15"}, {"gameStartTime": "2026-01-16T03:00:00Z"}, now=now)
    assert resolved.value == datetime(2026, 1, 16, 3, 0, tzinfo=timezone.utc)
    assert resolved.source == "slug" and not resolved.is_placeholder
    assert within_window(resolved.value, 24, now)

    far = resolve_event_date({"slug": "nba-lal-bos-2026-01-15"}, {"gameStartTime": "2026-01-18T03:00:00Z"}, now=now)
    assert far.is_placeholder and far.value.date().isoformat() == "2026-01-15"


def test_resolve_event_date_bookmaker_fallback():
    kickoff = NOW + timedelta(hours=30)
    resolved = resolve_event_date(
        {"title": "Celtics vs Knicks"}, {}, ("Celtics", "Knicks"), lambda a, b: kickoff, NOW
    )
    assert resolved.source == "bookmaker"
    assert resolved.value == kickoff
    assert resolve_event_date({"title": "Celtics vs Knicks"}, {}, now=NOW) is None


def test_window_excludes_past_and_far_events():
    assert within_window(NOW + timedelta(hours=5), 24, NOW)
    assert not within_window(NOW - timedelta(minutes=1), 24, NOW)
    assert not within_window(NOW + timedelta(hours=25), 24, NOW)
