"""Sport registry: league names, Odds API keys, team maps, detection patterns."""

from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass
class SportConfig:
    code: str
    name: str
    odds_api_sport: str | None = None
    odds_api_markets: str = "h2h"
    polymarket_url: str | None = None
    team_map: dict[str, str] = field(default_factory=dict)
    patterns: list[re.Pattern[str]] = field(default_factory=list)


def _p(*exprs: str) -> list[re.Pattern[str]]:
    return [re.compile(e, re.IGNORECASE) for e in exprs]


# Order matters for detection: NHL before NBA so "blackhawks" never hits "hawks".
SPORTS: list[SportConfig] = [
    SportConfig(
        code="nhl",
        name="NHL",
        odds_api_sport="icehockey_nhl",
        polymarket_url="https://polymarket.com/sports/nhl/games",
        team_map={
            "ana": "Anaheim Ducks", "ari": "Arizona Coyotes", "bos": "Boston Bruins",
            "buf": "Buffalo Sabres", "cgy": "Calgary Flames", "car": "Carolina Hurricanes",
            "chi": "Chicago Blackhawks", "col": "Colorado Avalanche", "cbj": "Columbus Blue Jackets",
            "dal": "Dallas Stars", "det": "Detroit Red Wings", "edm": "Edmonton Oilers",
            "fla": "Florida Panthers", "la": "Los Angeles Kings", "lak": "Los Angeles Kings",
            "min": "Minnesota Wild", "mtl": "Montreal Canadiens", "nsh": "Nashville Predators",
            "njd": "New Jersey Devils", "nyi": "New York Islanders", "nyr": "New York Rangers",
            "ott": "Ottawa Senators", "phi": "Philadelphia Flyers", "pit": "Pittsburgh Penguins",
            "sjs": "San Jose Sharks", "sea": "Seattle Kraken", "stl": "St. Louis Blues",
            "tb": "Tampa Bay Lightning", "tbl": "Tampa Bay Lightning", "tor": "Toronto Maple Leafs",
            "van": "Vancouver Canucks", "vgk": "Vegas Golden Knights", "wsh": "Washington Capitals",
            "wpg": "Winnipeg Jets", "uta": "Utah Hockey Club",
        },
        patterns=_p(
            r"\bnhl\b",
            r"blackhawks|maple leafs|canadiens|habs|bruins|new york rangers|ny rangers|islanders|devils|"
            r"flyers|penguins|capitals|hurricanes|florida panthers|lightning|red wings|senators|sabres|"
            r"blue jackets|\bblues\b|\bwild\b|avalanche|dallas stars|predators|winnipeg jets|flames|oilers|"
            r"canucks|kraken|golden knights|coyotes|sharks|\bducks\b|la kings|los angeles kings",
        ),
    ),
    SportConfig(
        code="nba",
        name="NBA",
        odds_api_sport="basketball_nba",
        odds_api_markets="h2h,totals",
        polymarket_url="https://polymarket.com/sports/nba/games",
        team_map={
            "atl": "Atlanta Hawks", "bos": "Boston Celtics", "bkn": "Brooklyn Nets",
            "cha": "Charlotte Hornets", "chi": "Chicago Bulls", "cle": "Cleveland Cavaliers",
            "dal": "Dallas Mavericks", "den": "Denver Nuggets", "det": "Detroit Pistons",
            "gsw": "Golden State Warriors", "hou": "Houston Rockets", "ind": "Indiana Pacers",
            "lac": "LA Clippers", "lal": "Los Angeles Lakers", "mem": "Memphis Grizzlies",
            "mia": "Miami Heat", "mil": "Milwaukee Bucks", "min": "Minnesota Timberwolves",
            "nop": "New Orleans Pelicans", "nyk": "New York Knicks", "okc": "Oklahoma City Thunder",
            "orl": "Orlando Magic", "phi": "Philadelphia 76ers", "phx": "Phoenix Suns",
            "por": "Portland Trail Blazers", "sac": "Sacramento Kings", "sas": "San Antonio Spurs",
            "tor": "Toronto Raptors", "uta": "Utah Jazz", "was": "Washington Wizards",
        },
        patterns=_p(
            r"\bnba\b",
            r"lakers|celtics|warriors|\bheat\b|\bbulls\b|knicks|\bnets\b|\bbucks\b|76ers|sixers|\bsuns\b|"
            r"nuggets|clippers|mavericks|rockets|grizzlies|timberwolves|pelicans|\bspurs\b|thunder|\bjazz\b|"
            r"blazers|hornets|atlanta hawks|wizards|\bmagic\b|pistons|cavaliers|raptors|pacers",
        ),
    ),
    SportConfig(
        code="nfl",
        name="NFL",
        odds_api_sport="americanfootball_nfl",
        polymarket_url="https://polymarket.com/sports/nfl/games",
        team_map={
            "ari": "Arizona Cardinals", "atl": "Atlanta Falcons", "bal": "Baltimore Ravens",
            "buf": "Buffalo Bills", "car": "Carolina Panthers", "chi": "Chicago Bears",
            "cin": "Cincinnati Bengals", "cle": "Cleveland Browns", "dal": "Dallas Cowboys",
            "den": "Denver Broncos", "det": "Detroit Lions", "gb": "Green Bay Packers",
            "hou": "Houston Texans", "ind": "Indianapolis Colts", "jax": "Jacksonville Jaguars",
            "kc": "Kansas City Chiefs", "lac": "LA Chargers", "lar": "LA Rams",
            "lv": "Las Vegas Raiders", "mia": "Miami Dolphins", "min": "Minnesota Vikings",
            "ne": "New England Patriots", "no": "New Orleans Saints", "nyg": "New York Giants",
            "nyj": "New York Jets", "phi": "Philadelphia Eagles", "pit": "Pittsburgh Steelers",
            "sf": "San Francisco 49ers", "sea": "Seattle Seahawks", "tb": "Tampa Bay Buccaneers",
            "ten": "Tennessee Titans", "was": "Washington Commanders",
        },
        patterns=_p(
            r"\bnfl\b",
            r"chiefs|eagles|49ers|niners|cowboys|\bbills\b|ravens|bengals|dolphins|\blions\b|packers|"
            r"patriots|broncos|chargers|raiders|steelers|browns|texans|\bcolts\b|jaguars|titans|commanders|"
            r"saints|falcons|buccaneers|seahawks|\brams\b|\bbears\b|vikings",
        ),
    ),
    SportConfig(
        code="ufc",
        name="UFC",
        odds_api_sport="mma_mixed_martial_arts",
        patterns=_p(r"\bufc\b", r"\bmma\b"),
    ),
    SportConfig(
        code="tennis",
        name="Tennis",
        patterns=_p(
            r"\batp\b",
            r"\bwta\b",
            r"djokovic|sinner|alcaraz|medvedev|zverev|sabalenka|swiatek|gauff|rybakina|pegula",
            r"australian open|french open|roland garros|wimbledon|grand slam|indian wells",
        ),
    ),
    SportConfig(
        code="epl",
        name="EPL",
        odds_api_sport="soccer_epl",
        polymarket_url="https://polymarket.com/sports/soccer/epl/games",
        team_map={
            "ars": "Arsenal", "avl": "Aston Villa", "bou": "Bournemouth", "bre": "Brentford",
            "bha": "Brighton", "che": "Chelsea", "cry": "Crystal Palace", "eve": "Everton",
            "ful": "Fulham", "ips": "Ipswich", "lei": "Leicester", "liv": "Liverpool",
            "mci": "Man City", "mun": "Man United", "new": "Newcastle", "nfo": "Nottm Forest",
            "sou": "Southampton", "tot": "Tottenham", "whu": "West Ham", "wol": "Wolves",
        },
        patterns=_p(
            r"premier league|\bepl\b",
            r"arsenal|chelsea|liverpool|man city|manchester city|man united|manchester united|tottenham|"
            r"newcastle|brighton|aston villa|west ham|bournemouth|fulham|crystal palace|brentford|wolves|"
            r"nottingham forest|everton|ipswich|leicester|southampton",
        ),
    ),
    SportConfig(
        code="mlb",
        name="MLB",
        odds_api_sport="baseball_mlb",
        patterns=_p(
            r"\bmlb\b|yankees|red sox|dodgers|\bmets\b|phillies|braves|\bcubs\b|padres|mariners|astros|"
            r"\btwins\b|guardians|orioles|blue jays|brewers|diamondbacks|rockies|marlins|white sox",
        ),
    ),
    SportConfig(
        code="ucl",
        name="UCL",
        odds_api_sport="soccer_uefa_champs_league",
        team_map={
            "rma": "Real Madrid", "bar": "Barcelona", "bay": "Bayern Munich", "mci": "Man City",
            "liv": "Liverpool", "che": "Chelsea", "psg": "PSG", "juv": "Juventus",
            "int": "Inter Milan", "mil": "AC Milan", "bvb": "Dortmund", "ars": "Arsenal",
            "atm": "Atletico Madrid", "ben": "Benfica", "por": "Porto", "aja": "Ajax",
            "cel": "Celtic", "psv": "PSV", "gal": "Galatasaray", "bru": "Club Brugge",
        },
        patterns=_p(r"champions league|\bucl\b|paris saint|\bpsg\b|benfica|porto|ajax|celtic"),
    ),
    SportConfig(
        code="laliga",
        name="LaLiga",
        odds_api_sport="soccer_spain_la_liga",
        team_map={
            "rma": "Real Madrid", "bar": "Barcelona", "atm": "Atletico Madrid",
            "sev": "Sevilla", "vil": "Villarreal", "bet": "Real Betis", "soc": "Real Sociedad",
            "ath": "Athletic Bilbao", "val": "Valencia", "get": "Getafe", "osa": "Osasuna",
            "cel": "Celta Vigo", "ray": "Rayo Vallecano", "mal": "Mallorca", "gir": "Girona",
        },
        patterns=_p(
            r"la liga|laliga|real madrid|barcelona|atletico madrid|sevilla|villarreal|real sociedad|"
            r"athletic bilbao|real betis|girona",
        ),
    ),
    SportConfig(
        code="seriea",
        name="SerieA",
        odds_api_sport="soccer_italy_serie_a",
        team_map={
            "juv": "Juventus", "int": "Inter Milan", "mil": "AC Milan", "nap": "Napoli",
            "rom": "Roma", "laz": "Lazio", "fio": "Fiorentina", "ata": "Atalanta",
            "bol": "Bologna", "tor": "Torino", "udi": "Udinese", "gen": "Genoa",
        },
        patterns=_p(r"serie a|juventus|inter milan|ac milan|napoli|\broma\b|lazio|fiorentina|atalanta"),
    ),
    SportConfig(
        code="bundesliga",
        name="Bundesliga",
        odds_api_sport="soccer_germany_bundesliga",
        team_map={
            "bay": "Bayern Munich", "bvb": "Dortmund", "rbl": "RB Leipzig", "lev": "Leverkusen",
            "fra": "Frankfurt", "wob": "Wolfsburg", "bmg": "Gladbach", "fre": "Freiburg",
            "hof": "Hoffenheim", "stg": "Stuttgart", "wer": "Werder Bremen", "uni": "Union Berlin",
        },
        patterns=_p(
            r"bundesliga|bayern|dortmund|leverkusen|leipzig|frankfurt|wolfsburg|freiburg|hoffenheim|"
            r"werder bremen|union berlin|gladbach",
        ),
    ),
    SportConfig(
        code="boxing",
        name="Boxing",
        odds_api_sport="boxing_boxing",
        patterns=_p(r"\bbox(?:ing)?\b|usyk|canelo|crawford|beterbiev|bivol"),
    ),
    SportConfig(
        code="ncaab",
        name="NCAA",
        odds_api_sport="basketball_ncaab",
        polymarket_url="https://polymarket.com/sports/cbb/games",
        team_map={
            "duke": "Duke Blue Devils", "unc": "North Carolina Tar Heels", "uk": "Kentucky Wildcats",
            "ku": "Kansas Jayhawks", "ucla": "UCLA Bruins", "gonz": "Gonzaga Bulldogs",
            "purdue": "Purdue Boilermakers", "uconn": "UConn Huskies", "hou": "Houston Cougars",
            "tenn": "Tennessee Volunteers", "msu": "Michigan State Spartans", "mich": "Michigan Wolverines",
            "osu": "Ohio State Buckeyes", "bama": "Alabama Crimson Tide", "aub": "Auburn Tigers",
        },
        patterns=_p(r"\bncaa\b|\bcbb\b|march madness|college football|college basketball|final four"),
    ),
    SportConfig(code="golf", name="Golf", patterns=_p(r"\bpga\b|\bgolf\b|ryder cup|open championship")),
    SportConfig(code="f1", name="F1", patterns=_p(r"formula 1|\bf1\b|grand prix|verstappen")),
]

GENERIC_SPORT = "Sports"
_GENERIC_PATTERNS = _p(
    r"\bvs\.?\b.*(?:win|beat|defeat)",
    r"will\s+(?:the\s+)?\w+\s+(?:beat|win|defeat)",
    r"who\s+will\s+win.*(?:game|match|fight|bout)",
)

_BY_NAME = {s.name.upper(): s for s in SPORTS}
_BY_CODE = {s.code: s for s in SPORTS}


def get_sport(name_or_code: str | None) -> SportConfig | None:
    """Look up by league name ("NHL") or code ("nhl"); None if unknown."""
    if not name_or_code:
        return None
    return _BY_NAME.get(name_or_code.upper()) or _BY_CODE.get(name_or_code.lower())


def team_map_for(league: str | None) -> dict[str, str]:
    sport = get_sport(league)
    return sport.team_map if sport else {}


def odds_api_sports(names: list[str] | None = None) -> dict[str, str]:
    """League name -> Odds API sport key for the given (or all keyed) leagues."""
    wanted = {n.upper() for n in names} if names else None
    out: dict[str, str] = {}
    for s in SPORTS:
        if not s.odds_api_sport:
            continue
        if wanted is not None and s.name.upper() not in wanted:
            continue
        out[s.name] = s.odds_api_sport
    return out


def league_for_odds_key(sport_key: str) -> str | None:
    for s in SPORTS:
        if s.odds_api_sport == sport_key:
            return s.name
    return None


def detect_sport(*texts: str) -> str | None:
    """First league whose patterns match the combined text, else generic or None."""
    combined = " ".join(t for t in texts if t)
    if not combined:
        return None
    for sport in SPORTS:
        if any(p.search(combined) for p in sport.patterns):
            return sport.name
    if any(p.search(combined) for p in _GENERIC_PATTERNS):
        return GENERIC_SPORT
    return None
