from typing import Tuple

# Tax
TAX_RATE_PCT = 2  # percent per hour, before TIME_SPEED
TIME_SPEED = 5
LEVEL_DISCOUNTS = {"zero": 1.0, "first": 0.90, "second": 0.85}

# Grid
GRID_SIZE = 256
LOCATION_MASK = 0xFFFF

# Auction (mirrors the on-chain pricing contract)
DECIMALS_FACTOR = 10 ** 18
DEFAULT_DECIMALS = 18
AUCTION_DURATION = 7 * 24 * 60 * 60  # 604800 simulated seconds
LINEAR_DECAY_TIME = 10 * 60 * 20  # 12000 simulated seconds, 40 real minutes at TIME_SPEED=5
DROP_RATE = 90
RATE_DENOMINATOR = 100
SCALING_FACTOR = 50

# Reference currency
REFERENCE_SYMBOL = "nftSTRK"
REFERENCE_ALIASES: Tuple[str, ...] = ("", "0", "0x0")
UNKNOWN_SYMBOL = "Unknown"

# Risk / scoring
WARNING_MINUTES = 10
OPPORTUNITY_MIN_PROFIT = 4.0
OPPORTUNITY_MIN_ROI = 10.0
OPPORTUNITY_MAX_ROI = 100.0
DEFAULT_DURATION_CAP_HOURS = 12.0

# Cache
CACHE_MAX_ENTRIES = 1000

# Upstream SQL (Torii)
SQL_GET_LANDS = 'SELECT location, token_used, sell_price, owner, level FROM "ponzi_land-Land"'
SQL_GET_AUCTIONS = (
    'SELECT land_location, floor_price, start_time, start_price, decay_rate, is_finished '
    'FROM "ponzi_land-Auction"'
)
SQL_GET_STAKES = 'SELECT location, amount FROM "ponzi_land-LandStake"'
SQL_GET_CONFIG = 'SELECT * FROM "ponzi_land-Config"'
