TITLE_MAX = 255
CARD_TITLE_MAX = 25
MAX_TIERS = 20
MAX_COLUMNS = 20
MAX_CARDS = 500
