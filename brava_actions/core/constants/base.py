MAX_UINT256 = 2**256 - 1

SECONDS_PER_YEAR = 365 * 24 * 60 * 60

# Fee rates are expressed in basis points of the position per year.
FEE_BASIS_POINTS = 10_000

RAY = 10**27

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Protocol name used by the wallet utility actions (token transfers).
BRAVA_PROTOCOL = "Brava"
