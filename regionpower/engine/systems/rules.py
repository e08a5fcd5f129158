# Economic constants shared by the tick engine and the income projection.
# All rates are per second.

# Output multiplier for buildings in a protesting settlement.
PROTEST_OUTPUT_MULTIPLIER = 0.5

# Food eaten per inhabitant.
FOOD_PER_CAPITA = 0.1

# Population lost while the food pool is empty.
STARVATION_RATE = 5.0

# Satisfaction lost when buildings cannot be staffed.
WORKER_SHORTAGE_PENALTY = 5.0

SATISFACTION_BONUS_SCALE = 0.1

# Satisfaction change per tax point below (or above) the neutral rate.
NEUTRAL_TAX_RATE = 5
TAX_SATISFACTION_SCALE = 0.5

# Gold spent per inhabitant when a settlement is tax-free.
ZERO_TAX_UPKEEP = 0.5

# (satisfaction strictly above, influence per second), highest first.
INFLUENCE_BONUS_TIERS = ((90.0, 3.0), (70.0, 1.0))

MIN_SATISFACTION = 0.0
MAX_SATISFACTION = 100.0
LOST_CONTROL_SATISFACTION = 50.0


def influence_bonus_rate(satisfaction: float) -> float:
    for threshold, rate in INFLUENCE_BONUS_TIERS:
        if satisfaction > threshold:
            return rate
    return 0.0


def tax_income_rate(population: float, tax_rate: int) -> float:
    """Gold per second from taxes. Negative (upkeep) for tax-free settlements."""
    if tax_rate == 0:
        return -population * ZERO_TAX_UPKEEP
    return population * (tax_rate / NEUTRAL_TAX_RATE)
