# Loyalty rules - pure functions, no storage
from wingside.loyalty.tier_engine import (
    TierName, TierEngine, DecayEvaluation, CustomerLoyaltyState, TierDowngrade,
    TierProgress, tier_engine, classify_tier, evaluate_decay, tier_rank
)
from wingside.loyalty.points import (
    purchase_points, apply_points_change, select_expired_rewards,
    ONE_TIME_REWARD_TYPES, REWARD_POINTS
)
