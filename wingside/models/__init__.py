# Models package - database tables
from wingside.models.lead import Lead, LeadActivity
from wingside.models.customer import (
    CustomerProfile, PointsTransaction, Reward, RewardClaim, TransactionTypes
)
