# Lead scoring - pure functions, no storage
from wingside.scoring.lead_scorer import (
    LeadScorer, LeadFactors, FactorContribution, lead_scorer, factors_from_lead
)
