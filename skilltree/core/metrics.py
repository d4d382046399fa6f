"""Engine metrics using the Prometheus client library.

Every metric the engine records is defined here, one inventory for the
whole package.  Other modules import a specific metric and increment it
at the point of action.

All of these are COUNTERS: they only go up, and a dashboard derives rates
from them (``rate(skilltree_node_completions_total[5m])``).  Exposing them
over HTTP is the host application's job; ``prometheus_client`` keeps them
in its default registry.
"""

from __future__ import annotations

from prometheus_client import Counter

# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

NODE_COMPLETIONS = Counter(
    "skilltree_node_completions_total",
    "Completion events processed, by stars earned on the attempt",
    ["stars"],  # "0".."3"
)

NODES_UNLOCKED = Counter(
    "skilltree_nodes_unlocked_total",
    "Nodes transitioned from locked to current by unlock propagation",
)

# ---------------------------------------------------------------------------
# Gem ledger
# ---------------------------------------------------------------------------

GEM_TRANSACTIONS = Counter(
    "skilltree_gem_transactions_total",
    "Gem transactions appended to learner ledgers",
    ["type"],  # "earn" or "spend"
)

GEM_SPEND_REJECTED = Counter(
    "skilltree_gem_spend_rejected_total",
    "Spend requests rejected for insufficient balance",
)

BONUS_CLAIMS = Counter(
    "skilltree_bonus_claims_total",
    "Day-guarded bonus claims by outcome",
    ["result"],  # "claimed", "already_claimed" or "not_eligible"
)

# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

STORE_CONFLICTS = Counter(
    "skilltree_store_conflicts_total",
    "Optimistic-concurrency conflicts on learner state saves",
)
