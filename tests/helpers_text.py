"""Clause fixtures that each trigger exactly one built-in rule."""

from __future__ import annotations

SELL = "We will sell your data to our advertiser partners."
NO_SELL = "We never sell or share your data."
AUTO = "Recurring payments are charged automatically without prior notice."
STRICT = "All sales are final with no exceptions."
ZERO = "The company disclaims all liability for damages."
LIMITED = "We share data with analytics providers for this purpose only."
NON_REFUNDABLE = "The subscription fee is non-refundable."
ARBITRATION = "Disputes are resolved by binding arbitration and you waive any class action."
TERMINATION = "We may terminate your account at our sole discretion."
OWNERSHIP = "You retain ownership of the content you upload."

CLAUSE_RULE_IDS = {
    SELL: "data_selling",
    NO_SELL: "no_sell_guarantee",
    AUTO: "auto_payments",
    STRICT: "strict_no_refunds",
    ZERO: "zero_responsibility",
    LIMITED: "limited_sharing",
    NON_REFUNDABLE: "non_refundable",
    ARBITRATION: "arbitration",
    TERMINATION: "termination_right",
    OWNERSHIP: "user_ownership",
}


def document(*clauses: str) -> str:
    """Join clauses one per line so no pattern window spans two clauses."""
    return "\n".join(clauses)
