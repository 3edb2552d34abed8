"""Built-in rule table, override pairs, and filler points."""

from __future__ import annotations

from lexilens.rules.base import CAUTION, CRITICAL, SAFE, ConflictOverride, Rule
from lexilens.rules.patterns import ProximityPattern

TRANSFER_VERBS = ("sell", "sold", "share", "shared", "trade", "rent", "exchange", "monetize")
COUNTERPARTIES = (
    "third",
    "partner",
    "advertiser",
    "affiliate",
    "external",
    "entity",
    "entities",
)

# (id, severity, type, groups, windows, title, explanation)
RULE_DATA = [
    # Red flags
    (
        "data_selling",
        CRITICAL,
        "Data Risk",
        (TRANSFER_VERBS, COUNTERPARTIES),
        (100,),
        "Personal Data Selling",
        "Your data can be sold to advertisers/third-parties for profit.",
    ),
    (
        "auto_payments",
        CRITICAL,
        "Money Risk",
        (
            ("automatic", "recurring"),
            ("charge", "payment", "debit"),
            ("without benefit of notice", "without prior notice", "no notice"),
        ),
        (50, 100),
        "Hidden Automatic Payments",
        "You may be charged automatically without warning.",
    ),
    (
        "strict_no_refunds",
        CRITICAL,
        "Money Risk",
        (
            ("no refund", "non-refundable", "all sales are final"),
            ("under any condition", "whatsoever", "no exceptions"),
        ),
        (100,),
        "Strict No Refund Policy",
        "You will not get your money back under any circumstances.",
    ),
    (
        "zero_responsibility",
        CRITICAL,
        "Legal Risk",
        (
            ("disclaim", "waive", "release"),
            ("all", "any", "total"),
            ("liability", "responsibility", "warranty", "damages"),
        ),
        (100, 50),
        "Zero Company Responsibility",
        "They take no responsibility even if they cause you harm/loss.",
    ),
    # Orange flags
    (
        "limited_sharing",
        CAUTION,
        "Data Risk",
        (
            ("share", "access"),
            ("analytics", "service providers", "processors"),
            ("purpose", "only", "strictly"),
        ),
        (100, 100),
        "Limited Data Sharing",
        "Data is shared for operations (analytics/hosting), which is standard.",
    ),
    (
        "non_refundable",
        CAUTION,
        "Money Risk",
        (("subscription", "fee", "charge"), ("non-refundable",)),
        (50,),
        "Non-Refundable Fees",
        "Standard cancellation policy: Fees already paid are not returned.",
    ),
    (
        "arbitration",
        CAUTION,
        "Legal Risk",
        (("binding", "mandatory"), ("arbitration", "waiver"), ("class action",)),
        (50, 50),
        "Mandatory Arbitration",
        "You waive your right to sue in court (Standard in US Tech).",
    ),
    (
        "termination_right",
        CAUTION,
        "Account Risk",
        (("terminate", "suspend"), ("account", "access"), ("sole discretion",)),
        (100, 100),
        "Termination Rights",
        "They can ban your account if you violate terms.",
    ),
    # Green flags
    (
        "no_sell_guarantee",
        SAFE,
        "Data Safety",
        (
            ("we", "company"),
            ("not", "never", "no"),
            ("sell", "share", "trade", "rent", "distribute"),
            ("data", "info"),
        ),
        (50, 50, 50),
        "No Data Selling Guaranteed",
        "Explicit promise: 'We do not sell your data'.",
    ),
    (
        "user_ownership",
        SAFE,
        "User Rights",
        (("you", "user"), ("retain", "own", "control"), ("ownership", "rights", "content")),
        (50, 50),
        "You Own Your Data",
        "You keep full ownership of content you upload.",
    ),
]

DEFAULT_OVERRIDES = (ConflictOverride(suppressor="no_sell_guarantee", suppressed="data_selling"),)

FILLER_TYPE = "General Info"

# (title, explanation)
FILLERS = (
    ("Standard Guidelines", "General usage rules apply."),
    ("Copyright Terms", "Standard intellectual property clauses."),
    ("Governing Law", "Terms governed by local laws."),
)


def default_rules() -> tuple[Rule, ...]:
    """Return the built-in rule table in declaration order."""
    return tuple(
        Rule(
            rule_id=rule_id,
            severity=severity,
            type=rule_type,
            pattern=ProximityPattern(groups=groups, windows=windows),
            title=title,
            explanation=explanation,
        )
        for rule_id, severity, rule_type, groups, windows, title, explanation in RULE_DATA
    )


DEFAULT_RULES = default_rules()
