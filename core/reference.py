"""Static reference tables used by the aggregation engine.

Everything here is immutable and passed into the compute functions explicitly
(resolvers, policies, lookups are built from these tables at the call site).
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple


US_STATE_ABBR_TO_NAME: Mapping[str, str] = MappingProxyType(
    {
        "AL": "Alabama",
        "AK": "Alaska",
        "AZ": "Arizona",
        "AR": "Arkansas",
        "CA": "California",
        "CO": "Colorado",
        "CT": "Connecticut",
        "DE": "Delaware",
        "FL": "Florida",
        "GA": "Georgia",
        "HI": "Hawaii",
        "ID": "Idaho",
        "IL": "Illinois",
        "IN": "Indiana",
        "IA": "Iowa",
        "KS": "Kansas",
        "KY": "Kentucky",
        "LA": "Louisiana",
        "ME": "Maine",
        "MD": "Maryland",
        "MA": "Massachusetts",
        "MI": "Michigan",
        "MN": "Minnesota",
        "MS": "Mississippi",
        "MO": "Missouri",
        "MT": "Montana",
        "NE": "Nebraska",
        "NV": "Nevada",
        "NH": "New Hampshire",
        "NJ": "New Jersey",
        "NM": "New Mexico",
        "NY": "New York",
        "NC": "North Carolina",
        "ND": "North Dakota",
        "OH": "Ohio",
        "OK": "Oklahoma",
        "OR": "Oregon",
        "PA": "Pennsylvania",
        "RI": "Rhode Island",
        "SC": "South Carolina",
        "SD": "South Dakota",
        "TN": "Tennessee",
        "TX": "Texas",
        "UT": "Utah",
        "VT": "Vermont",
        "VA": "Virginia",
        "WA": "Washington",
        "WV": "West Virginia",
        "WI": "Wisconsin",
        "WY": "Wyoming",
        "DC": "District of Columbia",
    }
)

# Ordered candidate columns for a row's state; the first resolvable one wins.
STATE_KEYS: Tuple[str, ...] = (
    "ADMARK_STATE",
    "admark_state",
    "STATE",
    "State",
    "state",
    "DM_STATE",
    "DM_STATE_CODE",
    "STATE_ABBR",
    "state_abbr",
    "ST",
    "st",
)
STATE_CODE_FIELD = "ADMARK_STATE"

MODEL_KEYS: Tuple[str, ...] = ("model", "BLD_DESC_RV_MODEL", "Model", "model_name", "MODEL")

ATTITUDE_LABEL_SUFFIXES: Tuple[str, ...] = ("_LABEL", "_TXT", "_TEXT", "_DESC", "_LAB")

AGREE_TOP3 = frozenset({"strongly agree", "agree", "somewhat agree"})
AGREE_TOP2 = frozenset({"strongly agree", "somewhat agree"})
LOYAL_FIELD = "OL_MODEL_GRP"

PRICE_FIELD = "FIN_PRICE_UNEDITED"

FIELD_GROUPS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "Demographics": (
            "BLD_AGE_GRP",
            "DEMO_EDUCATION",
            "GENERATION_GRP",
            "DEMO_GENDER1",
            "BLD_HOBBY1_GRP",
            "DEMO_INCOME",
            "BLD_LIFESTAGE",
            "DEMO_LOCATION",
            "DEMO_MARITAL",
            "DEMO_EMPLOY",
            "BLD_CHILDREN",
            "DEMO_EMPTY_NESTER",
        ),
        "Financing": (
            "FIN_PU_APR",
            "FIN_PU_DOWN_PAY",
            "FIN_PU_TRADE_IN",
            "BLD_FIN_TOTAL_MONPAY",
            "FIN_PRICE_UNEDITED",
            "FIN_LE_LENGTH",
            "FIN_PU_LENGTH",
            "C1_PL",
            "FIN_CREDIT",
        ),
        "Buying Behavior": ("PR_MOST", "C2S_MODEL_RESPONSE", "SRC_TOP1"),
        "Loyalty": (
            "OL_MODEL_GRP",
            "STATE_BUY_BEST",
            "STATE_CONTINUE",
            "STATE_FEEL_GOOD",
            "STATE_REFER",
            "STATE_PRESTIGE",
            "STATE_EURO",
            "STATE_AMER",
            "STATE_ASIAN",
            "STATE_SWITCH_FEAT",
            "STATE_VALUES",
        ),
        "Willingness to Pay": (
            "PV_TAX_INS",
            "PV_SPEND_LUXURY",
            "PV_PRESTIGE",
            "PV_QUALITY",
            "PV_RESALE",
            "PV_INEXP_MAINTAIN",
            "PV_AVOID",
            "PV_SURVIVE",
            "PV_PAY_MORE",
            "PV_BREAKDOWN",
            "PV_VALUE",
            "PV_SPEND",
            "PV_LEASE",
            "PV_PUTOFF",
            "STATE_BALANCE",
            "STATE_WAIT",
            "STATE_ENJOY_PRESTIGE",
            "STATE_FIRST_YR",
            "STATE_NO_LOW_PRICE",
            "STATE_AUDIO",
            "STATE_MON_PAY",
            "STATE_SHOP_MANY",
        ),
    }
)
NUMERIC_GROUP = "Financing"
CATEGORICAL_FINANCING_FIELDS = frozenset({"C1_PL", "FIN_CREDIT"})

# Code books for the demo survey fields: (NAME, START, LABEL).
AGREE_SCALE: Tuple[Tuple[int, str], ...] = (
    (1, "Strongly agree"),
    (2, "Somewhat agree"),
    (3, "Agree"),
    (4, "Neither agree nor disagree"),
    (5, "Somewhat disagree"),
    (6, "Strongly disagree"),
)

_DEMO_CODES: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "BLD_AGE_GRP": ("18-24", "25-34", "35-44", "45-54", "55-64", "65+"),
        "DEMO_EDUCATION": ("HS or less", "Some college", "Bachelor's", "Graduate+"),
        "GENERATION_GRP": ("Gen Z", "Millennial", "Gen X", "Boomer"),
        "DEMO_GENDER1": ("Female", "Male", "Non-binary", "Prefer not to say"),
        "BLD_HOBBY1_GRP": ("Outdoors", "Sports", "Travel", "Home & Garden", "Tech"),
        "DEMO_INCOME": ("<$50k", "$50-100k", "$100-150k", "$150k+"),
        "BLD_LIFESTAGE": (
            "Young Single",
            "Young Family",
            "Maturing Family",
            "Established",
            "Empty Nester",
            "Retired",
        ),
        "DEMO_LOCATION": ("Urban", "Suburban", "Rural"),
        "DEMO_MARITAL": ("Single", "Married/Partnered", "Divorced/Separated", "Widowed"),
        "DEMO_EMPLOY": ("Full-time", "Part-time", "Self-employed", "Retired", "Not employed"),
        "BLD_CHILDREN": ("No children", "1 child", "2 children", "3+ children"),
        "DEMO_EMPTY_NESTER": ("Yes", "No"),
        "C1_PL": ("Cash", "Finance", "Lease"),
        "FIN_CREDIT": ("Excellent", "Good", "Fair", "Poor"),
        "PR_MOST": ("Price", "Reliability", "Styling", "Capability", "Technology"),
        "C2S_MODEL_RESPONSE": ("Only model considered", "Considered 2-3", "Considered 4+"),
        "SRC_TOP1": ("Dealer", "Manufacturer site", "Review site", "Friends/Family", "Social media"),
        "OL_MODEL_GRP": ("Loyal", "Conquest", "New to market"),
    }
)

_STATE_CODE_ORDER: Tuple[str, ...] = tuple(US_STATE_ABBR_TO_NAME.keys())


def _build_demos_mapping() -> Tuple[Tuple[str, object, str], ...]:
    out = []
    for name, labels in _DEMO_CODES.items():
        for i, label in enumerate(labels, start=1):
            out.append((name, i, label))
    for name in FIELD_GROUPS["Loyalty"] + FIELD_GROUPS["Willingness to Pay"]:
        if name in _DEMO_CODES:
            continue
        for code, label in AGREE_SCALE:
            out.append((name, code, label))
    # ADMARK_STATE codes map to abbreviations; odd codes carry the full name.
    for i, abbr in enumerate(_STATE_CODE_ORDER, start=1):
        label = US_STATE_ABBR_TO_NAME[abbr] if i % 2 else abbr
        out.append((STATE_CODE_FIELD, i, label))
    return tuple(out)


DEMOS_MAPPING: Tuple[Tuple[str, object, str], ...] = _build_demos_mapping()
DEMO_CODES = _DEMO_CODES

VAR_TEXT: Tuple[Tuple[str, str], ...] = (
    ("BLD_AGE_GRP", "Age group"),
    ("DEMO_EDUCATION", "Education"),
    ("GENERATION_GRP", "Generation"),
    ("DEMO_GENDER1", "Gender"),
    ("BLD_HOBBY1_GRP", "Primary hobby"),
    ("DEMO_INCOME", "Household income"),
    ("BLD_LIFESTAGE", "Life stage"),
    ("DEMO_LOCATION", "Location type"),
    ("DEMO_MARITAL", "Marital status"),
    ("DEMO_EMPLOY", "Employment"),
    ("BLD_CHILDREN", "Children in household"),
    ("DEMO_EMPTY_NESTER", "Empty nester"),
    ("FIN_PU_APR", "Purchase APR"),
    ("FIN_PU_DOWN_PAY", "Down payment"),
    ("FIN_PU_TRADE_IN", "Trade-in value"),
    ("BLD_FIN_TOTAL_MONPAY", "Monthly payment"),
    ("FIN_PRICE_UNEDITED", "Transaction price"),
    ("FIN_LE_LENGTH", "Lease length"),
    ("FIN_PU_LENGTH", "Loan length"),
    ("C1_PL", "Purchase or lease"),
    ("FIN_CREDIT", "Credit rating"),
    ("PR_MOST", "Most important purchase reason"),
    ("C2S_MODEL_RESPONSE", "Models considered"),
    ("SRC_TOP1", "Top information source"),
    ("OL_MODEL_GRP", "Brand loyalty"),
    ("STATE_BUY_BEST", "I buy the best I can afford"),
    ("STATE_CONTINUE", "I will keep buying this brand"),
    ("STATE_FEEL_GOOD", "My vehicle makes me feel good"),
    ("STATE_REFER", "I would refer this brand"),
    ("STATE_PRESTIGE", "Prestige matters to me"),
    ("STATE_EURO", "I prefer European brands"),
    ("STATE_AMER", "I prefer American brands"),
    ("STATE_ASIAN", "I prefer Asian brands"),
    ("STATE_SWITCH_FEAT", "I would switch brands for features"),
    ("STATE_VALUES", "The brand shares my values"),
    ("PV_TAX_INS", "Taxes and insurance matter"),
    ("PV_SPEND_LUXURY", "Willing to spend on luxury"),
    ("PV_PRESTIGE", "Pay for prestige"),
    ("PV_QUALITY", "Pay for quality"),
    ("PV_RESALE", "Resale value matters"),
    ("PV_INEXP_MAINTAIN", "Inexpensive to maintain"),
    ("PV_AVOID", "Avoid unnecessary features"),
    ("PV_SURVIVE", "Safety in a crash"),
    ("PV_PAY_MORE", "Pay more for what I want"),
    ("PV_BREAKDOWN", "Worry about breakdowns"),
    ("PV_VALUE", "Value for money"),
    ("PV_SPEND", "Spend as little as possible"),
    ("PV_LEASE", "Leasing is smart"),
    ("PV_PUTOFF", "Put off purchase for a deal"),
    ("STATE_BALANCE", "Balance price and features"),
    ("STATE_WAIT", "Wait for the right deal"),
    ("STATE_ENJOY_PRESTIGE", "Enjoy owning a prestige vehicle"),
    ("STATE_FIRST_YR", "Buy first model year"),
    ("STATE_NO_LOW_PRICE", "Lowest price is not key"),
    ("STATE_AUDIO", "Premium audio matters"),
    ("STATE_MON_PAY", "Focus on monthly payment"),
    ("STATE_SHOP_MANY", "Shop many dealers"),
)

DATASET_MODELS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "SUV": ("Ford Bronco", "Jeep Wrangler", "Toyota 4Runner", "Chevrolet Tahoe", "Honda Pilot"),
        "PU": ("Ford F-150", "Ram 1500", "Chevrolet Silverado", "Toyota Tacoma", "GMC Sierra"),
    }
)
