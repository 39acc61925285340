"""Core (UI-agnostic) dashboard logic.

This package contains:
- survey data context (records -> pandas, cached per dataset)
- filter normalization and panel scopes
- aggregations: summaries, attitudes, price buckets, states
- the market solver, segment simulator and sentiment adjustments
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
