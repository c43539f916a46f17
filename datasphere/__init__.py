"""datasphere: tabular data-aggregation engine.

Normalizes CSV / Excel input into a uniform row model, infers column types with
descriptive statistics, and builds pivot / custom summary cross-tabs.
"""

__version__ = "0.1.0"
