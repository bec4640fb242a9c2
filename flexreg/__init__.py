"""
Flexible Record Registry

Operator-defined entities and fields, timestamped records, and the
filtering, aggregation and period-comparison engine that turns the
record log into reports and KPIs.
"""

__version__ = "1.0.0"
