"""
Sales Performance Engine.

Per-rep performance analytics for a sales floor (lead-mix adjusted expected
units, catch-up targets, activity recommendations, performance index) and
month-end forecasting with a binomial quota-hit probability.
"""

__version__ = "1.0.0"
