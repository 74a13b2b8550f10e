"""
PropForecast - Property Portfolio Scenario Projections

Month-by-month what-if modeling for property investment portfolios:
- Interest-rate shocks, vacancies, rent and expense changes
- Property sales (with capital gains tax) and purchases
- Cash-flow and equity trajectories with summary metrics
"""

__version__ = "1.0.0"
__author__ = "PropForecast Contributors"
