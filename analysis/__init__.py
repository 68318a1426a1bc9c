"""
Market Analytics Module

Derives statistics from per-asset price samples:
- Descriptive statistics (mean, stddev, median, range)
- Volatility (stddev of log returns)
- Trend classification (OLS slope)
- Cross-asset mover ranking
- Short-horizon forecasts with prediction intervals
"""

__version__ = "0.1.0"
