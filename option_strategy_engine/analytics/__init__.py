"""Expected-value, CAPM, volatility and strategy metric analytics."""
