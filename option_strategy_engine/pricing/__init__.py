"""Black-Scholes-Merton pricing, Greeks and implied volatility."""
