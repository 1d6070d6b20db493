"""Bond sensitivities."""

from bondpricer.risk.greeks import BumpingConfig, FxDeltaResult, compute_fx_delta, fx_currencies

__all__ = ["BumpingConfig", "FxDeltaResult", "compute_fx_delta", "fx_currencies"]
