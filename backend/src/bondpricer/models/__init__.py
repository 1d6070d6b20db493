"""Pricing models and the default model registry."""

from typing import Dict

from bondpricer.models.base import ModelBuilder, PricingModel
from bondpricer.models.montecarlo import (
    EngineFactory,
    MonteCarlo1fModel,
    black_scholes_engine,
    build_montecarlo1f,
)
from bondpricer.models.forward import ForwardModel, build_forward
from bondpricer.models.closed_form import ClosedForm1fModel, build_closed_form

DEFAULT_MODEL_NAME = MonteCarlo1fModel.name


def default_models() -> Dict[str, ModelBuilder]:
    """Fresh registry of the built-in model builders."""
    return {
        MonteCarlo1fModel.name: build_montecarlo1f,
        ForwardModel.name: build_forward,
        ClosedForm1fModel.name: build_closed_form,
    }


__all__ = [
    "ModelBuilder",
    "PricingModel",
    "EngineFactory",
    "MonteCarlo1fModel",
    "black_scholes_engine",
    "build_montecarlo1f",
    "ForwardModel",
    "build_forward",
    "ClosedForm1fModel",
    "build_closed_form",
    "DEFAULT_MODEL_NAME",
    "default_models",
]
