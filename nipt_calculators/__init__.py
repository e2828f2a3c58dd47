"""NIPT calculators - Prenatal screening risk calculator implementations.

Available calculators:
    - NIPTCalculator: Bayesian PPV/NPV calculator for NIPT screening results
"""

from nipt_calculators.nipt_risk_calculator import (
    NIPTCalculator,
    RiskInput,
    RiskOutput,
    compute_risk,
    interpolate,
)

__all__ = ["NIPTCalculator", "RiskInput", "RiskOutput", "compute_risk", "interpolate"]
