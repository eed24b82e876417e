#!/usr/bin/env python3
"""
SABR Parameters Demo Script

Demonstrates the SABR parameter model workflow:
1. Build alpha/beta/rho/nu surfaces over (expiry, tenor)
2. Evaluate implied vol and its analytic adjoints
3. Use a shift surface for negative rates
4. Tabulate the smile and its sensitivities
"""

import argparse
import logging
import sys
from pathlib import Path

import numpy as np
import pandas as pd

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ratesvol import (
    ConstantSurface,
    InterpolatedNodalSurface,
    SabrHaganVolatilityFunction,
    SabrHaganNormalVolatilityFunction,
    SabrInterestRateParameters,
    FULL_ADJOINT_LABELS,
)


def print_section(title: str):
    """Print section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def build_surfaces():
    """Alpha/beta/rho/nu surfaces on a 3 x 3 (expiry x tenor) grid."""
    expiries = [1.0, 5.0, 10.0]
    tenors = [2.0, 10.0, 30.0]
    alpha = pd.DataFrame(
        [[0.030, 0.028, 0.026], [0.027, 0.025, 0.024], [0.025, 0.024, 0.023]],
        index=expiries, columns=tenors,
    )
    rho = pd.DataFrame(
        [[-0.20, -0.25, -0.30], [-0.15, -0.20, -0.25], [-0.10, -0.15, -0.20]],
        index=expiries, columns=tenors,
    )
    nu = pd.DataFrame(
        [[0.50, 0.45, 0.40], [0.40, 0.35, 0.30], [0.30, 0.28, 0.25]],
        index=expiries, columns=tenors,
    )
    return (
        InterpolatedNodalSurface.from_frame("alpha", alpha),
        ConstantSurface.of("beta", 0.5),
        InterpolatedNodalSurface.from_frame("rho", rho),
        InterpolatedNodalSurface.from_frame("nu", nu),
    )


def demo_volatility(params: SabrInterestRateParameters, expiry: float, tenor: float):
    """Volatility and adjoints at one point."""
    print_section("1. Volatility and Adjoints")

    forward = 0.04
    point = params.parameter_at(expiry, tenor)
    print(f"  Sample ({expiry}Y x {tenor}Y): {point}")

    vol, derivatives = params.volatility_adjoint(expiry, tenor, 0.045, forward)
    print(f"  Black vol (K=4.5%, F=4.0%): {vol:.4%}")
    for label, value in zip(FULL_ADJOINT_LABELS, derivatives):
        print(f"    d vol / d {label:<8s} {value: .6f}")


def demo_negative_rates(params: SabrInterestRateParameters, expiry: float, tenor: float):
    """Shifted SABR for a negative forward."""
    print_section("2. Negative Rates (Shifted SABR)")

    shifted = params.with_shift_surface(ConstantSurface.of("shift", 0.02))
    forward = -0.002
    for strike in (-0.005, 0.0, 0.005):
        vol = shifted.volatility(expiry, tenor, strike, forward)
        print(f"  K={strike: .3%}  F={forward: .3%}  shifted Black vol: {vol:.4%}")


def demo_smile(params: SabrInterestRateParameters, expiry: float, tenor: float):
    """Smile and sensitivities table."""
    print_section("3. Smile and Sensitivities")

    forward = 0.04
    strikes = forward + np.array([-0.015, -0.01, -0.005, 0.0, 0.005, 0.01, 0.015])
    frame = params.adjoint_frame(expiry, tenor, strikes, forward)
    with pd.option_context("display.float_format", "{:.5f}".format):
        print(frame)

    normal = SabrInterestRateParameters.of(
        params.alpha_surface, params.beta_surface, params.rho_surface, params.nu_surface,
        SabrHaganNormalVolatilityFunction(),
    )
    smile_bp = normal.smile(expiry, tenor, strikes, forward) * 1e4
    print("\n  Normal vol (bp):")
    print(smile_bp.round(2).to_string())


def main():
    """Run all SABR demos."""
    parser = argparse.ArgumentParser(description="SABR Parameters Demo")
    parser.add_argument("--expiry", type=float, default=2.0, help="Option expiry in years")
    parser.add_argument("--tenor", type=float, default=5.0, help="Underlying tenor in years")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    print("\n" + "="*60)
    print(" SABR PARAMETERS DEMONSTRATION")
    print("="*60)

    alpha, beta, rho, nu = build_surfaces()
    params = SabrInterestRateParameters.of(alpha, beta, rho, nu, SabrHaganVolatilityFunction())

    demo_volatility(params, args.expiry, args.tenor)
    demo_negative_rates(params, args.expiry, args.tenor)
    demo_smile(params, args.expiry, args.tenor)

    print("\n" + "="*60)
    print(" Demo completed successfully!")
    print("="*60 + "\n")


if __name__ == "__main__":
    main()
