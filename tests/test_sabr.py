"""
Tests for SABR volatility formulas and their analytic adjoints.
"""

import logging

import pytest
import numpy as np

from ratesvol.options.vanilla import EuropeanVanillaOption, PutCall
from ratesvol.settings import SabrFormulaSettings
from ratesvol.vol.function import FULL_ADJOINT_LABELS, MODEL_ADJOINT_LABELS
from ratesvol.vol.sabr import (
    SabrFormulaData,
    SabrHaganVolatilityFunction,
    SabrHaganNormalVolatilityFunction,
    hagan_black_vol,
    hagan_normal_vol,
)


def _reference_black_vol(F, K, T, alpha, beta, rho, nu):
    """Textbook Hagan lognormal formula, written out independently."""
    b1 = 1 - beta
    if F == K:
        f1 = F ** b1
        return alpha / f1 * (1 + (b1**2 * alpha**2 / (24 * f1**2)
                                  + rho * beta * nu * alpha / (4 * f1)
                                  + (2 - 3 * rho**2) * nu**2 / 24) * T)
    log_fk = np.log(F / K)
    fk_mid = (F * K) ** (b1 / 2)
    denom = fk_mid * (1 + b1**2 / 24 * log_fk**2 + b1**4 / 1920 * log_fk**4)
    z = nu / alpha * fk_mid * log_fk
    x_z = np.log((np.sqrt(1 - 2 * rho * z + z**2) + z - rho) / (1 - rho))
    time_adj = 1 + (b1**2 * alpha**2 / (24 * fk_mid**2)
                    + rho * beta * nu * alpha / (4 * fk_mid)
                    + (2 - 3 * rho**2) * nu**2 / 24) * T
    return alpha / denom * z / x_z * time_adj


def _finite_difference_adjoint(function, option, forward, data, rel_step=1e-6, skip=()):
    """Central differences in FULL_ADJOINT_LABELS order (NaN where skipped)."""
    result = np.full(len(FULL_ADJOINT_LABELS), np.nan)

    def vol(o, f, d):
        return function.volatility(o, f, d)

    for i, name in enumerate(MODEL_ADJOINT_LABELS):
        if name in skip:
            continue
        x = getattr(data, name)
        h = rel_step * max(abs(x), 1e-2)
        up = vol(option, forward, data.with_parameter(i, x + h))
        down = vol(option, forward, data.with_parameter(i, x - h))
        result[i] = (up - down) / (2 * h)

    h = rel_step * forward
    result[4] = (vol(option, forward + h, data) - vol(option, forward - h, data)) / (2 * h)

    k = option.strike
    h = rel_step * max(abs(k), 1e-2)
    up = EuropeanVanillaOption.of(k + h, option.time_to_expiry, option.put_call)
    down = EuropeanVanillaOption.of(k - h, option.time_to_expiry, option.put_call)
    result[5] = (vol(up, forward, data) - vol(down, forward, data)) / (2 * h)

    t = option.time_to_expiry
    h = rel_step * max(t, 1e-2)
    up = EuropeanVanillaOption.of(k, t + h, option.put_call)
    down = EuropeanVanillaOption.of(k, t - h, option.put_call)
    result[6] = (vol(up, forward, data) - vol(down, forward, data)) / (2 * h)
    return result


def _assert_adjoint_matches(analytic, numeric, rtol=1e-5, atol=1e-8):
    mask = ~np.isnan(numeric)
    np.testing.assert_allclose(analytic[mask], numeric[mask], rtol=rtol, atol=atol)


class TestSabrFormulaData:
    """Tests for the SABR parameter point."""

    def test_value_equality(self):
        """Two points with the same values are equal and hash equal."""
        a = SabrFormulaData.of(0.03, 0.5, -0.2, 0.4)
        b = SabrFormulaData(0.03, 0.5, -0.2, 0.4)
        assert a == b
        assert hash(a) == hash(b)
        assert a != a.with_parameter(2, 0.1)

    def test_to_array_order(self):
        """Array order is alpha, beta, rho, nu."""
        data = SabrFormulaData.of(0.03, 0.5, -0.2, 0.4)
        np.testing.assert_array_equal(data.to_array(), [0.03, 0.5, -0.2, 0.4])
        assert data.number_of_parameters == 4

    def test_with_parameter(self):
        """with_parameter returns a modified copy."""
        data = SabrFormulaData.of(0.03, 0.5, -0.2, 0.4)
        bumped = data.with_parameter(3, 0.5)
        assert bumped.nu == 0.5
        assert data.nu == 0.4
        with pytest.raises(ValueError):
            data.with_parameter(4, 1.0)

    @pytest.mark.parametrize("alpha,beta,rho,nu", [
        (0.0, 0.5, 0.0, 0.3),
        (0.03, 1.5, 0.0, 0.3),
        (0.03, 0.5, 1.0, 0.3),
        (0.03, 0.5, -1.0, 0.3),
        (0.03, 0.5, 0.0, -0.1),
        (np.nan, 0.5, 0.0, 0.3),
    ])
    def test_check_domain(self, alpha, beta, rho, nu):
        """Parameters outside the SABR domain are rejected."""
        with pytest.raises(ValueError):
            SabrFormulaData.of(alpha, beta, rho, nu).check_domain()


class TestHaganBlackVolatility:
    """Tests for the Hagan lognormal formula."""

    @pytest.fixture
    def function(self):
        return SabrHaganVolatilityFunction()

    @pytest.fixture
    def data(self):
        return SabrFormulaData.of(0.03, 0.5, -0.25, 0.4)

    @pytest.mark.parametrize("K", [0.02, 0.035, 0.05, 0.08])
    def test_matches_reference_formula(self, function, data, K):
        """Value matches the textbook expression away from the money."""
        F, T = 0.04, 1.5
        option = EuropeanVanillaOption.of(K, T)
        expected = _reference_black_vol(F, K, T, data.alpha, data.beta, data.rho, data.nu)
        np.testing.assert_allclose(function.volatility(option, F, data), expected, rtol=1e-12)

    def test_atm_matches_reference(self, function, data):
        """At the money the value reduces to the ATM formula."""
        F, T = 0.04, 1.5
        option = EuropeanVanillaOption.of(F, T)
        expected = _reference_black_vol(F, F, T, data.alpha, data.beta, data.rho, data.nu)
        np.testing.assert_allclose(function.volatility(option, F, data), expected, rtol=1e-12)

    def test_continuous_across_atm(self, function, data):
        """Values just either side of ATM agree with the ATM value."""
        F, T = 0.04, 1.5
        atm = function.volatility(EuropeanVanillaOption.of(F, T), F, data)
        for K in (F * (1 - 1e-7), F * (1 + 1e-7)):
            vol = function.volatility(EuropeanVanillaOption.of(K, T), F, data)
            np.testing.assert_allclose(vol, atm, rtol=1e-6)

    def test_put_call_symmetry(self, function, data):
        """Put and call have the same implied volatility."""
        call = EuropeanVanillaOption.of(0.05, 1.5, PutCall.CALL)
        put = EuropeanVanillaOption.of(0.05, 1.5, PutCall.PUT)
        assert function.volatility(call, 0.04, data) == function.volatility(put, 0.04, data)

    def test_negative_rho_skew(self, function, data):
        """Negative rho gives higher vol for low strikes."""
        F, T = 0.04, 1.0
        low = function.volatility(EuropeanVanillaOption.of(0.03, T), F, data)
        atm = function.volatility(EuropeanVanillaOption.of(F, T), F, data)
        assert low > atm

    def test_zero_nu_is_cev(self, function):
        """With nu = 0 and beta = 1 the smile is flat at alpha."""
        data = SabrFormulaData.of(0.2, 1.0, 0.3, 0.0)
        for K in (0.8, 1.0, 1.3):
            vol = function.volatility(EuropeanVanillaOption.of(K, 2.0), 1.0, data)
            np.testing.assert_allclose(vol, 0.2, rtol=1e-14)

    def test_convenience_function(self, data):
        """hagan_black_vol applies the shift to forward and strike."""
        vol = hagan_black_vol(-0.005, 0.0, 1.0, data.alpha, data.beta, data.rho, data.nu, shift=0.02)
        expected = _reference_black_vol(0.015, 0.02, 1.0, data.alpha, data.beta, data.rho, data.nu)
        np.testing.assert_allclose(vol, expected, rtol=1e-12)


class TestHaganBlackAdjoint:
    """Analytic derivatives against finite differences."""

    @pytest.fixture
    def function(self):
        return SabrHaganVolatilityFunction()

    @pytest.mark.parametrize("K", [0.02, 0.035, 0.05, 0.08])
    @pytest.mark.parametrize("alpha,beta,rho,nu", [
        (0.03, 0.5, -0.25, 0.4),
        (0.01, 0.3, 0.4, 0.6),
        (0.25, 0.9, -0.7, 0.2),
    ])
    def test_full_adjoint(self, function, K, alpha, beta, rho, nu):
        """Full adjoint matches central differences."""
        F = 0.04
        option = EuropeanVanillaOption.of(K, 1.5)
        data = SabrFormulaData.of(alpha, beta, rho, nu)
        analytic = function.full_adjoint(option, F, data)
        numeric = _finite_difference_adjoint(function, option, F, data)
        assert analytic.shape == (7,)
        _assert_adjoint_matches(analytic, numeric)

    def test_full_adjoint_atm(self, function):
        """Adjoint is exact at the money, where the series branch is used."""
        F = 0.04
        option = EuropeanVanillaOption.of(F, 1.5)
        data = SabrFormulaData.of(0.03, 0.5, -0.25, 0.4)
        analytic = function.full_adjoint(option, F, data)
        numeric = _finite_difference_adjoint(function, option, F, data, rel_step=1e-5)
        _assert_adjoint_matches(analytic, numeric, rtol=1e-4, atol=1e-7)

    def test_beta_one_scenario(self, function):
        """Adjoint for a lognormal (beta = 1) point; beta itself is at its bound."""
        option = EuropeanVanillaOption.of(1.1, 2.0)
        data = SabrFormulaData.of(0.2, 1.0, -0.5, 0.5)
        analytic = function.full_adjoint(option, 1.05, data)
        numeric = _finite_difference_adjoint(function, option, 1.05, data, skip=("beta",))
        _assert_adjoint_matches(analytic, numeric)

    def test_model_adjoint_is_head_of_full(self, function):
        """Model adjoint equals the first four entries of the full adjoint."""
        option = EuropeanVanillaOption.of(0.05, 1.5)
        data = SabrFormulaData.of(0.03, 0.5, -0.25, 0.4)
        model = function.model_adjoint(option, 0.04, data)
        full = function.full_adjoint(option, 0.04, data)
        assert model.shape == (4,)
        np.testing.assert_array_equal(model, full[:4])

    def test_volatility_adjoint_value(self, function):
        """volatility_adjoint returns the same value as volatility."""
        option = EuropeanVanillaOption.of(0.05, 1.5)
        data = SabrFormulaData.of(0.03, 0.5, -0.25, 0.4)
        value, derivatives = function.volatility_adjoint(option, 0.04, data)
        assert value == function.volatility(option, 0.04, data)
        assert len(derivatives) == 7

    def test_adjoint_is_not_aliased(self, function):
        """Mutating a returned adjoint does not affect later calls."""
        option = EuropeanVanillaOption.of(0.05, 1.5)
        data = SabrFormulaData.of(0.03, 0.5, -0.25, 0.4)
        first = function.model_adjoint(option, 0.04, data)
        first[:] = 0.0
        assert np.all(function.model_adjoint(option, 0.04, data) != 0.0)


class TestHaganDomain:
    """Input validation and strike cutoff."""

    @pytest.fixture
    def function(self):
        return SabrHaganVolatilityFunction()

    @pytest.fixture
    def data(self):
        return SabrFormulaData.of(0.03, 0.5, -0.25, 0.4)

    def test_none_inputs(self, function, data):
        """Missing option or data is an error."""
        option = EuropeanVanillaOption.of(0.04, 1.0)
        with pytest.raises(ValueError):
            function.volatility(None, 0.04, data)
        with pytest.raises(ValueError):
            function.volatility(option, 0.04, None)

    @pytest.mark.parametrize("forward", [0.0, -0.01, np.nan, np.inf])
    def test_invalid_forward(self, function, data, forward):
        """Non-positive or non-finite forwards are rejected."""
        option = EuropeanVanillaOption.of(0.04, 1.0)
        with pytest.raises(ValueError):
            function.volatility(option, forward, data)

    def test_negative_strike(self, function, data):
        """Negative strikes must be shifted by the caller."""
        option = EuropeanVanillaOption.of(-0.01, 1.0)
        with pytest.raises(ValueError):
            function.full_adjoint(option, 0.04, data)

    def test_invalid_parameters(self, function):
        """Formula rejects parameters outside the SABR domain."""
        option = EuropeanVanillaOption.of(0.04, 1.0)
        with pytest.raises(ValueError):
            function.volatility(option, 0.04, SabrFormulaData.of(0.03, 0.5, 1.0, 0.4))

    def test_zero_strike_uses_cutoff(self, function, data, caplog):
        """Zero strike is evaluated at the cutoff with a zero strike derivative."""
        F = 0.04
        cutoff = function.settings.strike_cutoff(F)
        with caplog.at_level(logging.WARNING, logger="ratesvol.vol.sabr"):
            value, derivatives = function.volatility_adjoint(EuropeanVanillaOption.of(0.0, 1.0), F, data)
        expected = function.volatility(EuropeanVanillaOption.of(cutoff, 1.0), F, data)
        assert value == expected
        assert derivatives[5] == 0.0
        assert "below cutoff" in caplog.text

    def test_settings_in_equality(self):
        """Functions with different settings are different functions."""
        assert SabrHaganVolatilityFunction() == SabrHaganVolatilityFunction()
        other = SabrHaganVolatilityFunction(SabrFormulaSettings(small_z=1e-5))
        assert other != SabrHaganVolatilityFunction()
        assert SabrHaganVolatilityFunction() != SabrHaganNormalVolatilityFunction()


class TestHaganNormal:
    """Tests for the normal volatility variant."""

    @pytest.fixture
    def function(self):
        return SabrHaganNormalVolatilityFunction()

    @pytest.fixture
    def data(self):
        return SabrFormulaData.of(0.03, 0.5, -0.25, 0.4)

    def test_atm_is_black_times_forward(self, function, data):
        """At the money sigma_N = sigma_B * F."""
        F = 0.04
        option = EuropeanVanillaOption.of(F, 1.0)
        black = SabrHaganVolatilityFunction().volatility(option, F, data)
        np.testing.assert_allclose(function.volatility(option, F, data), black * F, rtol=1e-14)

    def test_normal_vol_magnitude(self, data):
        """Normal vol in rate units is much smaller than Black vol."""
        vol = hagan_normal_vol(0.04, 0.04, 1.0, data.alpha, data.beta, data.rho, data.nu)
        assert 0 < vol < 0.1

    @pytest.mark.parametrize("K", [0.0002, 0.02, 0.04, 0.06])
    def test_full_adjoint(self, function, data, K):
        """Normal adjoint matches central differences."""
        F = 0.04
        option = EuropeanVanillaOption.of(K, 2.0)
        analytic = function.full_adjoint(option, F, data)
        numeric = _finite_difference_adjoint(function, option, F, data, rel_step=1e-5)
        _assert_adjoint_matches(analytic, numeric, rtol=1e-4, atol=1e-9)

    @pytest.mark.parametrize("K", [0.0002, 8.0, 20.0])
    def test_positive_far_from_money(self, function, data, K):
        """Normal vol stays positive when |ln(F/K)| exceeds sqrt(24)."""
        F = 0.04
        assert abs(np.log(F / K)) > np.sqrt(24)
        vol = function.volatility(EuropeanVanillaOption.of(K, 1.0), F, data)
        assert np.isfinite(vol)
        assert vol > 0

    def test_positive_at_floored_strike(self, function, data):
        """Zero strike is floored to the cutoff and still gives a positive vol."""
        value, derivatives = function.volatility_adjoint(EuropeanVanillaOption.of(0.0, 1.0), 0.04, data)
        assert np.isfinite(value)
        assert value > 0
        assert derivatives[5] == 0.0
