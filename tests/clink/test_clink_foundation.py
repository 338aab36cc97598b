"""
Foundation module tests: field.py, polynomial.py, domain.py
"""
import pytest
from zkthumb.clink.field import (
    FR, CURVE_ORDER, FR_BYTE_WIDTH, G1, G2,
    ec_mul, ec_add, ec_neg, ec_lincomb, ec_pairing,
    get_root_of_unity,
)
from zkthumb.clink.polynomial import Polynomial, fft, ifft
from zkthumb.clink.domain import COSET_SHIFT, Domain, next_power_of_2


def powers(omega, n):
    """[1, ω, ω², ..., ω^(n-1)]"""
    return [omega ** i for i in range(n)]


# =====================================================================
# FR arithmetic
# =====================================================================

class TestFR:
    def test_modular_reduction(self):
        assert FR(CURVE_ORDER + 5) == FR(5)

    def test_subtraction_wrap(self):
        assert FR(0) - FR(1) == FR(CURVE_ORDER - 1)

    def test_division_inverse(self):
        a = FR(1234567)
        assert a * (FR(1) / a) == FR(1)

    def test_byte_width(self):
        """254비트 필드 → 32바이트."""
        assert FR_BYTE_WIDTH == 32

    def test_copy_from_fr(self):
        assert FR(FR(9)) == FR(9)


# =====================================================================
# Elliptic curve helpers
# =====================================================================

class TestEC:
    def test_ec_mul_zero(self):
        assert ec_mul(G1, 0) is None

    def test_ec_mul_infinity(self):
        assert ec_mul(None, 5) is None

    def test_ec_mul_modular(self):
        assert ec_mul(G1, CURVE_ORDER + 3) == ec_mul(G1, 3)

    def test_ec_add_identity(self):
        assert ec_add(G1, None) == G1
        assert ec_add(None, G1) == G1

    def test_ec_neg(self):
        assert ec_add(G1, ec_neg(G1)) is None
        assert ec_neg(None) is None

    def test_ec_lincomb(self):
        """Σ sᵢ·Pᵢ == (Σ sᵢ·kᵢ)·G1"""
        points = [ec_mul(G1, 2), ec_mul(G1, 5), None]
        scalars = [FR(3), FR(7), FR(11)]
        assert ec_lincomb(points, scalars) == ec_mul(G1, 2 * 3 + 5 * 7)

    def test_ec_lincomb_empty(self):
        assert ec_lincomb([], []) is None

    def test_ec_pairing_bilinearity(self):
        """e(3·G1, G2) == e(G1, 3·G2)"""
        assert ec_pairing(G2, ec_mul(G1, 3)) == ec_pairing(ec_mul(G2, 3), G1)


# =====================================================================
# Roots of unity
# =====================================================================

class TestRootsOfUnity:
    def test_root_of_unity_1(self):
        assert get_root_of_unity(1) == FR(1)

    @pytest.mark.parametrize("n", [2, 4, 8, 16])
    def test_primitive_root(self, n):
        omega = get_root_of_unity(n)
        assert omega ** n == FR(1)
        assert omega ** (n // 2) != FR(1)

    def test_non_power_of_2(self):
        with pytest.raises(ValueError):
            get_root_of_unity(6)

    def test_zero(self):
        with pytest.raises(ValueError):
            get_root_of_unity(0)

    def test_too_large(self):
        with pytest.raises(ValueError):
            get_root_of_unity(1 << 29)

    def test_roots_distinct(self):
        roots = powers(get_root_of_unity(8), 8)
        assert len({int(r) for r in roots}) == 8
        assert roots[0] == FR(1)


# =====================================================================
# Polynomial
# =====================================================================

class TestPolynomial:
    def test_trim(self):
        p = Polynomial([FR(1), FR(2), FR(0), FR(0)])
        assert p.coeffs == [FR(1), FR(2)]
        assert p.degree == 1

    def test_zero(self):
        assert Polynomial.zero().is_zero()
        assert Polynomial([]).is_zero()
        assert Polynomial().degree == 0

    def test_evaluate(self):
        # 3 + 2x + x² at x=4 → 27
        p = Polynomial([3, 2, 1])
        assert p.evaluate(4) == FR(27)

    def test_mul(self):
        p = Polynomial([1, 2])
        q = Polynomial([3, 4])
        assert p * q == Polynomial([3, 10, 8])

    def test_scalar_mul_and_rmul(self):
        p = Polynomial([1, 2])
        assert p * 3 == Polynomial([3, 6])
        assert 3 * p == Polynomial([3, 6])

    def test_sub_self_is_zero(self):
        p = Polynomial([5, 6, 7])
        assert (p - p).is_zero()

    def test_neg(self):
        p = Polynomial([1, 2])
        assert (p + (-p)).is_zero()

    def test_vanishing_roots(self):
        zh = Polynomial.vanishing(4)
        for root in powers(get_root_of_unity(4), 4):
            assert zh.evaluate(root) == FR(0)

    def test_divide_by_linear(self):
        """p(x) = (x - z)·q(x) + p(z)"""
        p = Polynomial([5, 0, 3, 2])
        z = FR(4)
        q, r = p.divide_by_linear(z)
        assert r == p.evaluate(z)
        assert q * Polynomial([FR(0) - z, 1]) + r == p

    def test_divide_constant_by_linear(self):
        q, r = Polynomial([9]).divide_by_linear(3)
        assert q.is_zero()
        assert r == FR(9)

    def test_repr(self):
        assert repr(Polynomial([1, 2])) == "Polynomial([1, 2])"

    def test_from_evaluations(self):
        omega = get_root_of_unity(4)
        values = [FR(7), FR(1), FR(0), FR(9)]
        p = Polynomial.from_evaluations(values, omega)
        for value, root in zip(values, powers(get_root_of_unity(4), 4)):
            assert p.evaluate(root) == value


class TestFFT:
    def test_fft_matches_evaluation(self):
        omega = get_root_of_unity(8)
        coeffs = [FR(i * i + 1) for i in range(8)]
        evals = fft(coeffs, omega)
        p = Polynomial(coeffs)
        for value, root in zip(evals, powers(get_root_of_unity(8), 8)):
            assert value == p.evaluate(root)

    def test_ifft_inverts_fft(self):
        omega = get_root_of_unity(4)
        coeffs = [FR(3), FR(1), FR(4), FR(1)]
        assert ifft(fft(coeffs, omega), omega) == coeffs

    def test_length_not_power_of_2(self):
        with pytest.raises(ValueError):
            fft([FR(1), FR(2), FR(3)], get_root_of_unity(4))


# =====================================================================
# Domain
# =====================================================================

class TestDomain:
    def test_for_instances(self):
        assert Domain.for_instances(5).size == 8
        assert Domain.for_instances(1).size == 1

    def test_omega_order(self):
        omega = Domain(8).omega
        assert omega ** 8 == FR(1)
        assert omega ** 4 != FR(1)

    def test_vanishing_at(self):
        assert Domain(4).vanishing_at(FR(2)) == FR(15)
        for root in powers(Domain(4).omega, 4):
            assert Domain(4).vanishing_at(root) == FR(0)

    def test_pad(self):
        assert Domain(4).pad([1, 2, 3]) == [FR(1), FR(2), FR(3), FR(0)]

    def test_pad_overflow(self):
        with pytest.raises(ValueError):
            Domain(2).pad([1, 2, 3])

    def test_interpolate(self):
        domain = Domain(4)
        poly = domain.interpolate([FR(6), FR(2)])
        values = [poly.evaluate(x) for x in powers(domain.omega, domain.size)]
        assert values == [FR(6), FR(2), FR(0), FR(0)]

    def test_evaluate_interpolant_matches_interpolation(self):
        """0-패딩 보간 다항식을 복원해 평가한 값과 같다."""
        domain = Domain(8)
        values = [FR(3), FR(0), FR(11), FR(5), FR(2)]
        zeta = FR(123456789)
        assert domain.evaluate_interpolant(values, zeta) == domain.interpolate(values).evaluate(zeta)

    def test_evaluate_interpolant_on_domain(self):
        domain = Domain(4)
        values = [FR(3), FR(8)]
        assert domain.evaluate_interpolant(values, domain.omega) == FR(8)
        assert domain.evaluate_interpolant(values, domain.omega ** 3) == FR(0)

    def test_coset_roundtrip(self):
        domain = Domain(8)
        poly = Polynomial([i + 2 for i in range(8)])
        assert domain.coset_interpolate(domain.coset_evaluate(poly)) == poly

    def test_coset_evaluate_values(self):
        domain = Domain(4)
        poly = Polynomial([1, 2, 3, 4])
        evals = domain.coset_evaluate(poly)
        for value, root in zip(evals, powers(domain.omega, domain.size)):
            assert value == poly.evaluate(COSET_SHIFT * root)

    def test_vanishing_on_coset_inverses(self):
        """확장 도메인 코셋의 i번째 점에서 1 / Z_H 값은 결과[i % e]."""
        base = Domain(2)
        extended = Domain(8)
        inverses = extended.vanishing_on_coset_inverses(base.size)
        assert len(inverses) == 4
        for i, root in enumerate(powers(extended.omega, extended.size)):
            point = COSET_SHIFT * root
            assert inverses[i % 4] * base.vanishing_at(point) == FR(1)

    @pytest.mark.parametrize("n,expected", [(0, 1), (1, 1), (3, 4), (4, 4), (5, 8)])
    def test_next_power_of_2(self, n, expected):
        assert next_power_of_2(n) == expected
