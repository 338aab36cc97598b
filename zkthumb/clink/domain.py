"""
인스턴스 도메인
================

블록 m개를 증명할 때 i번째 블록의 값은 열 다항식의 ωⁱ 위치에 놓인다.
H = {1, ω, ..., ω^(N-1)}, N = next_power_of_2(m) 이고 m..N-1 자리는 0으로 채운다.

몫 다항식 h = P / Z_H 는 H 위에서 Z_H가 0이 되므로 직접 나눌 수 없다.
크기 e·N 도메인을 COSET_SHIFT 만큼 옮긴 코셋에서 평가하면 Z_H가 0이 아니어서
점별 나눗셈이 가능하다 (Domain.coset_evaluate / coset_interpolate).
"""

from zkthumb.clink.field import FR, get_root_of_unity
from zkthumb.clink.polynomial import Polynomial, fft, ifft

# H와 겹치지 않는 코셋 이동값
COSET_SHIFT = FR(5)


def next_power_of_2(n):
    """n 이상의 가장 작은 2의 거듭제곱 (n ≤ 1 이면 1)."""
    return 1 if n <= 1 else 1 << (n - 1).bit_length()


def _fr(value):
    return value if isinstance(value, FR) else FR(value)


def _scale_powers(values, factor):
    """[v₀, v₁·f, v₂·f², ...]"""
    out = []
    power = FR(1)
    for value in values:
        out.append(power * value)
        power = power * factor
    return out


class Domain:
    """크기 N (2의 거듭제곱) 의 곱셈 부분군."""

    def __init__(self, size):
        self.size = size
        self.omega = get_root_of_unity(size)

    @classmethod
    def for_instances(cls, count):
        return cls(next_power_of_2(count))

    def __repr__(self):
        return f"Domain(size={self.size})"

    def pad(self, values):
        """길이 N이 되도록 뒤를 FR(0)으로 채운다."""
        if len(values) > self.size:
            raise ValueError(f"값 {len(values)}개가 도메인 크기 {self.size}를 넘습니다")
        return [_fr(v) for v in values] + [FR(0)] * (self.size - len(values))

    def vanishing_at(self, point):
        """Z_H(ζ) = ζᴺ - 1"""
        return _fr(point) ** self.size - FR(1)

    def interpolate(self, values):
        """w(ωⁱ) = values[i] 인 열 다항식."""
        return Polynomial.from_evaluations(self.pad(values), self.omega)

    def evaluate_interpolant(self, values, point):
        """interpolate(values)(ζ) 를 계수 복원 없이 O(m)에 구한다.

            w(ζ) = (Z_H(ζ) / N) · Σ vᵢ·ωⁱ / (ζ - ωⁱ)

        Verifier가 공개 입력 열을 ζ에서 평가할 때 쓴다.
        """
        point = _fr(point)
        zh = self.vanishing_at(point)
        omega_i = FR(1)
        if zh == FR(0):
            # ζ ∈ H
            for value in values:
                if omega_i == point:
                    return _fr(value)
                omega_i = omega_i * self.omega
            return FR(0)

        total = FR(0)
        for value in values:
            if value != 0:
                total = total + _fr(value) * omega_i / (point - omega_i)
            omega_i = omega_i * self.omega
        return total * zh / FR(self.size)

    def coset_evaluate(self, poly, shift=COSET_SHIFT):
        """[p(k), p(k·ω), ..., p(k·ω^(N-1))]. p(k·x)의 계수를 FFT한다."""
        return fft(_scale_powers(self.pad(poly.coeffs), shift), self.omega)

    def coset_interpolate(self, evals, shift=COSET_SHIFT):
        """coset_evaluate의 역."""
        return Polynomial(_scale_powers(ifft(evals, self.omega), FR(1) / shift))

    def vanishing_on_coset_inverses(self, base_size, shift=COSET_SHIFT):
        """코셋 k·H' 위에서 크기 base_size 도메인의 1 / Z_H 값.

        H'의 크기가 e·base_size 이면 (k·ω'ⁱ)^base_size 는 e가지 값만 가지므로
        길이 e 리스트를 돌려준다. i번째 점의 값은 결과[i % e] 이다.
        """
        extension = self.size // base_size
        k_n = shift ** base_size
        step = self.omega ** base_size
        return [FR(1) / (k_n * step ** j - FR(1)) for j in range(extension)]
