"""
CLINK 다항식과 NTT
===================

**열(column) 다항식**:
  일괄 R1CS에서 각 변수는 인스턴스마다 하나씩 값을 가진다.
  값 벡터 [v₀, v₁, ..., v_{N-1}]을 역변환(ifft)으로 보간하면 w(ωⁱ) = vᵢ 인
  열 다항식 w(x)를 얻는다.

**NTT (Number Theoretic Transform)**:
  반복형 radix-2 변환. 입력을 비트 반전 순서로 재배치한 뒤 길이 2, 4, ..., N
  단계로 버터플라이를 적용한다.

**나눗셈**:
  KZG 열기 증명의 (p(x) - p(z)) / (x - z) 는 divide_by_linear의 합성 나눗셈으로
  O(N)에 계산한다. 몫 다항식 h = P / Z_H 는 코셋 위의 점별 나눗셈으로 구한다
  (prover 모듈).

사용 예시:
    >>> omega = get_root_of_unity(4)
    >>> w = Polynomial.from_evaluations([FR(7), FR(1), FR(0), FR(0)], omega)
    >>> w.evaluate(omega)  # FR(1)
"""

from zkthumb.clink.field import FR

ZERO = FR(0)
ONE = FR(1)


def _to_fr(value):
    return value if isinstance(value, FR) else FR(value)


class Polynomial:
    """FR 계수 리스트 [c₀, c₁, ...] 로 표현한 다항식. 항상 최고차 계수 ≠ 0 (영 다항식은 [0])."""

    def __init__(self, coeffs=None):
        coeffs = [_to_fr(c) for c in (coeffs or [])]
        while coeffs and coeffs[-1] == ZERO:
            coeffs.pop()
        self.coeffs = coeffs or [ZERO]

    @property
    def degree(self):
        """영 다항식의 차수는 0으로 둔다."""
        return len(self.coeffs) - 1

    def is_zero(self):
        return self.coeffs == [ZERO]

    def evaluate(self, point):
        """Horner: c₀ + x(c₁ + x(c₂ + ...))"""
        point = _to_fr(point)
        acc = ZERO
        for coeff in reversed(self.coeffs):
            acc = acc * point + coeff
        return acc

    def _combine(self, other, sign):
        if not isinstance(other, Polynomial):
            other = Polynomial([other])
        size = max(len(self.coeffs), len(other.coeffs))
        lhs = self.coeffs + [ZERO] * (size - len(self.coeffs))
        rhs = other.coeffs + [ZERO] * (size - len(other.coeffs))
        if sign > 0:
            return Polynomial([a + b for a, b in zip(lhs, rhs)])
        return Polynomial([a - b for a, b in zip(lhs, rhs)])

    def __add__(self, other):
        return self._combine(other, 1)

    __radd__ = __add__

    def __sub__(self, other):
        return self._combine(other, -1)

    def __neg__(self):
        return Polynomial([ZERO - c for c in self.coeffs])

    def __mul__(self, other):
        if not isinstance(other, Polynomial):
            scalar = _to_fr(other)
            return Polynomial([c * scalar for c in self.coeffs])
        if self.is_zero() or other.is_zero():
            return Polynomial()
        out = [ZERO] * (len(self.coeffs) + len(other.coeffs) - 1)
        for i, a in enumerate(self.coeffs):
            if a == ZERO:
                continue
            for j, b in enumerate(other.coeffs):
                out[i + j] = out[i + j] + a * b
        return Polynomial(out)

    __rmul__ = __mul__

    def __eq__(self, other):
        if not isinstance(other, Polynomial):
            if not isinstance(other, (int, FR)):
                return False
            other = Polynomial([other])
        return self.coeffs == other.coeffs

    def __len__(self):
        return len(self.coeffs)

    def __repr__(self):
        return f"Polynomial({[int(c) for c in self.coeffs]})"

    def divide_by_linear(self, point):
        """(p(x) - p(z)) / (x - z) 의 몫과 p(z)를 합성 나눗셈으로 구한다.

        Returns:
            (Polynomial, FR): 몫 q(x)와 나머지 p(z)
        """
        point = _to_fr(point)
        quotient = [ZERO] * max(len(self.coeffs) - 1, 1)
        carry = ZERO
        for i in range(len(self.coeffs) - 1, 0, -1):
            carry = carry * point + self.coeffs[i]
            quotient[i - 1] = carry
        remainder = carry * point + self.coeffs[0]
        return Polynomial(quotient), remainder

    @classmethod
    def zero(cls):
        return cls()

    @classmethod
    def vanishing(cls, n):
        """Z_H(x) = xᴺ - 1"""
        return cls([ZERO - ONE] + [ZERO] * (n - 1) + [ONE])

    @classmethod
    def from_evaluations(cls, evals, omega):
        """도메인 {1, ω, ..., ω^(N-1)} 위의 값에서 열 다항식을 복원한다."""
        return cls(ifft(evals, omega))


# ─────────────────────────────────────────────────────────────────────
# NTT
# ─────────────────────────────────────────────────────────────────────

def _bit_reverse(values):
    n = len(values)
    bits = n.bit_length() - 1
    out = list(values)
    for i in range(n):
        j = int(format(i, f"0{bits}b")[::-1], 2) if bits else 0
        if i < j:
            out[i], out[j] = out[j], out[i]
    return out


def fft(coeffs, omega):
    """계수 → [p(1), p(ω), ..., p(ω^(N-1))]. 길이 N은 2의 거듭제곱."""
    n = len(coeffs)
    if n & (n - 1):
        raise ValueError(f"NTT 길이는 2의 거듭제곱이어야 합니다: {n}")
    values = _bit_reverse([_to_fr(c) for c in coeffs])

    size = 2
    while size <= n:
        half = size // 2
        step = omega ** (n // size)
        for start in range(0, n, size):
            twiddle = ONE
            for k in range(start, start + half):
                t = twiddle * values[k + half]
                values[k + half] = values[k] - t
                values[k] = values[k] + t
                twiddle = twiddle * step
        size *= 2
    return values


def ifft(evals, omega):
    """평가값 → 계수. ω⁻¹로 변환한 뒤 N으로 나눈다."""
    n_inv = ONE / FR(len(evals))
    return [c * n_inv for c in fft(evals, ONE / omega)]

