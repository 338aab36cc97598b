"""
KZG 다항식 커밋먼트
====================

**공개 파라미터**:
  비밀 값 τ 하나에서 [τⁱ]₁ (i = 0..d) 와 [1]₂, [τ]₂ 를 만든다. τ는 만든 직후
  버려진다. τ를 아는 쪽은 거짓 증명을 만들 수 있으므로 실제 배포에서는 MPC로
  생성해야 하며, 여기서는 rng 스트림(재현용) 또는 secrets에서 뽑는다.

**KZG10 인터페이스**:
  - setup(max_degree, hiding, rng) → PublicParameters
  - trim(pp, degree) → (ProvingKey, VerifyingKey)

**일괄 열기**:
  같은 점 ζ에서 p₀, p₁, ... 을 챌린지 ν로 묶어 한 번에 연다.
    π = [q(τ)]₁,  q(x) = (Σ νⁱ·pᵢ(x) - Σ νⁱ·pᵢ(ζ)) / (x - ζ)
  검증은 F = Σ νⁱ·Cᵢ, E = Σ νⁱ·yᵢ 로
    e(F - E·G1, G2) == e(π, [τ]₂ - ζ·G2)

사용 예시:
    >>> pp = KZG10.setup(8, False, random.Random(1))
    >>> ck, vk = KZG10.trim(pp, 8)
    >>> proof = create_witness(poly, FR(7), ck)
    >>> verify_opening(commit(poly, ck), proof, FR(7), poly.evaluate(FR(7)), vk)
"""

import logging
import secrets

from zkthumb.clink.field import (
    FR, CURVE_ORDER, G1, G2, ec_add, ec_lincomb, ec_mul, ec_neg, ec_pairing,
)
from zkthumb.clink.polynomial import Polynomial
from zkthumb.errors import SetupError

logger = logging.getLogger(__name__)


def _sample_tau(rng):
    if rng is None:
        return FR(1 + secrets.randbelow(CURVE_ORDER - 1))
    return FR(rng.randrange(1, CURVE_ORDER))


class PublicParameters:
    """setup이 만든 범용 파라미터. trim으로 필요한 차수만큼 잘라 쓴다."""

    def __init__(self, g1_powers, g2_powers, hiding=False):
        self.g1_powers = g1_powers
        self.g2_powers = g2_powers
        self.hiding = hiding

    @property
    def max_degree(self):
        return len(self.g1_powers) - 1


class ProvingKey:
    """커밋 키: [τ⁰]₁ ... [τ^degree]₁."""

    def __init__(self, g1_powers, max_degree, hiding=False):
        self.g1_powers = g1_powers
        self.max_degree = max_degree
        self.hiding = hiding


class VerifyingKey:
    """검증 키: [1]₁, [1]₂, [τ]₂ 와 지원 차수."""

    def __init__(self, g1, g2_powers, max_degree):
        self.g1 = g1
        self.g2_powers = g2_powers
        self.max_degree = max_degree

    def __eq__(self, other):
        if not isinstance(other, VerifyingKey):
            return NotImplemented
        return (self.g1, self.g2_powers, self.max_degree) == (
            other.g1, other.g2_powers, other.max_degree
        )


class KZG10:

    @staticmethod
    def setup(max_degree, hiding, rng):
        """차수 max_degree까지 커밋할 수 있는 공개 파라미터를 만든다.

        rng가 주어지면 τ를 그 스트림에서 뽑는다. 같은 rng로 이어서 블라인딩
        값을 뽑기 때문에 seed 하나로 실행 전체가 재현된다.

        Raises:
            SetupError: max_degree < 1
        """
        if max_degree < 1:
            raise SetupError(f"최대 차수는 1 이상이어야 합니다: {max_degree}")
        logger.info("KZG10 setup: max_degree=%d hiding=%s", max_degree, hiding)

        tau = _sample_tau(rng)
        g1_powers = [G1]
        for _ in range(max_degree):
            g1_powers.append(ec_mul(g1_powers[-1], tau))
        return PublicParameters(g1_powers, [G2, ec_mul(G2, tau)], hiding=hiding)

    @staticmethod
    def trim(pp, degree):
        """pp에서 degree 차수용 (ProvingKey, VerifyingKey)를 잘라낸다.

        Raises:
            SetupError: degree가 1 미만이거나 pp.max_degree를 초과할 때
        """
        if not 1 <= degree <= pp.max_degree:
            raise SetupError(
                f"차수 {degree}는 1 이상 {pp.max_degree} 이하여야 합니다"
            )
        ck = ProvingKey(pp.g1_powers[:degree + 1], degree, hiding=pp.hiding)
        vk = VerifyingKey(pp.g1_powers[0], list(pp.g2_powers), degree)
        return ck, vk


def commit(poly, ck):
    """C = Σ cᵢ·[τⁱ]₁. 영 다항식의 커밋은 무한원점(None)이다.

    Raises:
        ValueError: 차수가 키의 최대 차수를 넘을 때
    """
    if poly.degree > ck.max_degree:
        raise ValueError(
            f"다항식 차수 {poly.degree}가 키 최대 차수 {ck.max_degree}를 초과합니다"
        )
    return ec_lincomb(ck.g1_powers, poly.coeffs)


def create_witness(poly, point, ck):
    return create_batch_witness([poly], point, FR(1), ck)


def create_batch_witness(polys, point, nu, ck):
    """polys를 ν의 거듭제곱으로 묶어 point에서 여는 증명 π를 만든다."""
    combined = Polynomial.zero()
    for poly in reversed(polys):
        combined = combined * nu + poly
    # 합성 나눗셈의 나머지가 결합된 평가값이므로 따로 빼지 않는다.
    quotient, _ = combined.divide_by_linear(point)
    return commit(quotient, ck)


def verify_opening(commitment, proof, point, evaluation, vk):
    """e(C - y·G1, G2) == e(π, [τ]₂ - z·G2) 를 확인한다."""
    g2, tau_g2 = vk.g2_powers[0], vk.g2_powers[1]
    shifted_g2 = ec_add(tau_g2, ec_neg(ec_mul(g2, point)))
    lhs_g1 = ec_add(commitment, ec_neg(ec_mul(vk.g1, evaluation)))
    return ec_pairing(g2, lhs_g1) == ec_pairing(shifted_g2, proof)
