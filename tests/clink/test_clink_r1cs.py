"""
일괄 R1CS 제약 시스템 테스트

테스트 범위:
  - LinearCombination 구성과 평가
  - ProveAssignment: 인스턴스 순서, 열 누적, 값 누락
  - VerifyAssignment: 구조만 등록
  - enforce: 인스턴스 0 제한, 미할당 변수 참조
"""

import pytest

from zkthumb.clink.field import FR
from zkthumb.clink.r1cs import (
    ConstraintSystem,
    LinearCombination,
    Mode,
    ProveAssignment,
    Variable,
    VerifyAssignment,
)
from zkthumb.errors import AssignmentMissing, SynthesisError


def square_instance(cs, x, index):
    """x · x = y 인스턴스 하나 (y는 공개)."""
    one = cs.alloc_public("one", FR(1), index)
    xv = cs.alloc_witness("x", x, index)
    yv = cs.alloc_public("y", None if x is None else x * x, index)
    if index == 0:
        cs.enforce("x*x=y", lambda lc: lc + xv, lambda lc: lc + xv, lambda lc: lc + yv, index)
    return one, xv, yv


class TestLinearCombination:
    def test_add_variable(self):
        v = Variable(Variable.WITNESS, 0)
        lc = LinearCombination() + v
        assert lc.terms == [(FR(1), v)]

    def test_add_coeff_pair(self):
        v = Variable(Variable.PUBLIC, 1)
        lc = LinearCombination() + (3, v)
        assert lc.evaluate(lambda var: FR(5)) == FR(15)

    def test_sub(self):
        a = Variable(Variable.WITNESS, 0)
        b = Variable(Variable.WITNESS, 1)
        lc = LinearCombination() + a - b
        values = {a: FR(10), b: FR(4)}
        assert lc.evaluate(values.__getitem__) == FR(6)

    def test_variables(self):
        a = Variable(Variable.WITNESS, 0)
        b = Variable(Variable.PUBLIC, 0)
        assert (LinearCombination() + a + b).variables() == [a, b]

    def test_invalid_term(self):
        with pytest.raises(TypeError):
            LinearCombination() + "x"

    def test_variable_hash_eq(self):
        assert Variable(Variable.WITNESS, 2) == Variable(Variable.WITNESS, 2)
        assert Variable(Variable.WITNESS, 2) != Variable(Variable.PUBLIC, 2)
        assert len({Variable(Variable.WITNESS, 2), Variable(Variable.WITNESS, 2)}) == 1


class TestConstraintSystem:
    def test_one_is_public_zero(self):
        assert ConstraintSystem.one() == Variable(Variable.PUBLIC, 0)

    def test_enforce_nonzero_index(self):
        cs = ProveAssignment()
        x = cs.alloc_witness("x", FR(1), 0)
        with pytest.raises(SynthesisError):
            cs.enforce("c", lambda lc: lc + x, lambda lc: lc + x, lambda lc: lc + x, 1)

    def test_enforce_unallocated(self):
        cs = VerifyAssignment()
        ghost = Variable(Variable.WITNESS, 3)
        with pytest.raises(SynthesisError):
            cs.enforce("c", lambda lc: lc + ghost, lambda lc: lc, lambda lc: lc, 0)

    def test_referenced_witnesses(self):
        cs = VerifyAssignment()
        cs.alloc_public("one", None, 0)
        ws = [cs.alloc_witness(f"w{i}", None, 0) for i in range(4)]
        cs.enforce("c", lambda lc: lc + ws[2], lambda lc: lc + cs.one(), lambda lc: lc + ws[0], 0)
        assert cs.referenced_witnesses() == [0, 2]


class TestProveAssignment:
    def test_mode(self):
        assert ProveAssignment.mode is Mode.WITH_WITNESS
        assert VerifyAssignment.mode is Mode.STRUCTURE_ONLY

    def test_columns_accumulate(self):
        cs = ProveAssignment()
        for i, x in enumerate([2, 3, 4]):
            square_instance(cs, FR(x), i)
        cs.finalize()
        assert cs.instance_count == 3
        assert cs.num_public == 2
        assert cs.num_witness == 1
        assert cs.public_columns[0] == [FR(1)] * 3
        assert cs.public_columns[1] == [FR(4), FR(9), FR(16)]
        assert cs.witness_columns[0] == [FR(2), FR(3), FR(4)]
        assert len(cs.constraints) == 1

    def test_variable_handles_shared(self):
        """인스턴스 k의 변수 핸들은 인스턴스 0과 같은 열을 가리킨다."""
        cs = ProveAssignment()
        first = square_instance(cs, FR(2), 0)
        second = square_instance(cs, FR(3), 1)
        assert first == second

    def test_satisfied(self):
        cs = ProveAssignment()
        for i in range(3):
            square_instance(cs, FR(i + 5), i)
        assert cs.is_satisfied()
        assert cs.which_is_unsatisfied() is None

    def test_unsatisfied(self):
        cs = ProveAssignment()
        square_instance(cs, FR(2), 0)
        cs.alloc_public("one", FR(1), 1)
        cs.alloc_witness("x", FR(3), 1)
        cs.alloc_public("y", FR(10), 1)
        assert cs.which_is_unsatisfied() == (1, "x*x=y")

    def test_missing_value(self):
        cs = ProveAssignment()
        with pytest.raises(AssignmentMissing):
            cs.alloc_witness("x", None, 0)

    def test_first_index_must_be_zero(self):
        cs = ProveAssignment()
        with pytest.raises(SynthesisError):
            cs.alloc_public("one", FR(1), 1)

    def test_skipped_index(self):
        cs = ProveAssignment()
        square_instance(cs, FR(2), 0)
        with pytest.raises(SynthesisError):
            square_instance(cs, FR(3), 2)

    def test_too_many_variables(self):
        cs = ProveAssignment()
        square_instance(cs, FR(2), 0)
        square_instance(cs, FR(3), 1)
        with pytest.raises(SynthesisError):
            cs.alloc_witness("extra", FR(1), 1)

    def test_incomplete_instance(self):
        cs = ProveAssignment()
        square_instance(cs, FR(2), 0)
        cs.alloc_public("one", FR(1), 1)
        with pytest.raises(SynthesisError):
            cs.finalize()

    def test_finalize_empty(self):
        with pytest.raises(SynthesisError):
            ProveAssignment().finalize()

    def test_int_values_converted(self):
        cs = ProveAssignment()
        x = cs.alloc_witness("x", 7, 0)
        assert cs.value(x, 0) == FR(7)


class TestVerifyAssignment:
    def test_structure_matches_prover(self):
        prover = ProveAssignment()
        square_instance(prover, FR(3), 0)
        verifier = VerifyAssignment()
        square_instance(verifier, None, 0)
        assert (verifier.num_public, verifier.num_witness) == (prover.num_public, prover.num_witness)
        assert verifier.referenced_witnesses() == prover.referenced_witnesses()

    def test_ignores_values(self):
        cs = VerifyAssignment()
        v = cs.alloc_witness("x", None, 0)
        assert v == Variable(Variable.WITNESS, 0)

    def test_only_instance_zero(self):
        cs = VerifyAssignment()
        with pytest.raises(SynthesisError):
            cs.alloc_public("one", None, 1)
