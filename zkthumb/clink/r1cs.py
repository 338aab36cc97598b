"""
일괄(Batched) R1CS 제약 시스템
===============================

같은 모양의 회로를 인스턴스(블록)마다 반복하는 R1CS를 표현한다.

**열(column) 모델**:
  변수 하나는 인스턴스마다 값을 하나씩 가진 "열"이다.
    - 인스턴스 0에서 alloc_* 를 호출하면 새 열이 생긴다.
    - 인스턴스 k > 0에서는 인스턴스 0과 같은 순서로 alloc_* 를 호출하며,
      값이 같은 위치의 열 뒤에 붙는다.
  제약 A·B = C 는 인스턴스 0에서 한 번만 등록하며, 모든 인스턴스에
  똑같이 적용된다 (구조는 공유, 값만 인스턴스별로 다름).

**두 가지 실현 (capability)**:
  | 클래스            | Mode            | 값 보관 | 인스턴스     |
  |-------------------|-----------------|---------|--------------|
  | ProveAssignment   | WITH_WITNESS    | O       | 0, 1, 2, ... |
  | VerifyAssignment  | STRUCTURE_ONLY  | X       | 0 만         |

사용 예시:
    >>> cs = ProveAssignment()
    >>> one = cs.alloc_public("one", FR(1), 0)
    >>> x = cs.alloc_witness("x", FR(3), 0)
    >>> y = cs.alloc_public("y", FR(3), 0)
    >>> cs.enforce("x * 1 = y", lambda lc: lc + x, lambda lc: lc + cs.one(),
    ...            lambda lc: lc + y, 0)
"""

import enum
import logging

from zkthumb.clink.field import FR
from zkthumb.errors import AssignmentMissing, SynthesisError

logger = logging.getLogger(__name__)


class Mode(enum.Enum):
    """제약 시스템이 값을 다룰 수 있는지 나타내는 capability 표식."""
    WITH_WITNESS = "with_witness"
    STRUCTURE_ONLY = "structure_only"


class Variable:
    """제약 시스템 변수 (열) 핸들."""

    PUBLIC = "public"
    WITNESS = "witness"

    __slots__ = ("kind", "index")

    def __init__(self, kind, index):
        self.kind = kind
        self.index = index

    def __eq__(self, other):
        if not isinstance(other, Variable):
            return NotImplemented
        return self.kind == other.kind and self.index == other.index

    def __hash__(self):
        return hash((self.kind, self.index))

    def __repr__(self):
        return f"Variable({self.kind}, {self.index})"


class LinearCombination:
    """변수의 선형결합 Σ cᵢ · vᵢ.

    원래 클로저 스타일(`|lc| lc + var`)을 그대로 쓸 수 있도록
    `lc + var`, `lc + (coeff, var)`, `lc - var` 를 지원한다.
    """

    def __init__(self, terms=None):
        self.terms = list(terms) if terms else []

    def __add__(self, other):
        return LinearCombination(self.terms + _as_terms(other))

    def __sub__(self, other):
        negated = [(FR(0) - coeff, var) for coeff, var in _as_terms(other)]
        return LinearCombination(self.terms + negated)

    def variables(self):
        return [var for _, var in self.terms]

    def evaluate(self, lookup):
        """lookup(var) → FR 값으로 선형결합을 평가한다."""
        result = FR(0)
        for coeff, var in self.terms:
            result = result + coeff * lookup(var)
        return result

    def __repr__(self):
        return " + ".join(f"{int(c)}·{v!r}" for c, v in self.terms) or "0"


def _as_terms(other):
    if isinstance(other, Variable):
        return [(FR(1), other)]
    if isinstance(other, LinearCombination):
        return list(other.terms)
    if isinstance(other, tuple) and len(other) == 2:
        coeff, var = other
        if not isinstance(coeff, FR):
            coeff = FR(coeff)
        return [(coeff, var)]
    raise TypeError(f"선형결합에 더할 수 없는 값입니다: {other!r}")


class Constraint:
    """A · B = C 제약 하나."""

    def __init__(self, label, a, b, c):
        self.label = label
        self.a = a
        self.b = b
        self.c = c

    def variables(self):
        return self.a.variables() + self.b.variables() + self.c.variables()


class ConstraintSystem:
    """일괄 R1CS 제약 시스템의 공통 부분.

    속성:
        num_public: 인스턴스 하나당 공개 변수 수
        num_witness: 인스턴스 하나당 witness 변수 수
        constraints: 공유되는 Constraint 리스트
    """

    mode = None

    def __init__(self):
        self.num_public = 0
        self.num_witness = 0
        self.constraints = []

    @staticmethod
    def one():
        """상수 1 배선. 회로가 처음 할당한 공개 변수 0번이다."""
        return Variable(Variable.PUBLIC, 0)

    def alloc_public(self, label, value, index):
        raise NotImplementedError

    def alloc_witness(self, label, value, index):
        raise NotImplementedError

    def enforce(self, label, a, b, c, index):
        """제약 A · B = C 를 등록한다.

        Args:
            label: 제약 이름
            a, b, c: LinearCombination → LinearCombination 호출 가능 객체
            index: 인스턴스 인덱스 (0이어야 함)

        Raises:
            SynthesisError: index != 0
        """
        if index != 0:
            raise SynthesisError(
                f"제약은 인스턴스 0에서만 등록합니다 (label={label!r}, index={index})"
            )
        constraint = Constraint(
            label,
            a(LinearCombination()),
            b(LinearCombination()),
            c(LinearCombination()),
        )
        for var in constraint.variables():
            limit = self.num_public if var.kind == Variable.PUBLIC else self.num_witness
            if var.index >= limit:
                raise SynthesisError(f"할당되지 않은 변수를 참조합니다: {var!r} ({label!r})")
        self.constraints.append(constraint)

    def referenced_witnesses(self):
        """제약이 참조하는 witness 변수 인덱스 (오름차순)."""
        indices = set()
        for constraint in self.constraints:
            for var in constraint.variables():
                if var.kind == Variable.WITNESS:
                    indices.add(var.index)
        return sorted(indices)


class ProveAssignment(ConstraintSystem):
    """값을 보관하는 Prover 측 제약 시스템 (Mode.WITH_WITNESS).

    속성:
        public_columns: 공개 변수별 값 리스트 [[v₀, v₁, ...], ...]
        witness_columns: witness 변수별 값 리스트
    """

    mode = Mode.WITH_WITNESS

    def __init__(self):
        super().__init__()
        self.public_columns = []
        self.witness_columns = []
        self._instance = None
        self._public_cursor = 0
        self._witness_cursor = 0

    @property
    def instance_count(self):
        if self._instance is None:
            return 0
        return self._instance + 1

    def _enter(self, index):
        if self._instance is None:
            if index != 0:
                raise SynthesisError(f"첫 인스턴스는 0이어야 합니다: {index}")
            self._instance = 0
            return
        if index == self._instance:
            return
        if index != self._instance + 1:
            raise SynthesisError(
                f"인스턴스 순서 오류: {self._instance} 다음에 {index}"
            )
        self._check_complete()
        self._instance = index
        self._public_cursor = 0
        self._witness_cursor = 0
        logger.debug("인스턴스 %d 시작", index)

    def _check_complete(self):
        if self._instance is None or self._instance == 0:
            return
        if (self._public_cursor, self._witness_cursor) != (self.num_public, self.num_witness):
            raise SynthesisError(
                f"인스턴스 {self._instance}의 변수 수가 인스턴스 0과 다릅니다"
            )

    def _alloc(self, kind, label, value, index):
        if value is None:
            raise AssignmentMissing(f"값이 없습니다: {label!r} (instance {index})")
        if not isinstance(value, FR):
            value = FR(value)
        self._enter(index)

        if kind == Variable.PUBLIC:
            columns, cursor = self.public_columns, self._public_cursor
        else:
            columns, cursor = self.witness_columns, self._witness_cursor

        if index == 0:
            columns.append([value])
            position = len(columns) - 1
            if kind == Variable.PUBLIC:
                self.num_public += 1
            else:
                self.num_witness += 1
        else:
            if cursor >= len(columns):
                raise SynthesisError(
                    f"인스턴스 {index}가 인스턴스 0보다 많은 {kind} 변수를 할당합니다"
                )
            columns[cursor].append(value)
            position = cursor

        if kind == Variable.PUBLIC:
            self._public_cursor += 1
        else:
            self._witness_cursor += 1
        return Variable(kind, position)

    def alloc_public(self, label, value, index):
        return self._alloc(Variable.PUBLIC, label, value, index)

    def alloc_witness(self, label, value, index):
        return self._alloc(Variable.WITNESS, label, value, index)

    def finalize(self):
        """마지막 인스턴스까지 모든 열이 같은 길이인지 확인한다.

        Raises:
            SynthesisError: 인스턴스가 없거나 마지막 인스턴스가 불완전할 때
        """
        if self._instance is None:
            raise SynthesisError("할당된 인스턴스가 없습니다")
        self._check_complete()
        for column in self.public_columns + self.witness_columns:
            if len(column) != self.instance_count:
                raise SynthesisError("열 길이가 인스턴스 수와 다릅니다")

    def value(self, var, instance):
        if var.kind == Variable.PUBLIC:
            return self.public_columns[var.index][instance]
        return self.witness_columns[var.index][instance]

    def which_is_unsatisfied(self):
        """만족되지 않는 첫 (인스턴스, 제약 레이블)을 반환한다. 모두 만족하면 None."""
        for instance in range(self.instance_count):
            def lookup(var, instance=instance):
                return self.value(var, instance)

            for constraint in self.constraints:
                a = constraint.a.evaluate(lookup)
                b = constraint.b.evaluate(lookup)
                c = constraint.c.evaluate(lookup)
                if a * b != c:
                    return instance, constraint.label
        return None

    def is_satisfied(self):
        return self.which_is_unsatisfied() is None


class VerifyAssignment(ConstraintSystem):
    """구조만 보관하는 Verifier 측 제약 시스템 (Mode.STRUCTURE_ONLY).

    값은 읽지도 저장하지도 않는다. 인스턴스 0의 구조만 등록하며,
    일괄 처리 계층이 이를 공개 입력 길이만큼 복제한 것으로 간주한다.
    """

    mode = Mode.STRUCTURE_ONLY

    def _check_index(self, label, index):
        if index != 0:
            raise SynthesisError(
                f"Verifier 구조는 인스턴스 0에서만 등록합니다 (label={label!r}, index={index})"
            )

    def alloc_public(self, label, value, index):
        self._check_index(label, index)
        self.num_public += 1
        return Variable(Variable.PUBLIC, self.num_public - 1)

    def alloc_witness(self, label, value, index):
        self._check_index(label, index)
        self.num_witness += 1
        return Variable(Variable.WITNESS, self.num_witness - 1)
