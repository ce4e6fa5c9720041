"""
Requirement Predicates
======================

The registry only depends on the PredicateEvaluator interface:

    test(query, candidate) -> bool
    validate(query) -> None   (raises ValueError)

MongoQueryEvaluator is the default and delegates matching to the
mongoquery library (MongoDB-style query documents: implicit equality,
comparison operators, logical combinators, array membership, dotted paths).

MATCHING RULES ON TOP OF MONGOQUERY:
====================================
1. Equality is strict: booleans never equal numbers (True != 1)
2. An operand of the wrong type (missing field, string vs number) is a
   non-match, never an error
3. Operand shapes are checked by validate(), so a registered requirement
   can always be evaluated
"""

from __future__ import annotations
from numbers import Number
from typing import Any, FrozenSet, Mapping
import operator
import re

from mongoquery import Query


def strict_equal(left: Any, right: Any) -> bool:
    """Equality that keeps bool and int apart, recursing into containers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        return (
            set(left) == set(right)
            and all(strict_equal(left[key], right[key]) for key in left)
        )
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(
            strict_equal(a, b) for a, b in zip(left, right)
        )
    try:
        return bool(left == right)
    except (TypeError, ValueError):
        return False


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


class StrictQuery(Query):
    """mongoquery Query with strict literal equality and type-safe operators."""

    def _match(self, condition, entry):
        if isinstance(condition, Mapping):
            return super()._match(condition, entry)
        return self._literal_match(condition, entry)

    def _literal_match(self, condition, entry) -> bool:
        # A list field matches when it equals the literal or contains it
        if isinstance(entry, (list, tuple)):
            return strict_equal(condition, entry) or any(
                strict_equal(condition, item) for item in entry
            )
        return strict_equal(condition, entry)

    def _eq(self, condition, entry):
        return self._literal_match(condition, entry)

    def _ne(self, condition, entry):
        return not self._literal_match(condition, entry)

    def _in(self, condition, entry):
        return any(self._literal_match(item, entry) for item in condition)

    def _nin(self, condition, entry):
        return not self._in(condition, entry)

    def _compare(self, compare, condition, entry) -> bool:
        if isinstance(entry, bool) != isinstance(condition, bool):
            return False
        try:
            return bool(compare(entry, condition))
        except TypeError:
            return False

    def _gt(self, condition, entry):
        return self._compare(operator.gt, condition, entry)

    def _gte(self, condition, entry):
        return self._compare(operator.ge, condition, entry)

    def _lt(self, condition, entry):
        return self._compare(operator.lt, condition, entry)

    def _lte(self, condition, entry):
        return self._compare(operator.le, condition, entry)

    def _mod(self, condition, entry):
        if not _is_number(entry):
            return False
        divisor, remainder = condition
        return entry % divisor == remainder

    def _size(self, condition, entry):
        return isinstance(entry, (list, tuple)) and len(entry) == condition

    def _regex(self, condition, entry):
        if not isinstance(entry, str):
            return False
        return super()._regex(condition, entry)


class PredicateEvaluator:
    """
    Abstract evaluator interface.

    Implementations can use any structured-query engine while keeping the
    same contract towards the registry.
    """

    def test(self, query: Mapping[str, Any], candidate: Mapping[str, Any]) -> bool:
        """Return True if candidate satisfies query."""
        raise NotImplementedError

    def validate(self, query: Any) -> None:
        """Raise ValueError if query is not a document this evaluator accepts."""
        if not isinstance(query, Mapping):
            raise ValueError(
                f"Requirement must be a mapping, got {type(query).__name__}"
            )


class MongoQueryEvaluator(PredicateEvaluator):
    """MongoDB-style query matching backed by mongoquery."""

    OPERATORS: FrozenSet[str] = frozenset({
        '$eq', '$ne', '$gt', '$gte', '$lt', '$lte', '$in', '$nin',
        '$and', '$or', '$nor', '$not',
        '$exists', '$all', '$size', '$elemMatch', '$mod', '$regex',
    })

    LIST_OPERANDS: FrozenSet[str] = frozenset({'$in', '$nin', '$all'})
    CLAUSE_OPERANDS: FrozenSet[str] = frozenset({'$and', '$or', '$nor'})
    MAPPING_OPERANDS: FrozenSet[str] = frozenset({'$not', '$elemMatch'})

    # mongoquery accepts "/pattern/flags" as well as a bare pattern
    _SLASHED_REGEX = re.compile(r"\A/(.+)/([imsx]{,4})\Z", re.DOTALL)

    def test(self, query: Mapping[str, Any], candidate: Mapping[str, Any]) -> bool:
        return bool(StrictQuery(query).match(candidate))

    def validate(self, query: Any) -> None:
        super().validate(query)
        self._check_document(query, path="")

    def _check_document(self, node: Any, path: str) -> None:
        if isinstance(node, Mapping):
            for key, value in node.items():
                where = f"{path}.{key}" if path else key
                if not isinstance(key, str):
                    raise ValueError(f"Requirement keys must be strings at {path or '<root>'}")
                if key.startswith('$'):
                    if key not in self.OPERATORS:
                        raise ValueError(f"Unsupported operator {key!r} at {path or '<root>'}")
                    self._check_operand(key, value, where)
                self._check_document(value, where)
        elif isinstance(node, (list, tuple)):
            for index, value in enumerate(node):
                self._check_document(value, f"{path}[{index}]")

    def _check_operand(self, name: str, operand: Any, where: str) -> None:
        if name in self.LIST_OPERANDS and not isinstance(operand, (list, tuple)):
            raise ValueError(f"{name} takes a list at {where}")

        if name in self.CLAUSE_OPERANDS:
            if not isinstance(operand, (list, tuple)) or not operand:
                raise ValueError(f"{name} takes a non-empty list of documents at {where}")
            if not all(isinstance(clause, Mapping) for clause in operand):
                raise ValueError(f"{name} clauses must be documents at {where}")

        if name in self.MAPPING_OPERANDS and not isinstance(operand, Mapping):
            raise ValueError(f"{name} takes a document at {where}")

        if name == '$mod':
            if (
                not isinstance(operand, (list, tuple))
                or len(operand) != 2
                or not all(_is_number(part) for part in operand)
            ):
                raise ValueError(f"$mod takes [divisor, remainder] at {where}")
            if operand[0] == 0:
                raise ValueError(f"$mod divisor must not be zero at {where}")

        if name == '$size' and (not isinstance(operand, int) or isinstance(operand, bool)):
            raise ValueError(f"$size takes an integer at {where}")

        if name == '$regex':
            if not isinstance(operand, str):
                raise ValueError(f"$regex takes a string at {where}")
            slashed = self._SLASHED_REGEX.match(operand)
            try:
                re.compile(slashed.group(1) if slashed else operand)
            except re.error as exc:
                raise ValueError(f"Invalid $regex at {where}: {exc}") from exc
