"""
Dependent-condition status model.

A ``ConditionSet`` names a fixed set of dependent condition types plus one
aggregate "happy" condition (``Ready``). The aggregate is never written
directly: it is recomputed after every change to a dependent condition.

- Ready is True iff every dependent condition is True
- Ready is False if any dependent is False (reason/message copied from the
  first False dependent, in declaration order)
- otherwise Ready is Unknown

Example:
    conditions = ConditionSet(DEPLOYMENTS_AVAILABLE, INSTALL_SUCCEEDED)
    conditions.initialize(status.conditions)
    conditions.mark_true(status.conditions, INSTALL_SUCCEEDED)
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

READY = "Ready"
INSTALL_SUCCEEDED = "InstallSucceeded"
DEPLOYMENTS_AVAILABLE = "DeploymentsAvailable"


class ConditionStatus(str, Enum):
    """Tri-state status of a condition."""
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class Condition(BaseModel):
    """A single named status flag."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    type: str = Field(..., description="Condition type, e.g. InstallSucceeded")
    status: ConditionStatus = Field(ConditionStatus.UNKNOWN, description="True, False or Unknown")
    reason: Optional[str] = Field(None, description="One-word CamelCase reason")
    message: Optional[str] = Field(None, description="Human-readable details")
    last_transition_time: Optional[datetime] = Field(
        None, alias="lastTransitionTime", description="When status last changed"
    )

    def is_true(self) -> bool:
        return self.status == ConditionStatus.TRUE.value

    def is_false(self) -> bool:
        return self.status == ConditionStatus.FALSE.value


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


class ConditionSet:
    """Aggregation logic over a list of ``Condition`` records."""

    def __init__(self, *dependents: str, happy: str = READY):
        self.happy = happy
        self.dependents = tuple(dependents)

    def get(self, conditions: List[Condition], condition_type: str) -> Optional[Condition]:
        for condition in conditions:
            if condition.type == condition_type:
                return condition
        return None

    def _set(
        self,
        conditions: List[Condition],
        condition_type: str,
        status: ConditionStatus,
        reason: Optional[str] = None,
        message: Optional[str] = None,
    ) -> None:
        existing = self.get(conditions, condition_type)
        if existing is not None:
            if (existing.status, existing.reason, existing.message) == (status.value, reason, message):
                return
            if existing.status != status.value:
                existing.last_transition_time = _now()
            existing.status = status.value
            existing.reason = reason
            existing.message = message
        else:
            conditions.append(Condition(
                type=condition_type,
                status=status,
                reason=reason,
                message=message,
                last_transition_time=_now(),
            ))
        conditions.sort(key=lambda c: c.type)

    def initialize(self, conditions: List[Condition]) -> None:
        """Set every missing condition to Unknown.

        Already-present conditions are left alone, so calling this twice is
        harmless.
        """
        happy = self.get(conditions, self.happy)
        if happy is None:
            self._set(conditions, self.happy, ConditionStatus.UNKNOWN)
            happy = self.get(conditions, self.happy)
        # A True aggregate implies every dependent is True.
        initial = ConditionStatus.TRUE if happy.is_true() else ConditionStatus.UNKNOWN
        for dependent in self.dependents:
            if self.get(conditions, dependent) is None:
                self._set(conditions, dependent, initial)

    def mark_true(self, conditions: List[Condition], condition_type: str) -> None:
        self._set(conditions, condition_type, ConditionStatus.TRUE)
        self._recompute(conditions)

    def mark_false(
        self,
        conditions: List[Condition],
        condition_type: str,
        reason: str,
        message: str,
    ) -> None:
        self._set(conditions, condition_type, ConditionStatus.FALSE, reason, message)
        self._recompute(conditions)

    def mark_unknown(
        self,
        conditions: List[Condition],
        condition_type: str,
        reason: str,
        message: str,
    ) -> None:
        self._set(conditions, condition_type, ConditionStatus.UNKNOWN, reason, message)
        self._recompute(conditions)

    def _recompute(self, conditions: List[Condition]) -> None:
        dependents = [self.get(conditions, t) for t in self.dependents]
        if all(c is not None and c.is_true() for c in dependents):
            self._set(conditions, self.happy, ConditionStatus.TRUE)
            return
        for condition in dependents:
            if condition is not None and condition.is_false():
                self._set(
                    conditions,
                    self.happy,
                    ConditionStatus.FALSE,
                    condition.reason,
                    condition.message,
                )
                return
        unknown = next(
            (c for c in dependents if c is not None and c.reason), None
        )
        self._set(
            conditions,
            self.happy,
            ConditionStatus.UNKNOWN,
            unknown.reason if unknown else None,
            unknown.message if unknown else None,
        )

    def is_happy(self, conditions: List[Condition]) -> bool:
        happy = self.get(conditions, self.happy)
        return happy is not None and happy.is_true()


SERVING_CONDITIONS = ConditionSet(DEPLOYMENTS_AVAILABLE, INSTALL_SUCCEEDED)
