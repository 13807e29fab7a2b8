"""Field and cross-field validation of shift input.

Field-level parsing is done by pydantic models. Cross-field rules are plain
functions over a parsed candidate and return every issue they find, so a
single edit can surface several problems at once. Results are values
(:class:`Valid` / :class:`Invalid`), never exceptions.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field, NonNegativeInt, PositiveFloat, ValidationError, field_validator
from typing_extensions import Annotated

SHIFT_ENDS_BEFORE_START = "Shift ends before it begins"
BREAK_OUTSIDE_SHIFT = "Break outside shift hours"
BREAK_ENDS_BEFORE_START = "Break ends before it begins"
SHIFT_REQUIRED_FOR_BREAKS = "Shift must be set before breaks are added"
TIME_REQUIRED = "Time is required"
DURATION_REQUIRED = "Duration must be set"

PathKey = Union[str, int]
ErrorTree = Dict[PathKey, Any]


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _local_naive(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class BreakInput(BaseModel):
    break_start: Optional[dt.datetime] = None
    break_end: Optional[dt.datetime] = None

    @field_validator("break_start", "break_end", mode="before")
    @classmethod
    def _blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("break_start", "break_end")
    @classmethod
    def _naive(cls, value: Optional[dt.datetime]) -> Optional[dt.datetime]:
        return _local_naive(value)


class StandardShiftInput(BaseModel):
    start_time: Optional[dt.datetime] = None
    end_time: Optional[dt.datetime] = None
    hourly_rate: Optional[PositiveFloat] = None
    breaks: List[BreakInput] = Field(default_factory=list)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def _naive(cls, value: Optional[dt.datetime]) -> Optional[dt.datetime]:
        return _local_naive(value)


class FlexibleShiftInput(BaseModel):
    duration_hours: Optional[NonNegativeInt] = None
    duration_minutes: Optional[Annotated[int, Field(ge=0, lt=60)]] = None
    hourly_rate: Optional[PositiveFloat] = None


@dataclass(frozen=True, slots=True)
class Issue:
    path: Tuple[PathKey, ...]
    message: str


@dataclass(frozen=True, slots=True)
class Valid:
    value: Any

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Invalid:
    errors: ErrorTree = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return False


ValidationResult = Union[Valid, Invalid]


def empty_errors() -> ErrorTree:
    return {"_errors": []}


def format_errors(issues: Sequence[Issue]) -> ErrorTree:
    """Fold issues into a tree keyed by path segment, messages under ``_errors``."""
    tree = empty_errors()
    for issue in issues:
        node = tree
        for key in issue.path:
            node = node.setdefault(key, empty_errors())
        node["_errors"].append(issue.message)
    return tree


def error_messages(tree: ErrorTree, *path: PathKey) -> List[str]:
    node: Any = tree
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return []
        node = node[key]
    return list(node.get("_errors", [])) if isinstance(node, dict) else []


def pydantic_issues(exc: ValidationError) -> List[Issue]:
    return [Issue(path=tuple(error["loc"]), message=error["msg"]) for error in exc.errors()]


# ----------------------------------------------------------------------
# Cross-field rules
# ----------------------------------------------------------------------
def shift_order_issues(shift: Any) -> List[Issue]:
    start, end = shift.start_time, shift.end_time
    if start is not None and end is not None and start > end:
        return [Issue(path=("end_time",), message=SHIFT_ENDS_BEFORE_START)]
    return []


def break_issues(shift: Any) -> List[Issue]:
    """Check every break against the candidate window as given, even an inverted one."""
    start, end = shift.start_time, shift.end_time
    issues: List[Issue] = []
    for index, item in enumerate(shift.breaks):
        if start is None or end is None:
            if item.break_start is not None or item.break_end is not None:
                issues.append(Issue(path=("breaks", index), message=SHIFT_REQUIRED_FOR_BREAKS))
            continue
        if item.break_start is not None and not start <= item.break_start <= end:
            issues.append(Issue(path=("breaks", index, "break_start"), message=BREAK_OUTSIDE_SHIFT))
        if item.break_end is not None and not start <= item.break_end <= end:
            issues.append(Issue(path=("breaks", index, "break_end"), message=BREAK_OUTSIDE_SHIFT))
        if (
            item.break_start is not None
            and item.break_end is not None
            and item.break_start > item.break_end
        ):
            issues.append(Issue(path=("breaks", index, "break_end"), message=BREAK_ENDS_BEFORE_START))
    return issues


def standard_start_issues(shift: Any) -> List[Issue]:
    return [
        Issue(path=(name,), message=TIME_REQUIRED)
        for name in ("start_time", "end_time")
        if getattr(shift, name) is None
    ]


def flexible_start_issues(shift: Any) -> List[Issue]:
    if not shift.duration_hours and not shift.duration_minutes:
        return [Issue(path=("duration_hours",), message=DURATION_REQUIRED)]
    return []


# ----------------------------------------------------------------------
# Entry points
# ----------------------------------------------------------------------
def validate_standard_shift(data: Mapping[str, Any], *, starting: bool = False) -> ValidationResult:
    try:
        shift = StandardShiftInput.model_validate(data)
    except ValidationError as exc:
        return Invalid(errors=format_errors(pydantic_issues(exc)))
    issues = shift_order_issues(shift) + break_issues(shift)
    if starting:
        issues += standard_start_issues(shift)
    if issues:
        return Invalid(errors=format_errors(issues))
    return Valid(value=shift)


def validate_flexible_shift(data: Mapping[str, Any], *, starting: bool = False) -> ValidationResult:
    try:
        shift = FlexibleShiftInput.model_validate(data)
    except ValidationError as exc:
        return Invalid(errors=format_errors(pydantic_issues(exc)))
    issues = flexible_start_issues(shift) if starting else []
    if issues:
        return Invalid(errors=format_errors(issues))
    return Valid(value=shift)
