"""
Structured conflicts and warnings.

The calculator and the validator report problems as lists of notices so a
caller can present all of them at once instead of stopping at the first one.
"""

from dataclasses import dataclass, field
from typing import Any, Dict


class Severity:
    ERROR = 'error'
    WARNING = 'warning'
    INFO = 'info'


@dataclass(frozen=True)
class Notice:
    type: str
    message: str
    severity: str = Severity.WARNING
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'message': self.message,
            'severity': self.severity,
            'details': dict(self.details),
        }


def error(type_: str, message: str, **details) -> Notice:
    return Notice(type_, message, Severity.ERROR, details)


def warning(type_: str, message: str, **details) -> Notice:
    return Notice(type_, message, Severity.WARNING, details)


def info(type_: str, message: str, **details) -> Notice:
    return Notice(type_, message, Severity.INFO, details)
