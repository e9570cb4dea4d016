"""Error types for backoffkit.

- BackoffError: Base of everything the library raises itself
- CancellationFault: Distinguished cancellation fault
- FaultKind/fault_kind: Tell cancellation apart from operation faults
"""

from .errors import BackoffError, CancellationFault, FaultKind, fault_kind

__all__ = ["BackoffError", "CancellationFault", "FaultKind", "fault_kind"]
