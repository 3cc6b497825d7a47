# aquatrack/core/complaints.py

from typing import Any, Dict, Iterable, List, Optional

from aquatrack.core.errors import ConflictError, ValidationError
from aquatrack.core.models import Complaint
from aquatrack.core.status import ComplaintStatus, COMPLAINT_LABELS


def validate_submission(subject: Any, description: Any, store_id: Any) -> Dict[str, str]:
    """Partner/courier complaint form. All three fields are required."""
    payload = {
        "subject": subject.strip() if isinstance(subject, str) else "",
        "description": description.strip() if isinstance(description, str) else "",
        "store_id": store_id.strip() if isinstance(store_id, str) else "",
    }
    missing = [name for name, value in payload.items() if not value]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")
    return payload


def validate_resolution(complaint: Complaint, solution: Any) -> Dict[str, str]:
    """
    A complaint is resolved once, with non-empty solution text.

    Returns the resolve body.
    """
    text = solution.strip() if isinstance(solution, str) else ""
    if not text:
        raise ValidationError("Please enter a resolution before resolving")

    if complaint.is_resolved:
        raise ConflictError(f"Complaint #{complaint.id} is already resolved")

    return {"status": ComplaintStatus.RESOLVED.value, "solution": text}


def open_complaints(complaints: Iterable[Complaint]) -> List[Complaint]:
    return [c for c in complaints if not c.is_resolved]


def complaint_counts(complaints: Iterable[Complaint]) -> Dict[str, int]:
    counts = {label: 0 for label in COMPLAINT_LABELS.values()}
    for complaint in complaints:
        counts[COMPLAINT_LABELS[complaint.status]] += 1
    return counts


def filter_complaints(
    complaints: Iterable[Complaint],
    status: Optional[ComplaintStatus] = None,
    channel: Optional[str] = None,
) -> List[Complaint]:
    result = []
    for complaint in complaints:
        if status is not None and complaint.status != status:
            continue
        if channel and complaint.channel != channel:
            continue
        result.append(complaint)
    return result
