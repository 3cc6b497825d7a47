import pytest

from aquatrack.core.complaints import (
    complaint_counts,
    filter_complaints,
    open_complaints,
    validate_resolution,
    validate_submission,
)
from aquatrack.core.errors import ConflictError, ValidationError
from aquatrack.core.models import Complaint
from aquatrack.core.status import ComplaintStatus


def complaint(cid="1", status=ComplaintStatus.PENDING, channel="BLINKIT"):
    return Complaint(id=cid, subject="Leak", description="Cans leaked", status=status, channel=channel)


def test_submission_requires_every_field():
    assert validate_submission(" Leak ", "Two cans", "S1") == {
        "subject": "Leak", "description": "Two cans", "store_id": "S1",
    }
    with pytest.raises(ValidationError):
        validate_submission("Leak", "  ", "S1")
    with pytest.raises(ValidationError):
        validate_submission("Leak", "Two cans", None)


def test_resolution():
    assert validate_resolution(complaint(), " Replaced ") == {"status": "resolved", "solution": "Replaced"}
    with pytest.raises(ValidationError):
        validate_resolution(complaint(), "")
    with pytest.raises(ConflictError):
        validate_resolution(complaint(status=ComplaintStatus.RESOLVED), "Again")


def test_counts_and_filters():
    items = [
        complaint("1"),
        complaint("2", ComplaintStatus.RESOLVED, "ZEPTO"),
        complaint("3", ComplaintStatus.IN_PROGRESS),
    ]
    assert [c.id for c in open_complaints(items)] == ["1", "3"]
    assert complaint_counts(items) == {"New": 1, "In Progress": 1, "Resolved": 1, "Unknown": 0}
    assert [c.id for c in filter_complaints(items, channel="ZEPTO")] == ["2"]
    assert [c.id for c in filter_complaints(items, status=ComplaintStatus.PENDING)] == ["1"]
