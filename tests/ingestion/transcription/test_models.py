"""
Unit Tests: Transcription Models

**Test Coverage:**
- Legal and illegal job status transitions
- Terminal-state immutability
- Job bookkeeping (history, completed_at, errors)
- Result helpers (success, speakers, to_dict)
"""

import pytest

from ingestion.transcription.errors import InvalidTransitionError
from ingestion.transcription.models import (
    JobErrorKind,
    TranscriptionJob,
    TranscriptionResult,
    TranscriptionStatus,
    TranscriptSegment,
    can_transition,
)

S = TranscriptionStatus


# ============================================================================
# Test: Transition rules
# ============================================================================

@pytest.mark.parametrize("current, requested", [
    (S.NOT_STARTED, S.QUEUED),
    (S.NOT_STARTED, S.FAILED),
    (S.QUEUED, S.PROCESSING),
    (S.QUEUED, S.COMPLETED),
    (S.PROCESSING, S.COMPLETED),
    (S.PROCESSING, S.FAILED),
    (S.NOT_STARTED, S.CANCELLED),
    (S.QUEUED, S.CANCELLED),
    (S.PROCESSING, S.CANCELLED),
])
def test_legal_transitions(current, requested):
    assert can_transition(current, requested)


@pytest.mark.parametrize("current, requested", [
    (S.PROCESSING, S.QUEUED),
    (S.QUEUED, S.NOT_STARTED),
    (S.QUEUED, S.UNKNOWN),
    (S.COMPLETED, S.FAILED),
    (S.FAILED, S.COMPLETED),
    (S.CANCELLED, S.QUEUED),
    (S.COMPLETED, S.CANCELLED),
])
def test_illegal_transitions(current, requested):
    assert not can_transition(current, requested)


def test_terminal_statuses():
    assert {s for s in S if s.is_terminal} == {S.COMPLETED, S.FAILED, S.CANCELLED}


# ============================================================================
# Test: TranscriptionJob
# ============================================================================

def test_new_job_defaults():
    job = TranscriptionJob(source_file_path="hearing.wav")
    
    assert job.status is S.NOT_STARTED
    assert job.remote_id == ""
    assert job.id
    assert job.history == [S.NOT_STARTED]
    assert job.completed_at is None


def test_jobs_get_distinct_ids():
    assert TranscriptionJob("a.wav").id != TranscriptionJob("a.wav").id


def test_transition_records_history():
    job = TranscriptionJob("a.wav")
    job.transition_to(S.QUEUED)
    job.transition_to(S.PROCESSING)
    job.transition_to(S.COMPLETED)
    
    assert job.history == [S.NOT_STARTED, S.QUEUED, S.PROCESSING, S.COMPLETED]
    assert job.completed_at is not None
    assert job.is_terminal


def test_repeated_status_is_a_no_op():
    job = TranscriptionJob("a.wav")
    job.transition_to(S.QUEUED)
    
    assert job.transition_to(S.QUEUED) is False
    assert job.history == [S.NOT_STARTED, S.QUEUED]


def test_failure_keeps_error_and_kind():
    job = TranscriptionJob("a.wav")
    job.transition_to(S.FAILED, error="quota exceeded", kind=JobErrorKind.SUBMISSION)
    
    assert job.last_error == "quota exceeded"
    assert job.error_kind is JobErrorKind.SUBMISSION


def test_no_transition_out_of_terminal_state():
    job = TranscriptionJob("a.wav")
    job.transition_to(S.CANCELLED)
    
    with pytest.raises(InvalidTransitionError) as exc_info:
        job.transition_to(S.PROCESSING)
    
    assert exc_info.value.current is S.CANCELLED
    assert job.status is S.CANCELLED


def test_backward_transition_rejected():
    job = TranscriptionJob("a.wav")
    job.transition_to(S.PROCESSING)
    
    with pytest.raises(InvalidTransitionError):
        job.transition_to(S.QUEUED)


# ============================================================================
# Test: TranscriptionResult
# ============================================================================

def test_result_success_requires_completed_without_error():
    assert TranscriptionResult(status=S.COMPLETED).success
    assert not TranscriptionResult(status=S.COMPLETED, error="x").success
    assert not TranscriptionResult(status=S.FAILED).success


def test_speakers_in_order_of_appearance():
    result = TranscriptionResult(segments=[
        TranscriptSegment("a", 0, 1, 0.9, speaker="B"),
        TranscriptSegment("b", 1, 2, 0.9, speaker="A"),
        TranscriptSegment("c", 2, 3, 0.9, speaker="B"),
        TranscriptSegment("d", 3, 4, 0.9),
    ])
    
    assert result.speakers == ["B", "A"]


def test_result_to_dict_uses_status_value():
    data = TranscriptionResult(id="abc", status=S.COMPLETED, transcript="hi").to_dict()
    
    assert data["status"] == "completed"
    assert data["id"] == "abc"
    assert data["segments"] == []
