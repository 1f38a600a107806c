"""
Property-Based Tests for the Response Mapper

For any provider payload, however sparse:
- mapping never raises
- segments are ordered by start time and never end before they start
- confidences stay within [0.0, 1.0]
- progress stays within [0, 100]
- mapping the same payload twice gives equal results
"""

from hypothesis import given, settings, strategies as st

from ingestion.transcription.mapper import map_status, to_canonical
from ingestion.transcription.models import TranscriptionStatus
from ingestion.transcription.schemas import TranscriptResponse


maybe_ms = st.one_of(st.none(), st.integers(min_value=-1000, max_value=10_000_000))
maybe_confidence = st.one_of(st.none(), st.floats(allow_nan=True, allow_infinity=True))
maybe_text = st.one_of(st.none(), st.text(max_size=20))
maybe_speaker = st.one_of(st.none(), st.sampled_from(["A", "B", "C"]))

words = st.fixed_dictionaries({}, optional={
    "text": maybe_text,
    "start": maybe_ms,
    "end": maybe_ms,
    "confidence": maybe_confidence,
    "speaker": maybe_speaker,
})

utterances = st.fixed_dictionaries({}, optional={
    "start": maybe_ms,
    "end": maybe_ms,
    "speaker": maybe_speaker,
    "text": maybe_text,
    "confidence": maybe_confidence,
    "words": st.one_of(st.none(), st.lists(words, max_size=5)),
})

sentiments = st.fixed_dictionaries({}, optional={
    "start": maybe_ms,
    "end": maybe_ms,
    "sentiment": st.one_of(st.none(), st.sampled_from(["POSITIVE", "NEUTRAL", "NEGATIVE"])),
})

payloads = st.fixed_dictionaries({}, optional={
    "id": maybe_text,
    "status": st.one_of(st.none(), st.sampled_from(["queued", "processing", "completed", "error", "weird"])),
    "text": maybe_text,
    "confidence": maybe_confidence,
    "language_code": st.one_of(st.none(), st.sampled_from(["en", "es", "de"])),
    "percent_complete": st.one_of(st.none(), st.integers(min_value=-50, max_value=250)),
    "error": maybe_text,
    "utterances": st.one_of(st.none(), st.lists(utterances, max_size=5)),
    "words": st.one_of(st.none(), st.lists(words, max_size=10)),
    "sentiment_analysis_results": st.one_of(st.none(), st.lists(sentiments, max_size=5)),
})


@given(payload=payloads)
@settings(max_examples=200, deadline=None)
def test_property_mapping_never_raises_and_keeps_invariants(payload):
    result = to_canonical(TranscriptResponse.model_validate(payload))
    
    starts = [s.start_time for s in result.segments]
    assert starts == sorted(starts)
    for segment in result.segments:
        assert segment.end_time >= segment.start_time
        assert 0.0 <= segment.confidence <= 1.0
        for word in segment.words:
            assert word.end_time >= word.start_time
            assert 0.0 <= word.confidence <= 1.0
    
    if result.percent_complete is not None:
        assert 0 <= result.percent_complete <= 100
    if result.confidence is not None:
        assert 0.0 <= result.confidence <= 1.0
    
    assert isinstance(result.transcript, str)
    assert isinstance(result.error, str)


@given(payload=payloads)
@settings(max_examples=100, deadline=None)
def test_property_mapping_is_idempotent(payload):
    dto = TranscriptResponse.model_validate(payload)
    
    assert to_canonical(dto) == to_canonical(dto)


@given(value=st.one_of(st.none(), st.text(max_size=15)))
def test_property_status_mapping_is_total(value):
    status = map_status(value)
    
    assert isinstance(status, TranscriptionStatus)
    assert status is not TranscriptionStatus.NOT_STARTED
    assert status is not TranscriptionStatus.CANCELLED
