"""
Response Mapper

Pure functions converting AssemblyAI wire DTOs into the canonical
TranscriptionResult model. Missing optional fields map to empty/default
values and never raise. Millisecond fields pass through unchanged.

Segment construction:
- When the provider returns utterances, each utterance becomes a segment.
  Its words come from the utterance itself or, when absent, from the
  top-level words whose midpoint falls inside the utterance.
- Otherwise top-level words are grouped into segments, starting a new
  segment on a speaker change or a gap longer than WORD_GAP_MS.
- Sentiment is the most frequent label among sentiment results
  overlapping the segment.
"""

from collections import Counter
from typing import Iterable, List, Optional

from ingestion.transcription.models import (
    TranscriptionResult,
    TranscriptionStatus,
    TranscriptSegment,
    Word,
)
from ingestion.transcription.schemas import (
    SentimentResultDto,
    TranscriptResponse,
    UtteranceDto,
    WordDto,
)


WORD_GAP_MS = 1000

STATUS_MAP = {
    "queued": TranscriptionStatus.QUEUED,
    "processing": TranscriptionStatus.PROCESSING,
    "completed": TranscriptionStatus.COMPLETED,
    "error": TranscriptionStatus.FAILED,
}


def map_status(value: Optional[str]) -> TranscriptionStatus:
    """Map a provider status string onto the canonical enum.
    
    Unrecognized or missing values map to UNKNOWN.
    """
    if not value:
        return TranscriptionStatus.UNKNOWN
    return STATUS_MAP.get(value.strip().lower(), TranscriptionStatus.UNKNOWN)


def _clamp_confidence(value: Optional[float]) -> float:
    if value is None or value != value:  # NaN
        return 0.0
    return min(1.0, max(0.0, float(value)))


def _span(start: Optional[int], end: Optional[int]):
    start_ms = start if start is not None else 0
    end_ms = end if end is not None else start_ms
    return start_ms, max(start_ms, end_ms)


def map_word(dto: WordDto) -> Word:
    start, end = _span(dto.start, dto.end)
    return Word(
        text=dto.text or "",
        start_time=start,
        end_time=end,
        confidence=_clamp_confidence(dto.confidence),
    )


def _words_within(words: Iterable[Word], start: int, end: int) -> List[Word]:
    selected = []
    for word in words:
        midpoint = (word.start_time + word.end_time) / 2
        if start <= midpoint <= end:
            selected.append(word)
    return selected


def dominant_sentiment(
    results: Iterable[SentimentResultDto],
    start: int,
    end: int
) -> Optional[str]:
    """Most frequent sentiment label among results overlapping [start, end].
    
    Ties go to the label seen first. Returns None when nothing overlaps.
    """
    counts = Counter()
    for result in results:
        if not result.sentiment:
            continue
        r_start, r_end = _span(result.start, result.end)
        overlaps = r_start < end and r_end > start
        # Zero-length segments still pick up a result covering their instant
        if start == end:
            overlaps = r_start <= start <= r_end
        if overlaps:
            counts[result.sentiment] += 1
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def _segment_from_utterance(
    utterance: UtteranceDto,
    all_words: List[Word],
    sentiments: List[SentimentResultDto]
) -> TranscriptSegment:
    start, end = _span(utterance.start, utterance.end)
    
    if utterance.words:
        words = [map_word(w) for w in utterance.words]
    else:
        words = _words_within(all_words, start, end)
    words.sort(key=lambda w: w.start_time)
    
    text = utterance.text
    if text is None:
        text = " ".join(w.text for w in words if w.text)
    
    return TranscriptSegment(
        text=text,
        start_time=start,
        end_time=end,
        confidence=_clamp_confidence(utterance.confidence),
        speaker=utterance.speaker,
        sentiment=dominant_sentiment(sentiments, start, end),
        words=words,
    )


def _segments_from_words(
    word_dtos: List[WordDto],
    sentiments: List[SentimentResultDto]
) -> List[TranscriptSegment]:
    pairs = sorted(
        ((map_word(dto), dto.speaker) for dto in word_dtos),
        key=lambda pair: pair[0].start_time
    )
    
    groups = []
    current = []
    current_speaker = None
    for word, speaker in pairs:
        if current:
            gap = word.start_time - current[-1].end_time
            if gap > WORD_GAP_MS or speaker != current_speaker:
                groups.append((current, current_speaker))
                current = []
        if not current:
            current_speaker = speaker
        current.append(word)
    if current:
        groups.append((current, current_speaker))
    
    segments = []
    for words, speaker in groups:
        start = words[0].start_time
        end = max(w.end_time for w in words)
        segments.append(TranscriptSegment(
            text=" ".join(w.text for w in words if w.text),
            start_time=start,
            end_time=end,
            confidence=sum(w.confidence for w in words) / len(words),
            speaker=speaker,
            sentiment=dominant_sentiment(sentiments, start, end),
            words=words,
        ))
    return segments


def build_segments(dto: TranscriptResponse) -> List[TranscriptSegment]:
    """Build canonical segments ordered by start time."""
    sentiments = [s for s in (dto.sentiment_analysis_results or []) if s is not None]
    word_dtos = [w for w in (dto.words or []) if w is not None]
    utterances = [u for u in (dto.utterances or []) if u is not None]
    
    if utterances:
        all_words = [map_word(w) for w in word_dtos]
        segments = [
            _segment_from_utterance(u, all_words, sentiments)
            for u in utterances
        ]
    else:
        segments = _segments_from_words(word_dtos, sentiments)
    
    # Stable sort keeps provider order for equal start times
    segments.sort(key=lambda s: s.start_time)
    return segments


def to_canonical(dto: TranscriptResponse) -> TranscriptionResult:
    """Convert a provider response into a TranscriptionResult.
    
    Args:
        dto: Parsed provider response
        
    Returns:
        Canonical result; never raises for missing optional fields
        
    Example:
        >>> dto = TranscriptResponse(id="abc123", status="completed", text="hello world")
        >>> to_canonical(dto).transcript
        'hello world'
    """
    status = map_status(dto.status)
    
    percent = dto.percent_complete
    if percent is None and status is TranscriptionStatus.COMPLETED:
        percent = 100
    if percent is not None:
        percent = min(100, max(0, percent))
    
    confidence = None
    if dto.confidence is not None:
        confidence = _clamp_confidence(dto.confidence)
    
    return TranscriptionResult(
        id=dto.id or "",
        status=status,
        transcript=dto.text or "",
        detected_language=dto.language_code or "",
        percent_complete=percent,
        error=dto.error or "",
        confidence=confidence,
        audio_duration=dto.audio_duration,
        segments=build_segments(dto),
    )
