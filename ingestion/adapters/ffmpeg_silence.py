"""
FFmpeg Silence Analysis

Default SilenceAnalyzer built on ffmpeg's ``silencedetect`` filter. The
filter reports intervals on stderr:

    [silencedetect @ 0x...] silence_start: 12.48
    [silencedetect @ 0x...] silence_end: 15.02 | silence_duration: 2.54

A trailing silence that runs to the end of the file has no silence_end
line; it is closed at the input duration when ffmpeg reports one.
"""

import asyncio
import logging
import re
from typing import List, Optional, Tuple

import ffmpeg

from ingestion.adapters.ffmpeg_audio import run_ffmpeg
from ingestion.orchestration.errors import SilenceAnalysisError


logger = logging.getLogger(__name__)

SILENCE_START_RE = re.compile(r"silence_start:\s*(-?[\d\.]+)")
SILENCE_END_RE = re.compile(r"silence_end:\s*(-?[\d\.]+)\s*\|\s*silence_duration:\s*([\d\.]+)")
DURATION_RE = re.compile(r"Duration:\s*(\d+):(\d+):(\d+(?:\.\d+)?)")


def _to_ms(seconds: float) -> int:
    return max(0, int(round(seconds * 1000)))


def parse_silencedetect_output(stderr: str) -> List[Tuple[int, int]]:
    """Parse silencedetect stderr into (start_ms, end_ms) pairs."""
    intervals = []
    pending_start: Optional[float] = None
    total_duration: Optional[float] = None
    
    for line in stderr.splitlines():
        duration_match = DURATION_RE.search(line)
        if duration_match and total_duration is None:
            hours, minutes, seconds = duration_match.groups()
            total_duration = int(hours) * 3600 + int(minutes) * 60 + float(seconds)
            continue
        
        start_match = SILENCE_START_RE.search(line)
        if start_match:
            pending_start = float(start_match.group(1))
            continue
        
        end_match = SILENCE_END_RE.search(line)
        if end_match:
            end = float(end_match.group(1))
            duration = float(end_match.group(2))
            start = pending_start if pending_start is not None else end - duration
            intervals.append((_to_ms(start), max(_to_ms(start), _to_ms(end))))
            pending_start = None
    
    if pending_start is not None and total_duration is not None:
        intervals.append((_to_ms(pending_start), max(_to_ms(pending_start), _to_ms(total_duration))))
    
    return intervals


class FFmpegSilenceAnalyzer:
    """Finds silent stretches with ffmpeg ``silencedetect``.
    
    Example:
        >>> analyzer = FFmpegSilenceAnalyzer(noise_floor_db=-30, min_duration=2.0)
        >>> await analyzer.analyze("hearing.wav")
        [(0, 2300), (61250, 64000)]
    """
    
    def __init__(
        self,
        noise_floor_db: float = -30.0,
        min_duration: float = 2.0,
        ffmpeg_path: str = "ffmpeg",
        timeout: float = 1800.0
    ):
        self.noise_floor_db = noise_floor_db
        self.min_duration = min_duration
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout
    
    def build_command(self, audio_path: str) -> list:
        """Build the ffmpeg argv for one analysis run."""
        stream = (
            ffmpeg
            .input(audio_path)
            .filter("silencedetect", noise=f"{self.noise_floor_db:g}dB", d=self.min_duration)
            .output("-", format="null")
            .global_args("-hide_banner", "-nostats")
        )
        return stream.compile(cmd=self.ffmpeg_path)
    
    async def analyze(self, audio_path: str) -> List[Tuple[int, int]]:
        """Return silence intervals in milliseconds.
        
        Raises:
            SilenceAnalysisError: If ffmpeg is missing or fails
        """
        args = self.build_command(audio_path)
        try:
            returncode, stderr = await run_ffmpeg(args, timeout=self.timeout)
        except FileNotFoundError as e:
            raise SilenceAnalysisError(f"ffmpeg not found at '{self.ffmpeg_path}'") from e
        except asyncio.TimeoutError as e:
            raise SilenceAnalysisError(f"silencedetect timed out after {self.timeout:.0f}s") from e
        
        if returncode != 0:
            raise SilenceAnalysisError(f"silencedetect failed (rc={returncode}): {stderr.strip()[-300:]}")
        
        intervals = parse_silencedetect_output(stderr)
        logger.debug(f"{audio_path}: {len(intervals)} silence intervals")
        return intervals
