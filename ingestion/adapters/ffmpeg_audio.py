"""
FFmpeg Audio Extraction

Default AudioExtractor: converts any audio/video file into a mono 16 kHz
WAV suitable for speech recognition. The ffmpeg command line is built with
ffmpeg-python and run as an asyncio subprocess so extraction never blocks
the event loop and can be cancelled.
"""

import asyncio
import hashlib
import logging
from pathlib import Path

import ffmpeg

from ingestion.orchestration.errors import AudioExtractionError


logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
CHANNELS = 1


def audio_file_name(source_path: str) -> str:
    """WAV file name for a source; distinct for every absolute source path."""
    source = Path(source_path)
    digest = hashlib.sha1(str(source.resolve()).encode("utf-8")).hexdigest()[:12]
    return f"{source.stem}-{digest}.wav"


async def run_ffmpeg(args, timeout: float = None):
    """Run an ffmpeg argv and return (returncode, stderr text).
    
    The process is killed if the calling task is cancelled or the timeout
    expires.
    
    Raises:
        FileNotFoundError: If the ffmpeg executable is missing
        asyncio.TimeoutError: If the timeout expires
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except BaseException:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise
    return process.returncode, stderr.decode("utf-8", errors="replace")


class FFmpegAudioExtractor:
    """Extracts a mono 16 kHz WAV track with ffmpeg.
    
    Example:
        >>> extractor = FFmpegAudioExtractor("./archive/audio")
        >>> audio_path = await extractor.extract_audio("hearing.mp4")
    """
    
    def __init__(self, output_dir: str, ffmpeg_path: str = "ffmpeg", timeout: float = 1800.0):
        self.output_dir = Path(output_dir)
        self.ffmpeg_path = ffmpeg_path
        self.timeout = timeout
    
    def build_command(self, source_path: str, output_path: str) -> list:
        """Build the ffmpeg argv for one extraction."""
        stream = (
            ffmpeg
            .input(source_path)
            .output(output_path, vn=None, ac=CHANNELS, ar=SAMPLE_RATE, acodec="pcm_s16le")
            .global_args("-hide_banner", "-loglevel", "error")
            .overwrite_output()
        )
        return stream.compile(cmd=self.ffmpeg_path)
    
    async def extract_audio(self, source_path: str) -> str:
        """Extract audio from a media file.
        
        Raises:
            AudioExtractionError: If the file is missing or ffmpeg fails
        """
        source = Path(source_path)
        if not source.is_file():
            raise AudioExtractionError(f"Media file not found: {source_path}")
        
        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / audio_file_name(source_path)
        args = self.build_command(str(source), str(output_path))
        
        logger.debug(f"Running: {' '.join(args)}")
        try:
            returncode, stderr = await run_ffmpeg(args, timeout=self.timeout)
        except FileNotFoundError as e:
            raise AudioExtractionError(f"ffmpeg not found at '{self.ffmpeg_path}'") from e
        except asyncio.TimeoutError as e:
            raise AudioExtractionError(f"ffmpeg timed out after {self.timeout:.0f}s") from e
        
        if returncode != 0:
            raise AudioExtractionError(f"ffmpeg failed (rc={returncode}): {stderr.strip()[:300]}")
        if not output_path.exists():
            raise AudioExtractionError("ffmpeg finished but produced no audio file")
        
        logger.info(f"Extracted audio: {output_path}")
        return str(output_path)
