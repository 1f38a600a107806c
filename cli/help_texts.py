"""
Centralized Help Text Constants

This module provides all CLI help text constants for commands and options,
ensuring consistency across subcommands.
"""

# Exit codes for different error types
class ExitCodes:
    SUCCESS = 0
    GENERAL_ERROR = 1
    MISSING_REQUIRED_OPTION = 2
    INVALID_CONFIGURATION = 3
    AUTHENTICATION_ERROR = 5
    FILE_NOT_FOUND = 6
    NETWORK_ERROR = 8
    PARTIAL_SUCCESS = 9
    CANCELLED = 130

# Command help texts
INGEST_HELP = (
    "Ingest hearing recordings: extract audio, transcribe with AssemblyAI, "
    "detect silences, then index and persist the transcripts."
)
STATUS_HELP = "Show the canonical transcript and status of a remote transcription job."

# Option help texts - Ingest command
INGEST_SOURCE_HELP = (
    "Audio or video file to ingest. Repeat the option to ingest several files concurrently."
)

INGEST_OUTPUT_DIR_HELP = (
    "Archive directory for extracted audio, index documents and metadata records. "
    "Defaults to pipeline.output_dir from the configuration."
)

INGEST_MAX_CONCURRENT_HELP = "Maximum number of media files processed at the same time."

INGEST_NO_SILENCE_HELP = "Skip silence detection even if enabled in the configuration."

INGEST_REPORT_HELP = "Write the batch report as JSON to this file."

# Option help texts - Status command
STATUS_ID_HELP = "Remote transcript id returned by the provider."

CONFIG_HELP = (
    "Path to configuration file (YAML). Defaults to ./.media-ingest/config.yaml "
    "or ~/.media-ingest/config.yaml when present."
)

LOG_LEVEL_HELP = "Logging level for console output."
