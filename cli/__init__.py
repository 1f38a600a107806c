"""
CLI Package for Trial Media Ingestion

This package provides a modular CLI architecture using Click groups and subcommands.
Each subcommand is implemented in its own module for better maintainability and testing.

The main entry point is the main() function which creates a Click group and registers
all available subcommands. The cli() function serves as the console script entry point
for setup.py.
"""

import os
import click
from dotenv import load_dotenv

from ingestion import __version__

# Load environment variables from .env files
# Priority: .env.dev (if exists) overrides .env
if os.path.exists('.env.dev'):
    load_dotenv('.env.dev')
elif os.path.exists('.env'):
    load_dotenv('.env')
from .ingest import ingest
from .status import status


@click.group()
@click.version_option(version=__version__, prog_name='media-ingest')
def main():
    """Media Ingest CLI - Transcribe and archive hearing recordings.
    
    Extracts audio from recordings, transcribes it with AssemblyAI while
    tolerating network instability and rate limiting, and hands the
    transcripts to the search index and metadata store.
    """
    pass


# Register subcommands
main.add_command(ingest)
main.add_command(status)


# Entry point for setup.py console script
def cli():
    """Console script entry point.
    
    This function is called when the media-ingest command is executed
    from the command line after installation via pip.
    """
    main()
