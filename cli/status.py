"""
Status Subcommand Module

Fetches one remote transcription job and prints its canonical result as
JSON.
"""

import asyncio
import json
import sys

import click

from ingestion.config import IngestionConfig
from ingestion.resilience.errors import PermanentTransportError, ResilienceError
from ingestion.transcription.errors import ConfigurationError, ProviderResponseError
from ingestion.transcription.factory import TranscriptionServiceFactory
from ingestion.transcription.models import TranscriptionResult
from ingestion.utils.logging_config import logging_config

from .shared_options import api_key_option, config_option, log_level_option
from .help_texts import CONFIG_HELP, LOG_LEVEL_HELP, STATUS_HELP, STATUS_ID_HELP, ExitCodes


async def _fetch(config: IngestionConfig, remote_id: str) -> TranscriptionResult:
    factory = TranscriptionServiceFactory(config)
    try:
        return await factory.create_client().fetch_result(remote_id)
    finally:
        await factory.close()


@click.command(help=STATUS_HELP)
@click.option("--id", "remote_id", required=True, help=STATUS_ID_HELP)
@config_option(help=CONFIG_HELP)
@api_key_option()
@log_level_option(help=LOG_LEVEL_HELP)
def status(remote_id, config, api_key, log_level):
    """
    Print the status of a remote transcription job.
    """
    logging_config.configure_logging(level=log_level)
    
    try:
        ingestion_config = IngestionConfig.load(config)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCodes.FILE_NOT_FOUND)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCodes.INVALID_CONFIGURATION)
    
    if api_key:
        ingestion_config.assemblyai.api_key = api_key
    
    try:
        result = asyncio.run(_fetch(ingestion_config, remote_id))
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(ExitCodes.INVALID_CONFIGURATION)
    except PermanentTransportError as e:
        click.echo(f"Error: {e}", err=True)
        if e.status in (401, 403):
            sys.exit(ExitCodes.AUTHENTICATION_ERROR)
        sys.exit(ExitCodes.GENERAL_ERROR)
    except (ResilienceError, ProviderResponseError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCodes.NETWORK_ERROR)
    
    click.echo(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
