"""
Shared CLI Option Decorators

This module provides reusable Click decorators for common CLI options,
ensuring consistency across subcommands.
"""

import click


def input_option(help=None, multiple=False):
    """Decorator for source media file options."""
    def decorator(f):
        return click.option(
            '--source', '-s',
            required=True,
            multiple=multiple,
            type=click.Path(dir_okay=False),
            help=help or 'Media file to ingest'
        )(f)
    return decorator


def language_option(help=None):
    """Decorator for language options."""
    def decorator(f):
        return click.option(
            '--language', '-l',
            default=None,
            help=help or 'Spoken language code (overrides config)'
        )(f)
    return decorator


def api_key_option(help=None):
    """Decorator for API key options."""
    def decorator(f):
        return click.option(
            '--api-key',
            default=None,
            help=help or 'AssemblyAI API key (overrides config and environment)'
        )(f)
    return decorator


def output_dir_option(help=None):
    """Decorator for output directory options."""
    def decorator(f):
        return click.option(
            '--output-dir',
            default=None,
            help=help or 'Directory for output files (overrides config)'
        )(f)
    return decorator


def config_option(help=None):
    """Decorator for configuration file options."""
    def decorator(f):
        return click.option(
            '--config',
            default=None,
            help=help or 'Path to configuration file'
        )(f)
    return decorator


def log_level_option(help=None):
    """Decorator for logging level options."""
    def decorator(f):
        return click.option(
            '--log-level',
            default='INFO',
            type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
            help=help or 'Logging level'
        )(f)
    return decorator


def log_file_option(help=None):
    """Decorator for log file options."""
    def decorator(f):
        return click.option(
            '--log-file',
            default=None,
            help=help or 'Also write logs to this file (rotated at 10MB)'
        )(f)
    return decorator
