"""
setup.py

Packaging metadata and CLI entry point for the trial-media-ingest pipeline.

Version: 0.2.0 — Async transcription orchestration with retry/circuit-breaker
resilience, job polling, silence-detection enrichment and batch ingestion
commands (ingest, status).
"""
from setuptools import setup, find_packages

setup(
    name="trial-media-ingest",
    version="0.2.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "aiohttp>=3.8",
        "click",
        "pydantic>=2.0",
        "ffmpeg-python",
        "PyYAML",
        "python-dotenv",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "hypothesis",
        ],
    },
    entry_points={
        "console_scripts": [
            "media-ingest=cli:cli",
        ],
    },
    python_requires=">=3.9",
)
