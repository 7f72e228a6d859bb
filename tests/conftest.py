# tests/conftest.py
"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from hypothesis import Phase, Verbosity, settings

from tracelog.apis.attachments import AttachmentAPI
from tracelog.apis.logs import LogsAPI
from tracelog.config import WriterSettings
from tracelog.writer.capture import CaptureWriter
from tracelog.writer.writer import LogWriter

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


@pytest.fixture(autouse=True)
def _not_serverless(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests run as a normal host unless they opt into the serverless path."""
    monkeypatch.delenv("AWS_LAMBDA_FUNCTION_NAME", raising=False)


@pytest.fixture
def writer_settings(tmp_path: Path) -> WriterSettings:
    """Settings with the timer disabled and fallback files under tmp_path."""
    return WriterSettings(
        base_url="https://collector.example.com",
        api_key="test-key",
        repository_id="repo-1",
        auto_flush=False,
        fallback_dir=tmp_path,
        mutex_timeout_seconds=5.0,
    )


@pytest.fixture
def logs_api() -> MagicMock:
    return MagicMock(spec=LogsAPI)


@pytest.fixture
def attachment_api() -> MagicMock:
    api = MagicMock(spec=AttachmentAPI)
    api.get_upload_url.return_value = "https://storage.example.com/signed"
    return api


@pytest.fixture
def writer(writer_settings: WriterSettings, logs_api: MagicMock, attachment_api: MagicMock):
    """LogWriter with mocked collector clients, cleaned up after the test."""
    log_writer = LogWriter(writer_settings, logs_api=logs_api, attachment_api=attachment_api)
    yield log_writer
    log_writer.cleanup()


@pytest.fixture
def capture() -> CaptureWriter:
    return CaptureWriter()
