from pathlib import Path
from dotenv import load_dotenv
from unittest.mock import Mock
import pytest

# Load environment variables for tests before the app package is imported
load_dotenv(Path(__file__).resolve().parents[1] / '.env.test')


@pytest.fixture(autouse=True)
def patch_send_email(monkeypatch):
    """Replace SMTP delivery with a Mock for all tests."""
    mock = Mock()
    monkeypatch.setattr("app.utils.notifications.send_email", mock)
    return mock


@pytest.fixture(autouse=True)
def local_storage_dir(monkeypatch, tmp_path):
    """Keep locally stored uploads out of the source tree."""
    monkeypatch.setattr("app.utils.r2.STATIC_DIR", tmp_path)
    return tmp_path
