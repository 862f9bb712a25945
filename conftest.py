import shutil
from pathlib import Path

import pytest

from companion_stories import storage
from companion_stories.models import AdminCredentials

TEST_DATA_DIR = Path("data-tests")
ADMIN = AdminCredentials(username="admin", password="s3cret")


@pytest.fixture(autouse=True)
def clean_test_data():
    """Wipe and re-init data-tests/ before every test."""
    if TEST_DATA_DIR.exists():
        shutil.rmtree(TEST_DATA_DIR)
    storage.init_storage(TEST_DATA_DIR)
    storage.set_admin_credentials(ADMIN)
    yield
    # leave data-tests around after tests for inspection; CI can ignore it


@pytest.fixture
def admin_creds() -> AdminCredentials:
    return ADMIN
