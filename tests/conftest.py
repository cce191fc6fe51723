"""
Pytest conftest.py - Shared fixtures and configuration

The application reads its settings at import time, so the test
environment (temporary SQLite database, temporary media root, known
passwords) is set up here before anything from ``photoblog`` is imported.
Each test that uses ``client`` gets an empty database.
"""

import io
import os
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator, Optional, Tuple

import pytest

TEST_DIR = Path(tempfile.mkdtemp(prefix="photoblog-tests-"))
TEST_DB_PATH = TEST_DIR / "test.db"
TEST_MEDIA_ROOT = TEST_DIR / "media"

ADMIN_PASSWORD = "admin-test-password"
SITE_PASSWORD = "site-test-password"

os.environ.update(
    {
        "APP_ENV": "testing",
        "DATABASE_URL": f"sqlite+aiosqlite:///{TEST_DB_PATH}",
        "MEDIA_ROOT": str(TEST_MEDIA_ROOT),
        "ADMIN_EMAIL": "admin@example.com",
        "ADMIN_PASSWORD": ADMIN_PASSWORD,
        "SITE_PASSWORD": SITE_PASSWORD,
        "JWT_SECRET_KEY": "test-secret-key",
    }
)

import piexif  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from PIL import Image  # noqa: E402

from photoblog.main import app  # noqa: E402
from photoblog.middleware.rate_limit import limiter  # noqa: E402


# =============================================================================
# PYTEST HOOKS
# =============================================================================

def pytest_configure(config):
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


def pytest_collection_modifyitems(config, items):
    """Mark API tests as integration tests, the rest as unit tests."""
    for item in items:
        if "client" in getattr(item, "fixturenames", ()):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(TEST_DIR, ignore_errors=True)


# =============================================================================
# API FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Start every test with a clean login attempt counter"""
    limiter.reset()
    yield


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """
    Test client with a fresh database

    Entering the client runs the application lifespan, which connects the
    database and creates the tables.
    """
    if TEST_DB_PATH.exists():
        TEST_DB_PATH.unlink()

    with TestClient(app) as test_client:
        yield test_client

    shutil.rmtree(TEST_MEDIA_ROOT / "photos", ignore_errors=True)


@pytest.fixture
def admin_token(client) -> str:
    response = client.post(
        "/api/auth/login",
        json={"email": "admin@example.com", "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


@pytest.fixture
def admin_headers(admin_token) -> Dict[str, str]:
    """Authorization header for the admin session"""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def site_headers(client) -> Dict[str, str]:
    """Header carrying a site token for the public pages"""
    response = client.post("/api/auth/site", json={"password": SITE_PASSWORD})
    assert response.status_code == 200, response.text
    return {"X-Site-Token": response.json()["access_token"]}


# =============================================================================
# IMAGE FIXTURES
# =============================================================================

def to_dms_rationals(value: float) -> Tuple[Tuple[int, int], ...]:
    """Decimal degrees to EXIF (degrees, minutes, seconds) rationals."""
    value = abs(value)
    degrees = int(value)
    minutes_float = (value - degrees) * 60
    minutes = int(minutes_float)
    seconds = round((minutes_float - minutes) * 60 * 10000)
    return ((degrees, 1), (minutes, 1), (seconds, 10000))


def make_jpeg(
    gps: Optional[Tuple[float, str, float, str]] = None,
    taken: Optional[str] = None,
    size: Tuple[int, int] = (64, 48),
) -> bytes:
    """
    Build a JPEG, optionally with EXIF GPS and DateTimeOriginal

    Args:
        gps: ``(latitude, lat_ref, longitude, lng_ref)``, unsigned values.
        taken: EXIF timestamp such as ``"2023:06:15 14:30:00"``.
    """
    image = Image.new("RGB", size, color="blue")
    buffer = io.BytesIO()

    exif_dict = {"0th": {}, "Exif": {}, "GPS": {}}
    if taken:
        exif_dict["Exif"][piexif.ExifIFD.DateTimeOriginal] = taken.encode()
    if gps:
        latitude, lat_ref, longitude, lng_ref = gps
        exif_dict["GPS"] = {
            piexif.GPSIFD.GPSLatitudeRef: lat_ref.encode(),
            piexif.GPSIFD.GPSLatitude: to_dms_rationals(latitude),
            piexif.GPSIFD.GPSLongitudeRef: lng_ref.encode(),
            piexif.GPSIFD.GPSLongitude: to_dms_rationals(longitude),
        }

    if taken or gps:
        image.save(buffer, format="JPEG", exif=piexif.dump(exif_dict))
    else:
        image.save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Plain JPEG without EXIF data"""
    return make_jpeg()


@pytest.fixture
def gps_image_bytes() -> bytes:
    """
    JPEG taken in Manhattan whose camera wrote an E reference

    The longitude comes out positive and must be corrected on upload.
    """
    return make_jpeg(gps=(40.7128, "N", 74.006, "E"), taken="2023:06:15 14:30:00")


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (10, 10), color=(255, 0, 0, 128)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def upload_photo(client, admin_headers, sample_image_bytes):
    """Factory uploading a photo through the API and returning its JSON"""

    def _upload(
        description: str = "Old barn",
        location: str = "Vermont",
        image: Optional[bytes] = None,
        **fields,
    ):
        data = {"description": description, "location": location}
        data.update({key: str(value) for key, value in fields.items()})
        response = client.post(
            "/api/photos",
            data=data,
            files={"image": ("photo.jpg", image or sample_image_bytes, "image/jpeg")},
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _upload


@pytest.fixture
def sample_metadata() -> Dict[str, object]:
    """Metadata of a Manhattan photo stored with the wrong longitude sign"""
    return {
        "latitude": 40.7128,
        "longitude": 74.006,
        "coordinates": "40.7128,74.006",
        "originalLocation": "New York",
    }
