from datetime import datetime, timezone

import pytest

from github_storage.host import DatedUploadHost, sanitize_file_name
from github_storage.schemas import UploadedFile

FIXED_NOW = datetime(2024, 5, 3, 12, 0, tzinfo=timezone.utc)


def make_exists(taken):
    calls = []

    async def exists(filename, target_dir=None):
        calls.append((filename, target_dir))
        return filename in taken

    return exists, calls


@pytest.mark.parametrize(
    "name, expected",
    [
        ("cat", "cat"),
        ("my cat (1)", "my-cat--1-"),
        ("logo@2x", "logo@2x"),
        ("café", "caf-"),
        ("snake_case.min", "snake_case.min"),
    ],
)
def test_sanitize_file_name(name, expected):
    assert sanitize_file_name(name) == expected


@pytest.mark.parametrize(
    "base_dir, expected",
    [("", "2024/05"), ("content/images", "content/images/2024/05")],
)
def test_target_dir__year_and_month(base_dir, expected):
    exists, _ = make_exists(set())
    host = DatedUploadHost(exists, base_dir=base_dir, clock=lambda: FIXED_NOW)

    assert host.target_dir() == expected


async def test_unique_file_name__free_name_kept(tmp_path):
    exists, calls = make_exists(set())
    host = DatedUploadHost(exists, clock=lambda: FIXED_NOW)
    upload = UploadedFile(path=str(tmp_path / "tmp"), name="cat.png")

    name = await host.unique_file_name(upload, "2024/05")

    assert name == "2024/05/cat.png"
    assert calls == [("cat.png", "2024/05")]


async def test_unique_file_name__appends_counter_until_free(tmp_path):
    exists, calls = make_exists({"cat.png", "cat-1.png"})
    host = DatedUploadHost(exists, clock=lambda: FIXED_NOW)
    upload = UploadedFile(path=str(tmp_path / "tmp"), name="cat.png")

    name = await host.unique_file_name(upload, "2024/05")

    assert name == "2024/05/cat-2.png"
    assert [filename for filename, _ in calls] == ["cat.png", "cat-1.png", "cat-2.png"]


async def test_unique_file_name__sanitises_display_name(tmp_path):
    exists, _ = make_exists(set())
    host = DatedUploadHost(exists, clock=lambda: FIXED_NOW)
    upload = UploadedFile(path=str(tmp_path / "tmp"), name="holiday photo (2).JPG")

    name = await host.unique_file_name(upload, "")

    assert name == "holiday-photo--2-.JPG"
