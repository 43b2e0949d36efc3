"""Contents API calls over a real requests session and urllib3 retry policy."""
import pytest

from github_storage.adapters.github import GitHubClient, build_transient_retry
from github_storage.config.settings import resolve_config
from github_storage.exceptions import AbuseDetectedError, GitHubAPIError, QuotaExhaustedError
from github_storage.schemas import ContentProbe
from github_storage.storage_adapter import GitHubStorage
from tests.consts import ABUSE_MESSAGE, QUOTA_MESSAGE, TEST_RAW_CONFIG
from tests.fixtures.http_server import answer

CAT_PATH = "/repos/acme/blog/contents/images/cat.png"


def created(path="images/cat.png"):
    return answer(201, {"content": {"name": path.rsplit("/", 1)[-1], "path": path, "sha": "95b966ae"}})


@pytest.fixture
def client(local_github):
    client = GitHubClient(
        resolve_config({**TEST_RAW_CONFIG, "api_url": local_github.url}),
        transient_retry=build_transient_retry(backoff_factor=0),
    )
    client.session.trust_env = False
    yield client
    client.close()


async def test_server_errors_are_retried_by_transport(client, local_github):
    local_github.script(answer(503), answer(503), answer(200))

    probe = await client.probe_content("images/cat.png", "main")

    assert probe is ContentProbe.FOUND
    assert local_github.methods == ["HEAD"] * 3
    assert local_github.hits[0][1] == f"{CAT_PATH}?ref=main"


async def test_server_errors_surface_once_retries_are_spent(client, local_github):
    local_github.script(answer(502, {"message": "Server Error"}))

    with pytest.raises(GitHubAPIError) as exc_info:
        await client.create_or_update_content("images/cat.png", "main", "Create cat.png", "")

    assert exc_info.value.status_code == 502
    assert local_github.methods == ["PUT"] * 4


async def test_secondary_rate_limit_429_is_not_retried(client, local_github):
    local_github.script(answer(429, {"message": ABUSE_MESSAGE}, {"Retry-After": "1"}))

    with pytest.raises(AbuseDetectedError) as exc_info:
        await client.create_or_update_content("images/cat.png", "main", "Create cat.png", "")

    assert exc_info.value.retry_after == 1.0
    assert local_github.methods == ["PUT"]


async def test_quota_429_with_retry_after_is_left_to_policy(client, local_github):
    quota = answer(429, {"message": QUOTA_MESSAGE}, {"Retry-After": "0", "X-RateLimit-Remaining": "0"})
    local_github.script(quota, created())

    result = await client.create_or_update_content("images/cat.png", "main", "Create cat.png", "")

    assert result.path == "images/cat.png"
    assert local_github.methods == ["PUT", "PUT"]


async def test_quota_retries_stop_at_policy_ceiling(client, local_github):
    local_github.script(answer(403, {"message": QUOTA_MESSAGE}, {"Retry-After": "0", "X-RateLimit-Remaining": "0"}))

    with pytest.raises(QuotaExhaustedError):
        await client.create_or_update_content("images/cat.png", "main", "Create cat.png", "")

    assert local_github.methods == ["PUT"] * 4


async def test_save_over_real_transport(local_github, uploaded_file, static_host):
    storage = GitHubStorage({**TEST_RAW_CONFIG, "api_url": local_github.url}, host=static_host)
    storage.client.session.trust_env = False
    local_github.script(created())

    async with storage:
        url = await storage.save(uploaded_file)

    assert url == "https://raw.githubusercontent.com/acme/blog/main/images/cat.png"
    assert local_github.hits == [("PUT", CAT_PATH)]
