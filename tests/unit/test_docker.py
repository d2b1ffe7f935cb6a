"""Tests for docker image tag resolution."""

from unittest.mock import patch

import httpx
import pytest
from packaging.version import Version

from verifix.docker import DockerTagResolver, to_specifier_set


class TestToSpecifierSet:
    """Test npm range conversion."""

    def test_caret_range(self):
        spec = to_specifier_set("^16.0.0")
        assert Version("16.0.2") in spec
        assert Version("16.9.0") in spec
        assert Version("17.0.0") not in spec
        assert Version("15.0.9") not in spec

    def test_caret_zero_major(self):
        spec = to_specifier_set("^0.3.0")
        assert Version("0.3.5") in spec
        assert Version("0.4.0") not in spec

    def test_caret_zero_minor(self):
        spec = to_specifier_set("^0.0.3")
        assert Version("0.0.3") in spec
        assert Version("0.0.4") not in spec

    @pytest.mark.parametrize(
        "constraint,inside,outside",
        [("^0", "0.9.0", "1.0.0"), ("^0.0", "0.0.9", "0.1.0"), ("^17", "17.9.1", "18.0.0")],
    )
    def test_caret_partial_versions(self, constraint, inside, outside):
        spec = to_specifier_set(constraint)
        assert Version(inside) in spec
        assert Version(outside) not in spec

    def test_tilde_bare_major(self):
        spec = to_specifier_set("~17")
        assert Version("17.5.0") in spec
        assert Version("18.0.0") not in spec

    def test_tilde_major_minor(self):
        spec = to_specifier_set("~17.2")
        assert Version("17.2.9") in spec
        assert Version("17.3.0") not in spec

    def test_tilde_range(self):
        spec = to_specifier_set("~11.0.2")
        assert Version("11.0.12") in spec
        assert Version("11.1.0") not in spec

    def test_bare_major(self):
        spec = to_specifier_set("17")
        assert Version("17.0.5") in spec
        assert Version("18.0.0") not in spec

    def test_exact_version(self):
        assert str(to_specifier_set("17.0.1")) == "==17.0.1"

    def test_pep440_passthrough(self):
        spec = to_specifier_set(">=17,<19")
        assert Version("18.0.1") in spec


class TestDockerTagResolver:
    """Test tag selection against the registry."""

    @pytest.mark.asyncio
    async def test_picks_highest_matching_tag(self):
        resolver = DockerTagResolver()

        with patch.object(resolver, "_fetch_tags") as mock_fetch:
            mock_fetch.return_value = ["latest", "11.0.12", "16.0.1", "16.0.2", "17.0.1", "17-jdk"]

            tag = await resolver.get_tag("renovate/java", "^16.0.0")
            assert tag == "16.0.2"
            mock_fetch.assert_called_once_with("renovate/java")

    @pytest.mark.asyncio
    async def test_no_constraint_uses_latest(self):
        resolver = DockerTagResolver()

        with patch.object(resolver, "_fetch_tags") as mock_fetch:
            assert await resolver.get_tag("renovate/java", None) == "latest"
            mock_fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_matching_tag_uses_latest(self):
        resolver = DockerTagResolver()

        with patch.object(resolver, "_fetch_tags") as mock_fetch:
            mock_fetch.return_value = ["11.0.12", "latest"]
            assert await resolver.get_tag("renovate/java", "^16.0.0") == "latest"

    @pytest.mark.asyncio
    async def test_registry_error_uses_latest(self):
        resolver = DockerTagResolver()

        with patch.object(resolver, "_fetch_tags") as mock_fetch:
            mock_fetch.side_effect = httpx.ConnectError("connection refused")
            assert await resolver.get_tag("renovate/java", "^16.0.0") == "latest"

    @pytest.mark.asyncio
    async def test_fetches_all_pages(self):
        """Should follow the registry's next links."""
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            if request.url.params.get("page") == "2":
                return httpx.Response(200, json={"results": [{"name": "16.0.2"}], "next": None})
            return httpx.Response(
                200,
                json={
                    "results": [{"name": "latest"}, {"name": "16.0.1"}],
                    "next": "https://hub.docker.com/v2/repositories/renovate/java/tags?page=2&page_size=100",
                },
            )

        real_client = httpx.AsyncClient

        def client_factory(**kwargs):
            return real_client(transport=httpx.MockTransport(handler), **kwargs)

        resolver = DockerTagResolver(timeout=5.0)
        with patch("verifix.docker.httpx.AsyncClient", side_effect=client_factory):
            tags = await resolver._fetch_tags("renovate/java")

        assert tags == ["latest", "16.0.1", "16.0.2"]
        assert len(requested) == 2
        assert resolver._cache["renovate/java"] == tags

    @pytest.mark.asyncio
    async def test_uses_cached_tags(self):
        resolver = DockerTagResolver()
        resolver._cache["renovate/java"] = ["16.0.2"]

        with patch("httpx.AsyncClient") as mock_client:
            assert await resolver.get_tag("renovate/java", "^16.0.0") == "16.0.2"
            mock_client.assert_not_called()
