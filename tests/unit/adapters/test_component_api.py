# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Unit tests for the component HTTP adapter and app-level endpoints."""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from rendercache.adapters.config.settings import Settings
from rendercache.application.component import component
from rendercache.application.registry import ComponentRegistry
from rendercache.demo import FormalGreeter, greeting_page
from rendercache.domain.errors import ComponentNotFoundError
from rendercache.entrypoints.api_server import create_app

pytestmark = pytest.mark.unit


@pytest.fixture
def registry(counting_greeter) -> ComponentRegistry:
    registry = ComponentRegistry(default_capacity=4)
    registry.register("greeter", FormalGreeter, memoize=True)
    registry.register("counting", counting_greeter, memoize=True)
    registry.register("page", greeting_page)
    registry.register("tags", component(lambda bundle: {"tags": bundle["tag"]}))
    registry.register("raw", component(lambda bundle: b"\x00\x01"))

    @component
    def broken(bundle):
        raise RuntimeError("backend down")

    registry.register("broken", broken)
    return registry


@pytest.fixture
def client(registry: ComponentRegistry) -> TestClient:
    app = create_app(component_registry=registry, settings=Settings())
    return TestClient(app, raise_server_exceptions=False)


class TestRenderEndpoint:
    def test_renders_html(self, client: TestClient) -> None:
        response = client.get("/components/greeter", params={"name": "Macron"})

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-type"].startswith("text/html")
        assert response.text == "<h1>Hi, President Macron.</h1>"

    def test_memoized_route_renders_once(self, client: TestClient, counter) -> None:
        client.get("/components/counting", params={"name": "Merkel", "title": "Chancellor"})
        client.get("/components/counting", params={"title": "Chancellor", "name": "Merkel"})

        assert counter.count == 1

    def test_composed_component(self, client: TestClient) -> None:
        response = client.get("/components/page", params={"name": "Merkel"})
        assert "<title>Greeting Merkel</title>" in response.text

    def test_repeated_query_keys_become_list(self, client: TestClient) -> None:
        response = client.get("/components/tags", params=[("tag", "a"), ("tag", "b")])
        assert response.json() == {"tags": ["a", "b"]}

    def test_bytes_output(self, client: TestClient) -> None:
        response = client.get("/components/raw")
        assert response.content == b"\x00\x01"
        assert response.headers["content-type"] == "application/octet-stream"

    def test_unknown_component(self, client: TestClient) -> None:
        response = client.get("/components/missing")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_missing_input(self, client: TestClient) -> None:
        response = client.get("/components/greeter")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "name" in response.json()["detail"]

    def test_render_failure_is_500(self, client: TestClient) -> None:
        response = client.get("/components/broken")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["error"]["type"] == "api_error"


class TestListAndHealth:
    def test_list_components(self, client: TestClient) -> None:
        components = client.get("/components").json()["components"]

        assert {"name": "greeter", "memoized": True} in components
        assert {"name": "page", "memoized": False} in components

    def test_list_components_survives_concurrent_unregister(
        self, client: TestClient, registry: ComponentRegistry, monkeypatch
    ) -> None:
        # Unregistering between the name listing and a lookup must not fail the request
        def unregistered(name: str):
            raise ComponentNotFoundError(f"component {name!r} is not registered")

        monkeypatch.setattr(registry, "get", unregistered)

        response = client.get("/components")

        assert response.status_code == status.HTTP_200_OK
        assert len(response.json()["components"]) == 6

    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"status": "ok", "components": 6}

    def test_metrics(self, client: TestClient) -> None:
        client.get("/components/greeter", params={"name": "Macron"})

        response = client.get("/metrics")

        assert response.status_code == status.HTTP_200_OK
        assert "rendercache_cache_lookup_total" in response.text
