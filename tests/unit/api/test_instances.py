"""
Tests for the Instances accessor.
"""

import json
from unittest.mock import patch
from uuid import UUID

import pytest
import requests

from conftest import INSTANCE_ID, read_fixture
from triton_client.core.exceptions import ConfigurationError, ResponseError, TransportError
from triton_client.core.pagination import LazyPage, MaterializedPage
from triton_client.filters import InstanceFilter
from triton_client.models import Instance

PACKAGE_ID = "14aba6f6-d0f8-11e5-8f8f-3f3ad2a7e5c7"
IMAGE_ID = "2b683a82-a066-11e3-97ab-2faa44701c5a"


class TestList:
    """Listing sends a HEAD count request, then GET."""

    def test_empty(self, cloud_api, mock_responses, machines_url):
        mock_responses.add("HEAD", machines_url, headers={"x-resource-count": "0"})

        page = cloud_api.instances.list()

        assert list(page) == []
        assert len(mock_responses.calls) == 1

    def test_two_instances(self, cloud_api, mock_responses, machines_url):
        mock_responses.add("HEAD", machines_url, headers={"x-resource-count": "2"})
        mock_responses.add(
            "GET", machines_url,
            body=read_fixture("list_under_limit.json"),
            headers={"x-resource-count": "2", "x-query-limit": "1000"}
        )

        page = cloud_api.instances.list()
        items = list(page)

        assert isinstance(page, MaterializedPage)
        assert len(items) == 2
        assert all(item is not None for item in items)
        assert str(items[0].id) == INSTANCE_ID

    def test_filter_params(self, cloud_api, mock_responses, machines_url):
        mock_responses.add("HEAD", machines_url, headers={"x-resource-count": "0"})

        cloud_api.instances.list(InstanceFilter(state="running", tags={"role": "web"}))

        url = mock_responses.calls[0].request.url
        assert "state=running" in url
        assert "tag.role=web" in url

    def test_truncated(self, cloud_api, mock_responses, machines_url):
        mock_responses.add("HEAD", machines_url, headers={"x-resource-count": "1001"})
        mock_responses.add(
            "GET", machines_url,
            body=read_fixture("list_under_limit.json"),
            headers={"x-resource-count": "1001", "x-query-limit": "1000"}
        )

        page = cloud_api.instances.list()

        assert isinstance(page, LazyPage)
        assert len(list(page)) == 2


class TestFindById:

    def test_found(self, cloud_api, mock_responses, instance_url):
        mock_responses.add("GET", instance_url, body=read_fixture("instance.json"))

        instance = cloud_api.instances.find_by_id(INSTANCE_ID)

        assert instance.id == UUID(INSTANCE_ID)
        assert instance.state == "running"
        assert instance.package == "g4-highcpu-128M"

    def test_not_found(self, cloud_api, mock_responses, instance_url):
        """404 - None без исключения."""
        mock_responses.add("GET", instance_url, status=404, body=read_fixture("error/not_found.json"))

        assert cloud_api.instances.find_by_id(INSTANCE_ID) is None

    def test_deleted(self, cloud_api, mock_responses, instance_url):
        mock_responses.add("GET", instance_url, status=410, body=read_fixture("instance_deleted.json"))

        assert cloud_api.instances.find_by_id(UUID(INSTANCE_ID)).state == "deleted"

    def test_server_error(self, cloud_api, mock_responses, instance_url):
        mock_responses.add("GET", instance_url, status=500, body="I'm an error message")

        with pytest.raises(ResponseError):
            cloud_api.instances.find_by_id(INSTANCE_ID)

    @pytest.mark.parametrize("value", [None, "not-a-uuid", Instance()])
    def test_invalid_id(self, cloud_api, value):
        with pytest.raises(ValueError):
            cloud_api.instances.find_by_id(value)

    def test_missing_account(self, base_url):
        from triton_client.api import CloudApi
        from triton_client.core.config import CloudApiConfig

        api = CloudApi(CloudApiConfig.create(url=base_url, no_auth=True))

        with pytest.raises(ConfigurationError):
            api.instances.find_by_id(INSTANCE_ID)


class TestCreate:

    def test_create(self, cloud_api, mock_responses, machines_url):
        mock_responses.add("POST", machines_url, status=201, body=read_fixture("instance_provisioning.json"))

        instance = Instance(
            name="test-instance",
            package_id=UUID(PACKAGE_ID),
            image=UUID(IMAGE_ID),
            tags={"role": "test"},
            metadata={"user-script": "#!/bin/sh"}
        )
        created = cloud_api.instances.create(instance)

        assert created.state == "provisioning"
        body = json.loads(mock_responses.calls[0].request.body)
        assert body["package"] == PACKAGE_ID
        assert body["image"] == IMAGE_ID
        assert body["name"] == "test-instance"
        assert body["tag.role"] == "test"
        assert body["metadata.user-script"] == "#!/bin/sh"

    def test_create_by_package_name(self, cloud_api, mock_responses, machines_url):
        mock_responses.add("POST", machines_url, status=201, body=read_fixture("instance_provisioning.json"))

        cloud_api.instances.create(Instance(package="g4-highcpu-128M", image=UUID(IMAGE_ID)))

        assert json.loads(mock_responses.calls[0].request.body)["package"] == "g4-highcpu-128M"

    @pytest.mark.parametrize("instance", [
        None,
        Instance(image=UUID(IMAGE_ID)),
        Instance(package="g4-highcpu-128M"),
    ])
    def test_create_requires_package_and_image(self, cloud_api, mock_responses, instance):
        with pytest.raises(ValueError):
            cloud_api.instances.create(instance)
        assert len(mock_responses.calls) == 0

    def test_create_retried_after_reset(self, cloud_api, mock_responses, machines_url):
        mock_responses.add(
            "POST", machines_url,
            body=requests.exceptions.ConnectionError(ConnectionResetError(104, "reset"))
        )
        mock_responses.add("POST", machines_url, status=201, body=read_fixture("instance_provisioning.json"))

        created = cloud_api.instances.create(Instance(package="g4-highcpu-128M", image=UUID(IMAGE_ID)))

        assert created.state == "provisioning"
        assert len(mock_responses.calls) == 2
        assert mock_responses.calls[0].request.body == mock_responses.calls[1].request.body


class TestDelete:

    def test_delete(self, cloud_api, mock_responses, instance_url):
        mock_responses.add("DELETE", instance_url, status=204)

        assert cloud_api.instances.delete(INSTANCE_ID) is None

    def test_delete_by_model(self, cloud_api, mock_responses, instance_url):
        mock_responses.add("DELETE", instance_url, status=204)

        cloud_api.instances.delete(Instance(id=UUID(INSTANCE_ID)))

        assert len(mock_responses.calls) == 1

    def test_delete_missing(self, cloud_api, mock_responses, instance_url):
        """Удаление несуществующего инстанса - ошибка, в отличие от find_by_id."""
        mock_responses.add("DELETE", instance_url, status=404, body=read_fixture("error/not_found.json"))

        with pytest.raises(ResponseError) as exc_info:
            cloud_api.instances.delete(INSTANCE_ID)

        assert exc_info.value.status_code == 404
        assert "VM not found" in str(exc_info.value)


class TestWaitForStateChange:

    def test_waits_until_running(self, cloud_api, mock_responses, instance_url):
        for _ in range(3):
            mock_responses.add("GET", instance_url, body=read_fixture("instance_provisioning.json"))
        mock_responses.add("GET", instance_url, body=read_fixture("instance.json"))

        with patch("triton_client.core.poller.time.sleep") as sleep:
            instance = cloud_api.instances.wait_for_state_change(INSTANCE_ID, "provisioning", 600, 5)

        assert instance.state == "running"
        assert sleep.call_count == 3
        assert len(mock_responses.calls) == 4

    def test_reuses_one_context(self, cloud_api, mock_responses, instance_url):
        mock_responses.add("GET", instance_url, body=read_fixture("instance_provisioning.json"))
        mock_responses.add("GET", instance_url, body=read_fixture("instance.json"))

        with patch("triton_client.core.poller.time.sleep"):
            cloud_api.instances.wait_for_state_change(INSTANCE_ID, "provisioning", 600, 1)

        request_ids = {call.request.headers["x-request-id"] for call in mock_responses.calls}
        assert len(request_ids) == 1

    def test_never_existed(self, cloud_api, mock_responses, instance_url):
        mock_responses.add("GET", instance_url, status=404, body=read_fixture("error/not_found.json"))

        assert cloud_api.instances.wait_for_state_change(INSTANCE_ID, "provisioning", 600, 5) is None


class TestTags:

    def test_add_tags(self, cloud_api, mock_responses, instance_url):
        mock_responses.add("POST", f"{instance_url}/tags", body=read_fixture("tags.json"))

        tags = cloud_api.instances.add_tags(INSTANCE_ID, {"env": "staging"})

        assert tags == {"role": "test", "env": "staging"}
        assert json.loads(mock_responses.calls[0].request.body) == {"env": "staging"}

    def test_add_tags_retries_exhausted(self, cloud_api, mock_responses, instance_url):
        """POST повторяется max_retries раз, затем TransportError."""
        for _ in range(4):
            mock_responses.add(
                "POST", f"{instance_url}/tags",
                body=requests.exceptions.ConnectionError(ConnectionResetError(104, "reset"))
            )

        with pytest.raises(TransportError) as exc_info:
            cloud_api.instances.add_tags(INSTANCE_ID, {"env": "staging"})

        assert len(mock_responses.calls) == 4
        assert exc_info.value.get_context_value("retryAttempts") == 3

    def test_add_empty_tags_sends_nothing(self, cloud_api, mock_responses):
        assert cloud_api.instances.add_tags(INSTANCE_ID, {}) == {}
        assert len(mock_responses.calls) == 0

    def test_add_none_tags(self, cloud_api):
        with pytest.raises(ValueError):
            cloud_api.instances.add_tags(INSTANCE_ID, None)

    def test_replace_tags(self, cloud_api, mock_responses, instance_url):
        mock_responses.add("PUT", f"{instance_url}/tags", body='{"env": "prod"}')

        assert cloud_api.instances.replace_tags(INSTANCE_ID, {"env": "prod"}) == {"env": "prod"}


def test_shared_context(cloud_api, mock_responses, instance_url):
    """Вызовы в одном контексте идут с одним correlation id."""
    mock_responses.add("GET", instance_url, body=read_fixture("instance.json"))
    mock_responses.add("DELETE", instance_url, status=204)

    with cloud_api.create_connection_context(correlation_id="job-7") as context:
        cloud_api.instances.find_by_id(INSTANCE_ID, context=context)
        cloud_api.instances.delete(INSTANCE_ID, context=context)

    assert [call.request.headers["x-request-id"] for call in mock_responses.calls] == ["job-7", "job-7"]
