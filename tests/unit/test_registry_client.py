# ---------------------------------------------------------------------------
# Unit Tests: Registry API Client
#
# Every transport failure (network error, timeout, non-2xx, HTML page,
# malformed JSON) must surface as ExternalUnavailable. Update and delete
# accept a 2xx with an unparseable body. The requests.Session is mocked so
# no network access happens.
# ---------------------------------------------------------------------------
# tests/unit/test_registry_client.py
import json

import pytest
import requests

from medgrid.errors import ExternalUnavailable
from medgrid.services.entities import DRUG, MANUFACTURER
from medgrid.services.registry_client import RegistryClient


def _response(status=200, body=None, content_type="application/json", raw=None):
    resp = requests.Response()
    resp.status_code = status
    resp.headers["content-type"] = content_type
    resp.encoding = "utf-8"
    if raw is not None:
        resp._content = raw
    else:
        resp._content = json.dumps(body).encode("utf-8") if body is not None else b""
    return resp


@pytest.fixture
def session(mocker):
    return mocker.Mock(spec=requests.Session)


@pytest.fixture
def client(session):
    return RegistryClient(base_url="https://registry.test/", timeout=3, session=session)


def test_list_all_unwraps_drug_envelope(client, session):
    session.request.return_value = _response(body={"drugs": [{"DrugID": 1}]})

    assert client.list_all(DRUG) == [{"DrugID": 1}]
    args, kwargs = session.request.call_args
    assert args == ("GET", "https://registry.test/drugs/all")
    assert kwargs["timeout"] == 3


def test_list_all_accepts_bare_array_for_manufacturers(client, session):
    session.request.return_value = _response(body=[{"ManufacturerId": 30}])
    assert client.list_all(MANUFACTURER) == [{"ManufacturerId": 30}]


@pytest.mark.parametrize("resp", [
    _response(status=500, body={"error": "boom"}),
    _response(body=None, raw=b"<html>Bad gateway</html>", content_type="text/html"),
    _response(raw=b"{not json"),
    _response(body={"unexpected": []}),
])
def test_list_all_failures_are_external_unavailable(client, session, resp):
    session.request.return_value = resp
    with pytest.raises(ExternalUnavailable):
        client.list_all(DRUG)


def test_timeout_is_external_unavailable(client, session):
    session.request.side_effect = requests.Timeout("read timed out")
    with pytest.raises(ExternalUnavailable) as exc:
        client.list_all(DRUG)
    assert "read timed out" in exc.value.reason


def test_get_page_sends_params_and_reads_total_pages(client, session):
    session.request.return_value = _response(body={"drugs": [{"DrugID": 1}], "totalPages": 4})

    records, total_pages = client.get_page(DRUG, 2, 300)

    assert records == [{"DrugID": 1}]
    assert total_pages == 4
    assert session.request.call_args.kwargs["params"] == {"page": 2, "pageSize": 300}


def test_update_tolerates_unparseable_success_body(client, session):
    session.request.return_value = _response(raw=b"OK", content_type="text/plain")
    assert client.update(MANUFACTURER, 30, {"Country": "USA"}) is None
    args, kwargs = session.request.call_args
    assert args == ("PUT", "https://registry.test/manufacturer/30")
    assert kwargs["json"] == {"Country": "USA"}


def test_update_non_2xx_still_fails(client, session):
    session.request.return_value = _response(status=404, body={"message": "missing"})
    with pytest.raises(ExternalUnavailable):
        client.update(DRUG, 1, {"DrugID": 1})


def test_create_requires_object_body(client, session):
    session.request.return_value = _response(body=[1, 2])
    with pytest.raises(ExternalUnavailable):
        client.create(MANUFACTURER, {"ManufacturerName": "X"})


def test_base_url_from_environment(monkeypatch, mocker):
    monkeypatch.setenv("REGISTRY_API_URL", "https://env.test/api/")
    monkeypatch.setenv("REGISTRY_TIMEOUT", "oops")
    c = RegistryClient(session=mocker.Mock())
    assert c.base_url == "https://env.test/api"
    assert c.timeout == 10.0
