"""
Unit tests for client.py

Covers job creation (id extraction and every SubmissionError path) and
result fetching with JSON / text bodies.
"""

import json

import httpx
import pytest

from client import GreenCloudClient, PollResponse
from errors import PollingError, SubmissionError


class TestCreateJob:
    def test_returns_id_from_json_body(self, client, fake_api):
        assert client.create_job() == "abc"

        request = fake_api.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/gc/res-1"
        assert json.loads(request.content) == {"exampleKey": "exampleValue"}

    def test_accepts_200_as_well_as_201(self, client, fake_api):
        fake_api.submit_response = httpx.Response(200, json={"id": "job-9"})
        assert client.create_job() == "job-9"

    def test_sends_custom_payload(self, client, fake_api):
        client.create_job({"files": ["a.pdf"]})
        assert json.loads(fake_api.requests[0].content) == {"files": ["a.pdf"]}

    def test_non_2xx_status_raises(self, client, fake_api):
        fake_api.submit_response = httpx.Response(400, json={"id": "abc"})
        with pytest.raises(SubmissionError, match="status: 400"):
            client.create_job()

    def test_non_json_body_raises(self, client, fake_api):
        fake_api.submit_response = httpx.Response(200, text="<html>ok</html>")
        with pytest.raises(SubmissionError):
            client.create_job()

    @pytest.mark.parametrize("body", [{}, {"id": ""}, {"id": None}, ["abc"]])
    def test_missing_or_falsy_id_raises(self, client, fake_api, body):
        fake_api.submit_response = httpx.Response(200, json=body)
        with pytest.raises(SubmissionError, match="Task ID not provided"):
            client.create_job()

    def test_transport_error_raises(self, fake_api):
        def boom(request):
            raise httpx.ConnectError("refused", request=request)

        c = GreenCloudClient(base_url="https://api.test", transport=httpx.MockTransport(boom))
        with pytest.raises(SubmissionError):
            c.create_job()


class TestFetchResult:
    def test_json_body_is_decoded(self, client, fake_api):
        fake_api.queue(httpx.Response(200, json=[{"name": "A"}]))

        resp = client.fetch_result("abc")

        assert resp == PollResponse(status_code=200, body=[{"name": "A"}])
        assert fake_api.requests[0].url.path == "/gc/abc/result"

    def test_text_body_is_kept_as_text(self, client, fake_api):
        fake_api.queue(httpx.Response(500, text="internal failure"))

        resp = client.fetch_result("abc")

        assert resp.status_code == 500
        assert resp.body == "internal failure"
        assert resp.body_text() == "internal failure"

    def test_json_error_body_text_is_serialized(self):
        resp = PollResponse(status_code=408, body={"error": "timeout"})
        assert resp.body_text() == '{"error":"timeout"}'

    def test_status_is_not_interpreted(self, client, fake_api):
        fake_api.queue(httpx.Response(302, text=""))
        assert client.fetch_result("abc").status_code == 302

    def test_broken_json_raises_polling_error(self, client, fake_api):
        fake_api.queue(httpx.Response(200, content=b"{not json",
                                      headers={"content-type": "application/json"}))
        with pytest.raises(PollingError, match="An error occurred during polling"):
            client.fetch_result("abc")

    def test_transport_error_raises_polling_error(self, client, fake_api):
        fake_api.queue(httpx.ReadTimeout("slow"))
        with pytest.raises(PollingError):
            client.fetch_result("abc")
