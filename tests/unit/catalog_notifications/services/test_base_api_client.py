"""Tests for BaseApiClient."""

import requests
import responses

from tests.base import BaseUnitTest
from tests.factories import make_token

from catalog_notifications.auth import StaticCredentialProvider
from catalog_notifications.exceptions import (
    ApiError,
    ApiUnavailableError,
    AuthError,
    NetworkError,
)
from catalog_notifications.services.base_api_client import BaseApiClient

BASE_URL = "http://catalog.test"


class TestBaseApiClient(BaseUnitTest):
    """Test suite for BaseApiClient status and error mapping."""

    def setUp(self):
        """Set up test fixtures."""
        super().setUp()
        self.token = make_token()
        self.client = BaseApiClient(
            service_name="project-catalog-api",
            base_url=f"{BASE_URL}/",
            credentials=StaticCredentialProvider(self.token),
            timeout=2.0,
        )
        self.url = self.client.url_for("/api/notifications")

    def tearDown(self):
        """Clean up after test."""
        self.client.close()
        super().tearDown()

    def test_url_for_joins_paths(self):
        """Test the base URL and path are joined with one slash."""
        self.assertEqual(self.url, f"{BASE_URL}/api/notifications")

    @responses.activate
    def test_request_sends_bearer_and_json_headers(self):
        """Test every request carries the credential and JSON headers."""
        responses.add(responses.GET, self.url, json=[], status=200)

        response = self.client._make_request("GET", self.url)

        self.assertEqual(response.status_code, 200)
        headers = responses.calls[0].request.headers
        self.assertEqual(headers["Authorization"], f"Bearer {self.token}")
        self.assertEqual(headers["Accept"], "application/json")
        self.assertEqual(headers["Content-Type"], "application/json")

    @responses.activate
    def test_missing_credential_raises_before_request(self):
        """Test no request is sent without a credential."""
        self.client.credentials = StaticCredentialProvider(None)

        with self.assertRaises(AuthError):
            self.client._make_request("GET", self.url)

        self.assertEqual(len(responses.calls), 0)

    @responses.activate
    def test_expired_credential_raises_before_request(self):
        """Test no request is sent with an expired credential."""
        self.client.credentials = StaticCredentialProvider(make_token(expires_in=-5))

        with self.assertRaises(AuthError):
            self.client._make_request("GET", self.url)

        self.assertEqual(len(responses.calls), 0)

    @responses.activate
    def test_unauthorized_maps_to_auth_error(self):
        """Test 401 raises AuthError."""
        responses.add(responses.GET, self.url, status=401)

        with self.assertRaises(AuthError) as exc_info:
            self.client._make_request("GET", self.url)

        self.assertEqual(exc_info.exception.status_code, 401)

    @responses.activate
    def test_server_error_maps_to_unavailable(self):
        """Test 5xx raises ApiUnavailableError."""
        responses.add(responses.GET, self.url, status=500)
        responses.add(responses.GET, self.url, status=503)

        for status in (500, 503):
            with self.subTest(status=status):
                with self.assertRaises(ApiUnavailableError) as exc_info:
                    self.client._make_request("GET", self.url)

                self.assertEqual(exc_info.exception.status_code, status)

    @responses.activate
    def test_client_error_maps_to_api_error(self):
        """Test other 4xx responses raise ApiError."""
        responses.add(responses.PUT, self.url, json={"error": "bad"}, status=400)

        with self.assertRaises(ApiError) as exc_info:
            self.client._make_request("PUT", self.url)

        self.assertEqual(exc_info.exception.status_code, 400)
        self.assertNotIsInstance(exc_info.exception, ApiUnavailableError)

    @responses.activate
    def test_not_found_is_returned(self):
        """Test 404 is left to the caller."""
        responses.add(responses.DELETE, self.url, status=404)

        response = self.client._make_request("DELETE", self.url)

        self.assertEqual(response.status_code, 404)

    @responses.activate
    def test_timeout_maps_to_network_error(self):
        """Test a timeout raises NetworkError."""
        responses.add(responses.GET, self.url, body=requests.Timeout("slow"))

        with self.assertRaises(NetworkError) as exc_info:
            self.client._make_request("GET", self.url)

        self.assertIsInstance(exc_info.exception.__cause__, requests.Timeout)

    @responses.activate
    def test_connection_error_maps_to_network_error(self):
        """Test a refused connection raises NetworkError."""
        responses.add(
            responses.GET, self.url, body=requests.ConnectionError("refused")
        )

        with self.assertRaises(NetworkError):
            self.client._make_request("GET", self.url)

    @responses.activate
    def test_broken_transfer_maps_to_network_error(self):
        """Test a connection dropped mid-body raises NetworkError."""
        responses.add(
            responses.PUT,
            self.url,
            body=requests.exceptions.ChunkedEncodingError("connection broken"),
        )

        with self.assertRaises(NetworkError) as exc_info:
            self.client._make_request("PUT", self.url)

        self.assertIsInstance(
            exc_info.exception.__cause__, requests.exceptions.ChunkedEncodingError
        )
