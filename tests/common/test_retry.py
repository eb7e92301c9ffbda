# -------------------------------------------------------------------------
# Copyright (c) Microsoft.  All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# --------------------------------------------------------------------------
import unittest

import requests
from azure.common import AzureHttpError

from storagecore import (
    AzureStorageError,
    LocationMode,
    OperationContext,
    RequestOptions,
    StorageLocation,
)
from storagecore._http import HTTPResponse
from storagecore.models import (
    RetryContext,
    StorageUri,
)
from storagecore.retry import (
    LinearRetry,
    ExponentialRetry,
    no_retry,
)
from tests.testcase import (
    FakeSession,
    StorageTestCase,
    error_response,
    make_response,
)


# --Helper Classes---------------------------------------------------------------
class ResponseCallback(object):
    def __init__(self, status=None, new_status=None):
        self.status = status
        self.new_status = new_status
        self.first = True

    def override_first_status(self, event):
        if self.first and event.response.status == self.status:
            event.response.status = self.new_status
            self.first = False

    def override_status(self, event):
        if event.response.status == self.status:
            event.response.status = self.new_status


def _context(status=None, count=0, location=StorageLocation.PRIMARY, exception=None):
    response = HTTPResponse(status, '', {}, b'') if status is not None else None
    return RetryContext(count=count, response=response, exception=exception, location_mode=location,
                        storage_uri=StorageUri('https://a', 'https://b'))


# --Test Class -----------------------------------------------------------------
class StorageRetryTest(StorageTestCase):

    # --Test Cases --------------------------------------------
    def test_retry_on_server_error(self):
        # Arrange
        session = FakeSession(lambda r: make_response(201))
        client = self._create_storage_client(session)

        # Force the first upload to fail with a 500
        callback = ResponseCallback(status=201, new_status=500)
        client.events.response_received.add_listener(callback.override_first_status)

        # Act
        context = OperationContext()
        client.upload_from_bytes('container/blob', b'abc', operation_context=context)

        # Assert
        self.assertEqual(2, len(session.sent))
        self.assertEqual([500, 201], [r.status_code for r in context.request_results])

    def test_retry_on_timeout(self):
        # Arrange
        session = FakeSession(lambda r: make_response(201))
        client = self._create_storage_client(session)
        client.retry = ExponentialRetry(initial_backoff=0, min_backoff=0, max_backoff=0)

        callback = ResponseCallback(status=201, new_status=408)
        client.events.response_received.add_listener(callback.override_first_status)

        # Act
        client.upload_from_bytes('container/blob', b'abc')

        # Assert
        self.assertEqual(2, len(session.sent))

    def test_retry_on_socket_timeout(self):
        # Arrange
        session = FakeSession(requests.exceptions.ReadTimeout('read timeout'),
                              lambda r: make_response(200, b'data'))
        client = self._create_storage_client(session)

        # Act
        data = client.download_to_bytes('container/blob')

        # Assert
        self.assertEqual(b'data', data)
        self.assertEqual(2, len(session.sent))

    def test_no_retry(self):
        # Arrange
        session = FakeSession(lambda r: make_response(201))
        client = self._create_storage_client(session)
        client.retry = no_retry

        callback = ResponseCallback(status=201, new_status=408)
        client.events.response_received.add_listener(callback.override_status)

        # Act
        try:
            client.upload_from_bytes('container/blob', b'abc')
            self.fail('The callback should force failure.')
        except AzureHttpError as e:
            # Assert
            # The call should not retry, and thus fail.
            self.assertEqual(408, e.status_code)
            self.assertEqual(1, len(session.sent))

    def test_linear_retry(self):
        # Arrange
        session = FakeSession(lambda r: error_response(503, 'ServerBusy'))
        client = self._create_storage_client(session)
        client.retry = LinearRetry(backoff=0, max_attempts=2)

        # Act
        with self.assertRaises(AzureStorageError) as cm:
            client.upload_from_bytes('container/blob', b'abc')

        # Assert
        self.assertEqual(3, len(session.sent))
        self.assertEqual(503, cm.exception.status_code)
        self.assertEqual('ServerBusy', cm.exception.error_code)
        self.assertEqual(3, len(cm.exception.request_results))

    def test_invalid_retry(self):
        # Arrange
        session = FakeSession(lambda r: make_response(201))
        client = self._create_storage_client(session)

        # Force the upload to fail by pretending it's a teapot
        callback = ResponseCallback(status=201, new_status=418)
        client.events.response_received.add_listener(callback.override_status)

        # Act
        try:
            client.upload_from_bytes('container/blob', b'abc')
            self.fail('The callback should force failure.')
        except AzureHttpError as e:
            # Assert
            self.assertEqual(418, e.status_code)
            self.assertTrue(e.args[0].startswith('Created'))
            self.assertEqual(1, len(session.sent))

    def test_secondary_location_mode(self):
        # Arrange
        session = FakeSession(lambda r: make_response(200, headers={'etag': '"0x1"'}))
        client = self._create_storage_client(session)
        client.location_mode = LocationMode.SECONDARY_ONLY

        # Act
        client.get_properties('container/blob')

        # Assert
        self.assertTrue(session.sent[0].is_secondary())

    def test_secondary_404_is_retried(self):
        # Arrange
        session = FakeSession(lambda r: error_response(404, 'BlobNotFound') if r.is_secondary()
                              else make_response(200))
        client = self._create_storage_client(session)
        client.location_mode = LocationMode.SECONDARY_THEN_PRIMARY

        # Act
        client.get_properties('container/blob')

        # Assert
        self.assertEqual([True, False], [r.is_secondary() for r in session.sent])

    def test_primary_404_is_not_retried(self):
        # Arrange
        session = FakeSession(lambda r: error_response(404, 'BlobNotFound'))
        client = self._create_storage_client(session)
        client.location_mode = LocationMode.PRIMARY_THEN_SECONDARY

        # Act
        with self.assertRaises(AzureStorageError) as cm:
            client.get_properties('container/blob')

        # Assert
        self.assertEqual(404, cm.exception.status_code)
        self.assertEqual(1, len(session.sent))

    def test_retry_to_secondary_with_put(self):
        # Arrange
        session = FakeSession(lambda r: make_response(201))
        client = self._create_storage_client(session)
        client.retry = LinearRetry(backoff=0, retry_to_secondary=True)

        callback = ResponseCallback(status=201, new_status=408)
        client.events.response_received.add_listener(callback.override_first_status)

        # Act
        client.upload_from_bytes('container/blob', b'abc')

        # Assert
        # Confirm that the upload does *not* get retried to secondary
        self.assertEqual(2, len(session.sent))
        self.assertFalse(any(r.is_secondary() for r in session.sent))

    def test_retry_to_secondary_with_get(self):
        # Arrange
        session = FakeSession(lambda r: make_response(200))
        client = self._create_storage_client(session)
        client.retry = LinearRetry(backoff=0, retry_to_secondary=True)

        callback = ResponseCallback(status=200, new_status=408)
        client.events.response_received.add_listener(callback.override_first_status)

        locations = []
        client.events.retrying.add_listener(
            lambda event: locations.append(event.retry_context.location_mode))

        # Act
        client.get_properties('container/blob')

        # Assert
        # Confirm that the get request gets retried to secondary
        self.assertEqual([StorageLocation.PRIMARY], locations)
        self.assertEqual([False, True], [r.is_secondary() for r in session.sent])

    def test_location_lock(self):
        # Arrange
        session = FakeSession(lambda r: make_response(200))
        client = self._create_storage_client(session)
        client.retry = LinearRetry(backoff=0, retry_to_secondary=True)

        callback = ResponseCallback(status=200, new_status=408)
        client.events.response_received.add_listener(callback.override_first_status)
        context = OperationContext(location_lock=True)

        # Act
        # Fail the first request so the operation finishes on secondary
        client.get_properties('container/blob', operation_context=context)

        # The second request done with the same context sticks to the final
        # location of the first despite the client normally trying primary first
        client.get_properties('container/blob', operation_context=context)

        # Assert
        self.assertEqual([False, True, True], [r.is_secondary() for r in session.sent])

    def test_should_retry_classification(self):
        policy = LinearRetry(backoff=0)

        self.assertTrue(policy._should_retry(_context(exception=AzureStorageError('reset'))))
        self.assertTrue(policy._should_retry(_context(200)))
        self.assertTrue(policy._should_retry(_context(408)))
        self.assertTrue(policy._should_retry(_context(500)))
        self.assertTrue(policy._should_retry(_context(503)))
        self.assertTrue(policy._should_retry(_context(404, location=StorageLocation.SECONDARY)))

        self.assertFalse(policy._should_retry(_context(400)))
        self.assertFalse(policy._should_retry(_context(403)))
        self.assertFalse(policy._should_retry(_context(404)))
        self.assertFalse(policy._should_retry(_context(409)))
        self.assertFalse(policy._should_retry(_context(306)))
        self.assertFalse(policy._should_retry(_context(501)))
        self.assertFalse(policy._should_retry(_context(505)))
        self.assertFalse(policy._should_retry(_context(500, count=3)))

    def test_client_side_error_after_success_status_is_not_retried(self):
        policy = LinearRetry(backoff=0)
        error = AzureStorageError('md5 mismatch', status_code=306)

        self.assertFalse(policy._should_retry(_context(200, exception=error)))

    def test_exponential_backoff_bounds(self):
        policy = ExponentialRetry(initial_backoff=10, min_backoff=2, max_backoff=50)

        for _ in range(20):
            self.assertEqual(2, policy.retry(_context(500, count=0)))
            self.assertTrue(10 <= policy.retry(_context(500, count=1)) <= 14)
            self.assertTrue(26 <= policy.retry(_context(500, count=2)) <= 38)
        self.assertIsNone(policy.retry(_context(500, count=3)))

    def test_exponential_backoff_capped(self):
        policy = ExponentialRetry(max_attempts=10)

        self.assertEqual(90, policy.retry(_context(500, count=6)))

    def test_linear_backoff(self):
        policy = LinearRetry(backoff=7)

        self.assertEqual(7, policy.retry(_context(500, count=0)))
        self.assertEqual(7, policy.retry(_context(500, count=2)))
        self.assertIsNone(policy.retry(_context(400, count=0)))

    def test_linear_retry_attempt_limit(self):
        policy = LinearRetry(backoff=7, max_attempts=2)

        self.assertEqual(2, policy.max_attempts)
        self.assertEqual(7, policy.retry(_context(500, count=1)))
        self.assertIsNone(policy.retry(_context(500, count=2)))

    def test_create_instance_copies_configuration(self):
        policy = ExponentialRetry(initial_backoff=5, max_attempts=4, retry_to_secondary=True)

        instance = policy.create_instance()

        self.assertIsNot(policy, instance)
        self.assertEqual(5, instance.initial_backoff)
        self.assertEqual(4, instance.max_attempts)
        self.assertTrue(instance.retry_to_secondary)

    def test_retry_policy_in_request_options_wins(self):
        # Arrange
        session = FakeSession(lambda r: error_response(500, 'InternalError'))
        client = self._create_storage_client(session)

        # Act
        with self.assertRaises(AzureStorageError):
            client.get_properties('container/blob', options=RequestOptions(retry_policy=no_retry))

        # Assert
        self.assertEqual(1, len(session.sent))


# ------------------------------------------------------------------------------
if __name__ == '__main__':
    unittest.main()
