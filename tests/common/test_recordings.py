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

from storagecore import OperationContext
from tests.testcase import (
    StorageTestCase,
    record,
)


# ------------------------------------------------------------------------------
class StorageRecordingsTest(StorageTestCase):
    '''Replays recorded service traffic through a real requests.Session.'''

    def setUp(self):
        super(StorageRecordingsTest, self).setUp()
        self.client = self._create_storage_client(requests.Session())

    @record
    def test_download_to_bytes(self):
        # Act
        context = OperationContext()
        data = self.client.download_to_bytes('container/blob', operation_context=context)

        # Assert
        self.assertEqual(b'hello world', data)
        self.assertEqual(1, len(context.request_results))
        self.assertEqual('"0x8D51A4B8C3B2F0E"', context.last_result.etag)
        self.assertEqual('6f1a2b3c-0001-0023-2d3c-4c2b1e000000', context.last_result.service_request_id)

    @record
    def test_get_properties_retries_server_busy(self):
        # Act
        context = OperationContext()
        headers = self.client.get_properties('container/blob', operation_context=context)

        # Assert
        self.assertEqual('"0x8D51A4B8C3B2F0E"', headers['etag'])
        self.assertEqual('BlockBlob', headers['x-ms-blob-type'])
        results = context.request_results
        self.assertEqual([503, 200], [r.status_code for r in results])
        self.assertEqual('ServerBusy', results[0].exception.error_code)


# ------------------------------------------------------------------------------
if __name__ == '__main__':
    unittest.main()
