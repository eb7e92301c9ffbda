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

from azure.common import (
    AzureException,
    AzureHttpError,
)

from storagecore import (
    AzureIntegrityError,
    AzureStorageError,
    AzureStorageTimeoutError,
)
from storagecore._deserialization import _parse_error_body
from storagecore._error import (
    _translate_http_error,
    _wrap_exception,
)
from storagecore._http import HTTPError

XML_ERROR = b'\xef\xbb\xbf<?xml version="1.0" encoding="utf-8"?>' \
            b'<Error><Code>AuthenticationFailed</Code>' \
            b'<Message>Server failed to authenticate the request.</Message>' \
            b'<AuthenticationErrorDetail>Signature did not match.</AuthenticationErrorDetail></Error>'

JSON_ERROR = b'{"odata.error":{"code":"TableNotFound",' \
             b'"message":{"lang":"en-US","value":"The table specified does not exist."}}}'


# ------------------------------------------------------------------------------
class StorageErrorTest(unittest.TestCase):

    def test_parse_xml_error(self):
        error_code, details = _parse_error_body({}, XML_ERROR)

        self.assertEqual('AuthenticationFailed', error_code)
        self.assertEqual({
            'Message': 'Server failed to authenticate the request.',
            'AuthenticationErrorDetail': 'Signature did not match.',
        }, details)

    def test_parse_json_error(self):
        error_code, details = _parse_error_body({}, JSON_ERROR)

        self.assertEqual('TableNotFound', error_code)
        self.assertEqual({'Message': 'The table specified does not exist.'}, details)

    def test_error_code_header_wins(self):
        error_code, details = _parse_error_body({'x-ms-error-code': 'HeaderCode'}, XML_ERROR)

        self.assertEqual('HeaderCode', error_code)
        self.assertNotIn('Code', details)

    def test_unparseable_bodies(self):
        self.assertEqual((None, {}), _parse_error_body({}, b''))
        self.assertEqual((None, {}), _parse_error_body({}, b'<Error><Code>'))
        self.assertEqual((None, {}), _parse_error_body({}, b'{not json'))
        self.assertEqual((None, {}), _parse_error_body({}, b'\xff\xfe'))
        self.assertEqual(('Code', {}), _parse_error_body({'x-ms-error-code': 'Code'}, None))

    def test_translate_http_error(self):
        http_error = HTTPError(403, 'Forbidden', {'x-ms-error-code': 'AuthenticationFailed'}, XML_ERROR)

        error = _translate_http_error(http_error)

        self.assertIsInstance(error, AzureStorageError)
        self.assertIsInstance(error, AzureHttpError)
        self.assertEqual(403, error.status_code)
        self.assertEqual('AuthenticationFailed', error.error_code)
        self.assertTrue(str(error).startswith('Forbidden ErrorCode: AuthenticationFailed'))
        self.assertEqual('Signature did not match.', error.extended_error_information['AuthenticationErrorDetail'])
        self.assertEqual([], error.request_results)

    def test_not_found_keeps_translated_type(self):
        error = _translate_http_error(HTTPError(404, 'Not Found', {}, b''))

        self.assertIs(type(error), AzureStorageError)
        self.assertEqual(404, error.status_code)
        self.assertIsNone(error.error_code)

    def test_wrap_exception(self):
        inner = OSError('Connection reset by peer')

        error = _wrap_exception(inner)

        self.assertEqual('OSError: Connection reset by peer', str(error))
        self.assertIs(inner, error.inner_exception)
        self.assertIsNone(error.status_code)

    def test_client_side_errors(self):
        timeout = AzureStorageTimeoutError()
        integrity = AzureIntegrityError('bad md5', 'InvalidMd5')

        self.assertEqual(306, timeout.status_code)
        self.assertEqual('OperationTimedOut', timeout.error_code)
        self.assertEqual(306, integrity.status_code)
        self.assertIsInstance(integrity, AzureException)


# ------------------------------------------------------------------------------
if __name__ == '__main__':
    unittest.main()
