#-------------------------------------------------------------------------
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
#--------------------------------------------------------------------------
import copy

from ._error import (
    _translate_http_error,
    _validate_not_none,
)
from ._http import HTTPError
from .models import (
    RequestLocationMode,
    RequestOptions,
)


class Success(object):
    '''The attempt succeeded; value is handed to post_process_response.'''

    def __init__(self, value=None):
        self.value = value


class RetryableFailure(object):
    '''The attempt failed; the retry policy decides whether to try again.'''

    def __init__(self, error):
        self.error = error


class FatalFailure(object):
    '''The attempt failed and the operation must not be retried.'''

    def __init__(self, error):
        self.error = error


class AttemptState(object):
    '''
    The state carried from one attempt of an operation to the next.

    :ivar int offset:
        The start of the range still to be transferred, or None.
    :ivar int length:
        The number of bytes still to be transferred, or None for the rest of
        the resource.
    :ivar str locked_etag:
        The ETag seen by the first response. Later attempts require it.
    :ivar ~storagecore.models.AccessCondition etag_lock_condition:
        The conditions sent by later attempts, including the locked ETag.
    :ivar str content_md5:
        The stored Content-MD5 of the resource, if it is to be validated.
    :ivar bool properties_populated:
        True once the first response has been seen.
    :ivar dict properties:
        Resource properties captured from the first response.
    :ivar int current_request_byte_count:
        Bytes transferred by the current attempt only.
    :ivar str current_location:
        The :class:`~storagecore.models.StorageLocation` of the current attempt.
    :ivar str location_mode:
        The :class:`~storagecore.models.LocationMode` used to pick the
        location of the next attempt.
    :ivar int retry_count:
        The number of attempts made before the current one.
    '''

    def __init__(self, offset=None, length=None, locked_etag=None, etag_lock_condition=None,
                 content_md5=None, properties_populated=False, properties=None,
                 current_request_byte_count=0, current_location=None, location_mode=None,
                 retry_count=0, md5=None):
        self.offset = offset
        self.length = length
        self.locked_etag = locked_etag
        self.etag_lock_condition = etag_lock_condition
        self.content_md5 = content_md5
        self.properties_populated = properties_populated
        self.properties = properties
        self.current_request_byte_count = current_request_byte_count
        self.current_location = current_location
        self.location_mode = location_mode
        self.retry_count = retry_count
        # running digest of every byte written, shared by all attempts
        self.md5 = md5

    def copy(self, **changes):
        state = copy.copy(self)
        for name, value in changes.items():
            if not hasattr(state, name):
                raise AttributeError(name)
            setattr(state, name, value)
        return state

    def next_attempt(self):
        return self.copy(current_request_byte_count=0, retry_count=self.retry_count + 1)


class StorageRequest(object):
    '''
    Describes one logical operation to the execution engine. Every hook is a
    plain callable; only build_request is required.

    :ivar build_request:
        function(client, target, state, operation_context) returning the
        :class:`~storagecore._http.HTTPRequest` of an attempt. The path is
        relative to the base uri of the attempt's location.
    :ivar set_headers:
        function(request, state, operation_context) adding operation headers.
    :ivar sign_request:
        function(request, client, operation_context). Defaults to the client's
        authentication.
    :ivar pre_process_response:
        function(response, state, operation_context) returning
        :class:`Success`, :class:`RetryableFailure` or :class:`FatalFailure`.
    :ivar post_process_response:
        function(response, state, operation_context, value) returning the
        result of the operation.
    :ivar recovery_action:
        function(state, operation_context) returning the
        :class:`AttemptState` of the next attempt.
    :ivar str request_location_mode:
        The :class:`~storagecore.models.RequestLocationMode` of the operation.
    :ivar ~storagecore.models.RequestOptions options:
        The per operation options.
    :ivar ~storagecore.models.StorageUri storage_uri:
        The endpoints to use. Defaults to the client's.
    :ivar set expected_errors:
        Service error codes which are returned to the caller immediately.
    :ivar set expected_status:
        Status codes treated as success by the default pre_process_response.
    :ivar bool stream:
        Leave the response body on the wire for post_process_response.
    :ivar AttemptState initial_state:
        The state of the first attempt.
    '''

    def __init__(self, build_request, set_headers=None, sign_request=None,
                 pre_process_response=None, post_process_response=None,
                 recovery_action=None, request_location_mode=RequestLocationMode.PRIMARY_ONLY,
                 options=None, storage_uri=None, expected_errors=None, expected_status=None,
                 stream=False, initial_state=None):
        _validate_not_none('build_request', build_request)
        self.build_request = build_request
        self.set_headers = set_headers
        self.sign_request = sign_request or _sign_with_client
        self.pre_process_response = pre_process_response or self._default_pre_process_response
        self.post_process_response = post_process_response or _return_value
        self.recovery_action = recovery_action
        self.request_location_mode = request_location_mode
        self.options = options or RequestOptions()
        self.storage_uri = storage_uri
        self.expected_errors = frozenset(expected_errors or ())
        self.expected_status = frozenset(expected_status) if expected_status else None
        self.stream = stream
        self.initial_state = initial_state or AttemptState()

    def _default_pre_process_response(self, response, state, operation_context):
        if self.expected_status is not None:
            succeeded = response.status in self.expected_status
        else:
            succeeded = response.status < 300

        if succeeded:
            return Success(response)
        return RetryableFailure(_error_from_response(response))


def _sign_with_client(request, client, operation_context):
    client.authentication.sign_request(request, operation_context)


def _return_value(response, state, operation_context, value):
    return value


def _error_from_response(response):
    '''The translated error of a response with an unexpected status.'''
    body = response.read_body()
    return _translate_http_error(HTTPError(response.status, response.message, response.headers, body))
