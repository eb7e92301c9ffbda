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
import base64
import hashlib
import logging
from io import (
    SEEK_END,
    SEEK_SET,
    UnsupportedOperation,
)

from ._common_conversion import _get_content_md5
from ._constants import _DOWNLOAD_CHUNK_SIZE
from ._deserialization import (
    _get_content_length,
    _get_download_size,
)
from ._error import (
    AzureIntegrityError,
    _CONTENT_LENGTH_MISMATCH,
    _ERROR_CONTENT_LENGTH_MISMATCH,
    _ERROR_MD5_MISMATCH,
    _ERROR_MISSING_MD5,
    _ERROR_START_END_NEEDED_FOR_MD5,
    _INVALID_MD5,
    _MISSING_MD5_HEADER,
    _validate_not_negative,
    _validate_not_none,
    _validate_stream,
)
from ._http import HTTPRequest
from ._location import _sticky_location_mode
from ._logger import _debug
from ._request import (
    AttemptState,
    FatalFailure,
    RetryableFailure,
    StorageRequest,
    Success,
    _error_from_response,
)
from ._serialization import (
    _add_conditional_headers,
    _add_metadata_headers,
    _validate_and_format_range_headers,
)
from .models import (
    AccessCondition,
    RequestLocationMode,
    RequestOptions,
)

logger = logging.getLogger(__name__)


def _download_to_stream_request(path, stream, start_range=None, end_range=None,
                                access_condition=None, options=None, storage_uri=None):
    '''
    A resumable ranged GET writing the resource to stream.

    The ETag of the first response is required by every later attempt, and
    later attempts stay on the location which served it. After a failure the
    next attempt asks only for the bytes not yet written.

    :return: The StorageRequest of the download. Its result is a dict of the
        resource properties seen by the first response.
    '''
    _validate_not_none('stream', stream)
    _validate_not_none('path', path)
    _validate_not_negative('start_range', start_range)
    if end_range is not None:
        _validate_not_none('start_range', start_range)
        if end_range < start_range:
            raise ValueError('end_range should not be less than start_range.')

    options = options or RequestOptions()
    if options.use_transactional_content_md5 and end_range is None:
        raise ValueError(_ERROR_START_END_NEEDED_FOR_MD5)

    length = None if end_range is None else end_range - start_range + 1
    validate_md5 = not options.disable_content_md5_validation and start_range is None

    def build_request(client, target, state, operation_context):
        request = HTTPRequest()
        request.method = 'GET'
        request.path = path

        if state.offset is not None:
            end = None if state.length is None else state.offset + state.length - 1
            _validate_and_format_range_headers(
                request, state.offset, end,
                start_range_required=False,
                end_range_required=False,
                check_content_md5=options.use_transactional_content_md5)
        return request

    def set_headers(request, state, operation_context):
        _add_conditional_headers(request, state.etag_lock_condition or access_condition)

    def pre_process_response(response, state, operation_context):
        if response.status not in (200, 206):
            return RetryableFailure(_error_from_response(response))

        if options.use_transactional_content_md5 and not response.headers.get('content-md5'):
            return FatalFailure(AzureIntegrityError(_ERROR_MISSING_MD5, _MISSING_MD5_HEADER))

        if not state.properties_populated:
            etag = response.headers.get('etag')
            state.properties = {
                'etag': etag,
                'last_modified': response.headers.get('last-modified'),
                'content_length': _get_download_size(state.offset, response),
                'content_md5': response.headers.get('x-ms-blob-content-md5') or
                               response.headers.get('content-md5'),
            }
            state.properties_populated = True
            state.locked_etag = etag
            if etag:
                condition = access_condition or AccessCondition()
                state.etag_lock_condition = condition._with_if_match(etag)
            state.location_mode = _sticky_location_mode(state.current_location)

            if validate_md5 and state.properties['content_md5']:
                state.content_md5 = state.properties['content_md5']
                state.md5 = hashlib.md5()

        return Success(response)

    def post_process_response(response, state, operation_context, value):
        expected_length = _get_content_length(response)
        range_md5 = hashlib.md5() if options.use_transactional_content_md5 else None

        for chunk in response.iter_content(_DOWNLOAD_CHUNK_SIZE):
            stream.write(chunk)
            state.current_request_byte_count += len(chunk)
            if state.md5 is not None:
                state.md5.update(chunk)
            if range_md5 is not None:
                range_md5.update(chunk)

        if expected_length is not None and state.current_request_byte_count != expected_length:
            raise AzureIntegrityError(
                _ERROR_CONTENT_LENGTH_MISMATCH.format(expected_length, state.current_request_byte_count),
                _CONTENT_LENGTH_MISMATCH)

        if range_md5 is not None:
            _validate_md5(response.headers.get('content-md5'), range_md5)

        if state.md5 is not None:
            _validate_md5(state.content_md5, state.md5)

        return state.properties

    def recovery_action(state, operation_context):
        count = state.current_request_byte_count
        if count <= 0:
            return state

        offset = (state.offset or 0) + count
        length = None if state.length is None else state.length - count
        _debug(logger, operation_context, 'Resuming download: Offset=%s, Length=%s.', offset, length)
        return state.copy(offset=offset, length=length)

    return StorageRequest(
        build_request,
        set_headers=set_headers,
        pre_process_response=pre_process_response,
        post_process_response=post_process_response,
        recovery_action=recovery_action,
        request_location_mode=RequestLocationMode.PRIMARY_OR_SECONDARY,
        options=options,
        storage_uri=storage_uri,
        stream=True,
        initial_state=AttemptState(offset=start_range, length=length))


def _upload_from_stream_request(path, stream, count=None, headers=None, metadata=None,
                                access_condition=None, options=None, storage_uri=None):
    '''
    A PUT of count bytes of stream, starting at its current position. Every
    attempt rewinds the stream to that position and sends the same bytes.

    :return: The StorageRequest of the upload. Its result is a dict with the
        etag and last_modified of the written resource.
    '''
    _validate_not_none('path', path)
    _validate_stream('stream', stream)
    _validate_not_negative('count', count)

    options = options or RequestOptions()

    try:
        start = stream.tell()
    except (AttributeError, IOError):
        raise ValueError('stream should be seekable to be uploaded.')
    if count is None:
        # the rest of the stream from the mark
        try:
            stream.seek(0, SEEK_END)
            count = stream.tell() - start
            stream.seek(start, SEEK_SET)
        except (AttributeError, UnsupportedOperation):
            raise ValueError('count should be specified for a stream of unknown length.')

    def build_request(client, target, state, operation_context):
        stream.seek(state.offset, SEEK_SET)
        data = stream.read(state.length)
        if len(data) != state.length:
            raise ValueError('stream ended after {0} of {1} bytes.'.format(len(data), state.length))

        request = HTTPRequest()
        request.method = 'PUT'
        request.path = path
        request.body = data
        if headers:
            request.headers.update(headers)
        _add_metadata_headers(metadata, request)
        if options.use_transactional_content_md5:
            request.headers['Content-MD5'] = _get_content_md5(data)
        return request

    def set_headers(request, state, operation_context):
        _add_conditional_headers(request, access_condition)

    def post_process_response(response, state, operation_context, value):
        return {
            'etag': response.headers.get('etag'),
            'last_modified': response.headers.get('last-modified'),
        }

    def recovery_action(state, operation_context):
        # the source is re-read from the mark by the next build
        stream.seek(state.offset, SEEK_SET)
        return state

    return StorageRequest(
        build_request,
        set_headers=set_headers,
        post_process_response=post_process_response,
        recovery_action=recovery_action,
        request_location_mode=RequestLocationMode.PRIMARY_ONLY,
        options=options,
        storage_uri=storage_uri,
        expected_status=(200, 201),
        initial_state=AttemptState(offset=start, length=count))


def _validate_md5(expected, md5):
    computed = base64.b64encode(md5.digest()).decode('utf-8')
    if expected != computed:
        raise AzureIntegrityError(_ERROR_MD5_MISMATCH.format(expected, computed), _INVALID_MD5)
