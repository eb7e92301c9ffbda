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
from email.utils import formatdate
from io import (
    SEEK_END,
    SEEK_SET,
    UnsupportedOperation,
)
from os import fstat
from urllib.parse import (
    quote as url_quote,
    urlparse,
)

from ._common_conversion import (
    _datetime_to_utc_string,
    _int_to_str,
)
from ._constants import (
    X_MS_VERSION,
    USER_AGENT_STRING,
    _CLIENT_REQUEST_ID_HEADER,
    _MAX_RANGE_CONTENT_MD5_SIZE,
    _RANGE_CONTENT_MD5_HEADER,
)
from ._error import (
    _ERROR_MISSING_PRIMARY_URI,
    _ERROR_MISSING_SECONDARY_URI,
    _ERROR_RANGE_TOO_LARGE_FOR_MD5,
    _ERROR_START_END_NEEDED_FOR_MD5,
    _ERROR_VALUE_SHOULD_BE_SEEKABLE_STREAM,
    _validate_not_none,
)
from .models import StorageLocation

_ERROR_VALUE_SHOULD_BE_BYTES_OR_STREAM = '{0} should be of type bytes or a readable file-like/io.IOBase stream object.'


def _get_path(*segments):
    '''
    Creates the path to access a resource, e.g. _get_path('container', 'blob')
    returns '/container/blob'.
    '''
    segments = [str(s).strip('/') for s in segments if s]
    return '/' + '/'.join(segments)


def _apply_location(request, storage_uri, location):
    '''
    Points the request at the base uri of location. The path built by the
    request descriptor is relative to that base; a base uri with a path
    component (e.g. the emulator's /devstoreaccount1) prefixes it.
    '''
    uri = storage_uri.get_uri(location)
    if uri is None:
        raise ValueError(_ERROR_MISSING_PRIMARY_URI if location == StorageLocation.PRIMARY
                         else _ERROR_MISSING_SECONDARY_URI)

    if '://' not in uri:
        uri = '//' + uri
    parsed = urlparse(uri)

    if parsed.scheme:
        request.protocol = parsed.scheme
    request.host = parsed.netloc

    base_path = parsed.path.rstrip('/')
    if base_path:
        request.path = base_path + (request.path or '/')

    request.location = location


def _update_request(request, client_request_id, x_ms_version=X_MS_VERSION,
                    user_agent_string=USER_AGENT_STRING, timeout=None):
    '''
    Adds the headers common to every storage request and encodes the path.
    '''
    # Verify body
    if request.body:
        request.body = _get_data_bytes_or_stream_only('request.body', request.body)
        length = _len_plus(request.body)

        # only scenario where this case is plausible is if the stream object is not seekable.
        if length is None:
            raise ValueError(_ERROR_VALUE_SHOULD_BE_SEEKABLE_STREAM.format('request.body'))

        # if it is PUT, POST, MERGE, DELETE, need to add content-length to header.
        if request.method in ['PUT', 'POST', 'MERGE', 'DELETE']:
            request.headers['Content-Length'] = str(length)
    elif request.method in ['PUT', 'POST', 'MERGE']:
        request.headers['Content-Length'] = '0'

    # append addtional headers based on the service
    request.headers['x-ms-version'] = x_ms_version
    request.headers['User-Agent'] = user_agent_string
    request.headers[_CLIENT_REQUEST_ID_HEADER] = client_request_id

    if timeout is not None:
        request.query['timeout'] = _int_to_str(timeout)

    request.path = url_quote(request.path, '/()$=\',~')


def _add_user_headers(request, user_headers):
    if user_headers:
        for name, value in user_headers.items():
            request.headers[name] = value


def _add_metadata_headers(metadata, request):
    if metadata:
        for name, value in metadata.items():
            request.headers['x-ms-meta-' + name] = value


def _add_date_header(request):
    request.headers['x-ms-date'] = formatdate(usegmt=True)


def _add_conditional_headers(request, access_condition):
    '''Adds the If-* and lease headers of an AccessCondition.'''
    if access_condition is None:
        return

    if access_condition.if_match:
        request.headers['If-Match'] = access_condition.if_match
    if access_condition.if_none_match:
        request.headers['If-None-Match'] = access_condition.if_none_match
    if access_condition.if_modified_since:
        request.headers['If-Modified-Since'] = _datetime_to_utc_string(access_condition.if_modified_since)
    if access_condition.if_unmodified_since:
        request.headers['If-Unmodified-Since'] = _datetime_to_utc_string(access_condition.if_unmodified_since)
    if access_condition.lease_id:
        request.headers['x-ms-lease-id'] = access_condition.lease_id


def _validate_and_format_range_headers(request, start_range, end_range, start_range_required=True,
                                       end_range_required=True, check_content_md5=False,
                                       range_header_name='x-ms-range'):
    # If end range is provided, start range must be provided
    if start_range_required or end_range is not None:
        _validate_not_none('start_range', start_range)
    if end_range_required:
        _validate_not_none('end_range', end_range)

    # Format based on whether end_range is present
    if end_range is not None:
        request.headers[range_header_name] = 'bytes={0}-{1}'.format(start_range, end_range)
    elif start_range is not None:
        request.headers[range_header_name] = 'bytes={0}-'.format(start_range)

    # Content MD5 can only be provided for a complete range less than 4MB in size
    if check_content_md5:
        if start_range is None or end_range is None:
            raise ValueError(_ERROR_START_END_NEEDED_FOR_MD5)
        if end_range - start_range + 1 > _MAX_RANGE_CONTENT_MD5_SIZE:
            raise ValueError(_ERROR_RANGE_TOO_LARGE_FOR_MD5)

        request.headers[_RANGE_CONTENT_MD5_HEADER] = 'true'


def _get_data_bytes_or_stream_only(param_name, param_value):
    '''Validates the request body passed in is a stream/file-like or bytes
    object.'''
    if param_value is None:
        return b''

    if isinstance(param_value, bytes) or hasattr(param_value, 'read'):
        return param_value

    raise TypeError(_ERROR_VALUE_SHOULD_BE_BYTES_OR_STREAM.format(param_name))


def _len_plus(data):
    length = None
    # Check if object implements the __len__ method, covers most input cases such as bytearray.
    try:
        length = len(data)
    except TypeError:
        pass

    if not length:
        # Check if the stream is a file-like stream object.
        # If so, calculate the size using the file descriptor.
        try:
            fileno = data.fileno()
        except (AttributeError, UnsupportedOperation):
            pass
        else:
            return fstat(fileno).st_size

        # If the stream is seekable and tell() is implemented, calculate the stream size.
        try:
            current_position = data.tell()
            data.seek(0, SEEK_END)
            length = data.tell() - current_position
            data.seek(current_position, SEEK_SET)
        except (AttributeError, UnsupportedOperation):
            pass

    return length
