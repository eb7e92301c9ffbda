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
from json import loads
from xml.etree import ElementTree as ETree

from dateutil import parser

from ._common_conversion import _int_or_none
from ._constants import (
    _CONTENT_MD5_HEADER,
    _ERROR_CODE_HEADER,
    _REQUEST_ID_HEADER,
)


def _parse_error_body(headers, body):
    '''
    Extracts the service error code and any extended error information from
    an error response. The x-ms-error-code header wins over the body code.

    XML error bodies look like:
    <?xml version="1.0" encoding="utf-8"?>
    <Error>
        <Code>error-code</Code>
        <Message>error-message</Message>
        <AuthenticationErrorDetail>details</AuthenticationErrorDetail>
    </Error>

    JSON (table) error bodies look like:
    {"odata.error": {"code": "error-code", "message": {"lang": "en-US", "value": "error-message"}}}
    '''
    error_code = headers.get(_ERROR_CODE_HEADER) if headers else None
    details = {}

    if body:
        try:
            text = body.decode('utf-8-sig') if isinstance(body, bytes) else body
        except UnicodeDecodeError:
            return error_code, details

        text = text.strip()
        if text.startswith('<'):
            details = _parse_xml_error_body(text)
        elif text.startswith('{'):
            details = _parse_json_error_body(text)

    if error_code is None:
        error_code = details.pop('Code', None)
    else:
        details.pop('Code', None)

    return error_code, details


def _parse_xml_error_body(text):
    try:
        error_element = ETree.fromstring(text)
    except ETree.ParseError:
        return {}

    details = {}
    for child in error_element:
        details[child.tag] = child.text
    return details


def _parse_json_error_body(text):
    try:
        error = loads(text).get('odata.error')
    except (ValueError, AttributeError):
        return {}

    if not isinstance(error, dict):
        return {}

    details = {}
    if 'code' in error:
        details['Code'] = error['code']
    message = error.get('message')
    if isinstance(message, dict):
        details['Message'] = message.get('value')
    elif message is not None:
        details['Message'] = message
    return details


def _get_request_id(response):
    if response is None or not response.headers:
        return None
    return response.headers.get(_REQUEST_ID_HEADER)


def _get_response_date(response):
    if response is None or not response.headers:
        return None
    date = response.headers.get('date')
    try:
        return parser.parse(date) if date else None
    except (ValueError, OverflowError):
        return None


def _get_etag(response):
    if response is None or not response.headers:
        return None
    return response.headers.get('etag')


def _get_content_md5_header(response):
    if response is None or not response.headers:
        return None
    return response.headers.get(_CONTENT_MD5_HEADER)


def _get_content_length(response):
    return _int_or_none(response.headers.get('content-length'))


def _get_download_size(start_range, response):
    '''
    The total size of the resource, from the Content-Range header of a ranged
    response or the Content-Length of a full one.
    '''
    content_range = response.headers.get('content-range')
    if start_range is not None and content_range:
        return int(content_range.split(' ', 1)[1].split('/', 1)[1])
    return _get_content_length(response)
