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
import logging
from urllib.parse import parse_qsl

from ._common_conversion import _sign_string
from ._error import (
    AzureSigningError,
    _ERROR_ACCOUNT_NAME_MISSING,
    _wrap_exception,
)
from ._logger import _debug

logger = logging.getLogger(__name__)


class _StorageNoAuthentication(object):
    '''Anonymous access. Requests are sent unchanged.'''

    def sign_request(self, request, operation_context=None):
        pass

    def transform_uri(self, uri):
        return uri


class _StorageSharedKeyAuthentication(object):
    '''
    Signs blob, queue and file requests with the account key. The
    canonicalized string is:

        VERB\\nContent-Encoding\\nContent-Language\\nContent-Length\\n
        Content-MD5\\nContent-Type\\nDate\\nIf-Modified-Since\\nIf-Match\\n
        If-None-Match\\nIf-Unmodified-Since\\nRange\\n
        CanonicalizedHeaders CanonicalizedResource
    '''

    _SCHEME = 'SharedKey'

    def __init__(self, account_name, account_key):
        self.account_name = account_name
        self.account_key = account_key

    def transform_uri(self, uri):
        return uri

    def sign_request(self, request, operation_context=None):
        if not self.account_name:
            raise AzureSigningError(_ERROR_ACCOUNT_NAME_MISSING)

        headers = _lower_case_headers(request)
        string_to_sign = \
            self._get_verb(request) + \
            self._get_headers(request, headers) + \
            self._get_canonicalized_headers(headers) + \
            self._get_canonicalized_resource(request) + \
            self._get_canonicalized_resource_query(request)

        _debug(logger, operation_context, 'String to sign: %s', string_to_sign.replace('\n', '\\n'))
        self._add_authorization_header(request, string_to_sign)

    def _get_verb(self, request):
        return request.method + '\n'

    def _get_headers(self, request, headers):
        content_length = headers.get('content-length', '')
        if content_length == '0':
            content_length = ''

        values = [
            headers.get('content-encoding', ''),
            headers.get('content-language', ''),
            content_length,
            headers.get('content-md5', ''),
            headers.get('content-type', ''),
            '' if 'x-ms-date' in headers else headers.get('date', ''),
            headers.get('if-modified-since', ''),
            headers.get('if-match', ''),
            headers.get('if-none-match', ''),
            headers.get('if-unmodified-since', ''),
            headers.get('range', ''),
        ]
        return '\n'.join(values) + '\n'

    def _get_canonicalized_headers(self, headers):
        string_to_sign = ''
        x_ms_headers = sorted((name, value) for name, value in headers.items()
                              if name.startswith('x-ms-'))
        for name, value in x_ms_headers:
            if value is not None:
                string_to_sign += '{}:{}\n'.format(name, str(value).strip())
        return string_to_sign

    def _get_canonicalized_resource(self, request):
        return '/' + self.account_name + (request.path or '/')

    def _get_canonicalized_resource_query(self, request):
        string_to_sign = ''
        for name in sorted(request.query, key=lambda n: n.lower()):
            value = request.query[name]
            if value is not None:
                string_to_sign += '\n' + name.lower() + ':' + _join_query_value(value)
        return string_to_sign

    def _add_authorization_header(self, request, string_to_sign):
        try:
            signature = _sign_string(self.account_key, string_to_sign)
        except (ValueError, TypeError) as ex:
            raise _wrap_exception(ex, AzureSigningError)

        request.headers['Authorization'] = '{} {}:{}'.format(self._SCHEME, self.account_name, signature)


class _StorageSharedKeyLiteAuthentication(_StorageSharedKeyAuthentication):
    '''
    The legacy reduced canonicalization:

        VERB\\nContent-MD5\\nContent-Type\\nDate\\n
        CanonicalizedHeaders CanonicalizedResource
    '''

    _SCHEME = 'SharedKeyLite'

    def _get_headers(self, request, headers):
        values = [
            headers.get('content-md5', ''),
            headers.get('content-type', ''),
            '' if 'x-ms-date' in headers else headers.get('date', ''),
        ]
        return '\n'.join(values) + '\n'

    def _get_canonicalized_resource_query(self, request):
        return _get_comp_query(request)


class _StorageTableSharedKeyAuthentication(_StorageSharedKeyAuthentication):
    '''
    Table shared key. Only the verb, content headers, date and resource
    are signed; x-ms-* headers are not.
    '''

    def _get_headers(self, request, headers):
        values = [
            headers.get('content-md5', ''),
            headers.get('content-type', ''),
            headers.get('x-ms-date', headers.get('date', '')),
        ]
        return '\n'.join(values) + '\n'

    def _get_canonicalized_headers(self, headers):
        return ''

    def _get_canonicalized_resource_query(self, request):
        return _get_comp_query(request)


class _StorageTableSharedKeyLiteAuthentication(_StorageTableSharedKeyAuthentication):

    _SCHEME = 'SharedKeyLite'

    def _get_verb(self, request):
        return ''

    def _get_headers(self, request, headers):
        return headers.get('x-ms-date', headers.get('date', '')) + '\n'


class _StorageSASAuthentication(object):
    '''
    Appends a shared access signature token to each request. No header is
    signed; the token already carries its own signature.

    On a name collision between the request query and the token, the token
    value is used. api-version is sent once.
    '''

    def __init__(self, sas_token):
        # ignore ?-prefix (added by tools such as Azure Portal) on sas tokens
        # doing so avoids double question marks when signing
        if sas_token is not None and sas_token.startswith('?'):
            sas_token = sas_token[1:]
        self.sas_token = sas_token
        self._sas_query = parse_qsl(sas_token or '', keep_blank_values=True)

    def sign_request(self, request, operation_context=None):
        # if 'sig' is present, then the request has already been signed
        # as is the case when performing retries
        if 'sig' in request.query:
            return

        request.query = _merge_query(request.query, self._sas_query)

    def transform_uri(self, uri):
        if not self.sas_token:
            return uri

        # values stay percent-encoded as given
        base, _, existing = uri.partition('?')
        merged = _merge_query(_split_query(existing), _split_query(self.sas_token).items())
        return base + '?' + '&'.join('{}={}'.format(n, v) for n, v in merged.items())


def _merge_query(query, sas_query):
    merged = {}
    sas_names = set(name.lower() for name, _ in sas_query)
    for name, value in query.items():
        if name.lower() not in sas_names:
            merged[name] = value
    for name, value in sas_query:
        merged[name] = value
    return merged


def _split_query(query_string):
    query = {}
    for pair in query_string.split('&'):
        if pair:
            name, _, value = pair.partition('=')
            query[name] = value
    return query


def _lower_case_headers(request):
    headers = {}
    for name, value in request.headers.items():
        if value is not None:
            headers[name.lower()] = str(value)
    return headers


def _join_query_value(value):
    if isinstance(value, (list, tuple)):
        return ','.join(sorted(str(v) for v in value))
    return str(value)


def _get_comp_query(request):
    for name, value in request.query.items():
        if name.lower() == 'comp' and value is not None:
            return '?comp=' + str(value)
    return ''
