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
from io import BytesIO

import requests

from ._auth import (
    _StorageNoAuthentication,
    _StorageSASAuthentication,
    _StorageSharedKeyAuthentication,
    _StorageSharedKeyLiteAuthentication,
    _StorageTableSharedKeyAuthentication,
    _StorageTableSharedKeyLiteAuthentication,
)
from ._constants import (
    DEFAULT_PROTOCOL,
    DEFAULT_SOCKET_TIMEOUT,
    USER_AGENT_STRING,
    X_MS_VERSION,
)
from ._error import (
    _ERROR_STORAGE_MISSING_INFO,
    _validate_not_none,
    _validate_type_bytes,
)
from ._executor import ExecutionEngine
from ._http import HTTPRequest
from ._http.httpclient import _HTTPClient
from ._request import StorageRequest
from ._serialization import (
    _add_conditional_headers,
    _get_path,
)
from ._transfer import (
    _download_to_stream_request,
    _upload_from_stream_request,
)
from .models import (
    LocationMode,
    RequestLocationMode,
    StorageEventHandlers,
    StorageLocation,
    StorageUri,
)
from .retry import ExponentialRetry


class StorageClient(object):
    '''
    This is the base class for service objects. Service objects are used to do
    all requests to Storage. It holds the credentials, the endpoints and the
    defaults of every operation, and runs operations through an
    :class:`~storagecore._executor.ExecutionEngine`.

    :ivar str account_name:
        The storage account name. This is used to authenticate requests
        signed with an account key and to construct the storage endpoint.
    :ivar str account_key:
        The storage account key. This is used for shared key authentication.
        If neither account key or sas token is specified, anonymous access
        will be used.
    :ivar str sas_token:
        A shared access signature token to use to authenticate requests
        instead of the account key. If account key and sas token are both
        specified, account key will be used to sign. If neither are
        specified, anonymous access will be used.
    :ivar str primary_endpoint:
        The endpoint to send storage requests to.
    :ivar str secondary_endpoint:
        The secondary endpoint to read storage data from. This will only be a
        valid endpoint if the storage account used is RA-GRS and thus allows
        reading from secondary.
    :ivar retry:
        A retry policy object, or a function which takes a RetryContext and
        returns the number of seconds to wait before retrying, or None to stop.
        Defaults to :class:`~storagecore.retry.ExponentialRetry`.
    :ivar str location_mode:
        The host location to use to make requests. Defaults to
        LocationMode.PRIMARY_ONLY. Note that this setting only applies to
        RA-GRS accounts as other account types do not allow reading from
        secondary.
    :ivar socket_timeout:
        The socket timeout of each attempt, in seconds, or a (connect, read)
        tuple.
    :ivar float maximum_execution_time:
        The default wall-clock budget, in seconds, of each operation
        including all its retries. None means no limit.
    :ivar ~storagecore.models.StorageEventHandlers events:
        Listeners notified for every operation of this client.
    '''

    def __init__(self, account_name=None, account_key=None, sas_token=None,
                 primary_endpoint=None, secondary_endpoint=None, protocol=DEFAULT_PROTOCOL,
                 request_session=None, socket_timeout=DEFAULT_SOCKET_TIMEOUT,
                 use_shared_key_lite=False, is_table=False):
        '''
        :param str account_name:
            The storage account name.
        :param str account_key:
            The storage account key.
        :param str sas_token:
            A shared access signature token.
        :param str primary_endpoint:
            The host of the primary endpoint, e.g. myaccount.blob.core.windows.net.
        :param str secondary_endpoint:
            The host of the secondary endpoint, if the account is RA-GRS.
        :param str protocol:
            The protocol to use for requests. Defaults to https.
        :param requests.Session request_session:
            The session object to use for http requests.
        :param int socket_timeout:
            The socket timeout of each attempt, in seconds.
        :param bool use_shared_key_lite:
            Sign with the legacy SharedKeyLite scheme.
        :param bool is_table:
            Canonicalize requests the way the table service expects.
        '''
        if not primary_endpoint:
            raise ValueError(_ERROR_STORAGE_MISSING_INFO)

        self.account_name = account_name
        self.account_key = account_key
        self.sas_token = sas_token

        self.primary_endpoint = primary_endpoint
        self.secondary_endpoint = secondary_endpoint

        self.authentication = _get_authentication(account_name, account_key, sas_token,
                                                  use_shared_key_lite, is_table)

        self._httpclient = _HTTPClient(
            protocol=protocol,
            session=request_session or requests.Session(),
            timeout=socket_timeout,
        )

        self.retry = ExponentialRetry()
        self.location_mode = LocationMode.PRIMARY_ONLY
        self.maximum_execution_time = None
        self.x_ms_version = X_MS_VERSION
        self.user_agent_string = USER_AGENT_STRING

        self.events = StorageEventHandlers()
        self._engine = ExecutionEngine(self.events)

    @property
    def socket_timeout(self):
        return self._httpclient.timeout

    @socket_timeout.setter
    def socket_timeout(self, value):
        self._httpclient.timeout = value

    @property
    def protocol(self):
        return self._httpclient.protocol

    @protocol.setter
    def protocol(self, value):
        self._httpclient.protocol = value

    @property
    def request_session(self):
        return self._httpclient.session

    @request_session.setter
    def request_session(self, value):
        self._httpclient.session = value

    @property
    def storage_uri(self):
        '''The :class:`~storagecore.models.StorageUri` of the account endpoints.'''
        secondary = None
        if self.secondary_endpoint:
            secondary = self.protocol + '://' + self.secondary_endpoint
        return StorageUri(self.protocol + '://' + self.primary_endpoint, secondary)

    def set_proxy(self, host, port, user=None, password=None):
        '''
        Sets the proxy server host and port for the HTTP CONNECT Tunnelling.

        :param str host: Address of the proxy. Ex: '192.168.0.100'
        :param int port: Port of the proxy. Ex: 6000
        :param str user: User for proxy authorization.
        :param str password: Password for proxy authorization.
        '''
        self._httpclient.set_proxy(host, port, user, password)

    def make_url(self, path, location=StorageLocation.PRIMARY, sas_token=None):
        '''
        Creates the url to access a resource.

        :param str path:
            The path of the resource, e.g. container/blob.
        :param str location:
            The :class:`~storagecore.models.StorageLocation` of the url.
        :param str sas_token:
            Token to append to the url, e.g. one created with
            :class:`~storagecore.sharedaccesssignature.SharedAccessSignature`.
            Defaults to the sas token of the client, if any.
        :return: the url
        :rtype: str
        '''
        base = self.storage_uri.get_uri(location)
        if base is None:
            raise ValueError('No endpoint is configured for the {0} location.'.format(location))

        url = base + _get_path(path)
        if sas_token:
            return _StorageSASAuthentication(sas_token).transform_uri(url)
        return self.authentication.transform_uri(url)

    def _perform_request(self, request, target=None, operation_context=None, retry_policy=None):
        '''
        Runs request through the execution engine and returns its result.
        Translated errors of the last attempt are raised on failure.
        '''
        return self._engine.execute(self, target, request, retry_policy, operation_context)

    def get_properties(self, path, access_condition=None, options=None, operation_context=None):
        '''
        Returns the headers of a resource, read with a HEAD request from the
        primary or the secondary location.

        :param str path:
            The path of the resource, e.g. container/blob.
        :param ~storagecore.models.AccessCondition access_condition:
            Conditions the resource must meet.
        :param ~storagecore.models.RequestOptions options:
            Per operation options.
        :param ~storagecore.models.OperationContext operation_context:
            The context of the operation.
        :return: the response headers.
        :rtype: dict
        '''
        _validate_not_none('path', path)

        def build_request(client, target, state, context):
            request = HTTPRequest()
            request.method = 'HEAD'
            request.path = _get_path(path)
            return request

        def set_headers(request, state, context):
            _add_conditional_headers(request, access_condition)

        def post_process_response(response, state, context, value):
            return response.headers

        descriptor = StorageRequest(
            build_request,
            set_headers=set_headers,
            post_process_response=post_process_response,
            request_location_mode=RequestLocationMode.PRIMARY_OR_SECONDARY,
            options=options,
            expected_status=(200,))

        return self._perform_request(descriptor, path, operation_context)

    def download_to_stream(self, path, stream, start_range=None, end_range=None,
                           access_condition=None, options=None, operation_context=None):
        '''
        Downloads a resource, or the given range of it, to stream. An
        interrupted download resumes where it stopped and keeps reading the
        same version of the resource from the same location.

        :param str path:
            The path of the resource, e.g. container/blob.
        :param stream:
            An opened writable stream.
        :param int start_range:
            Start of the byte range to download, inclusive.
        :param int end_range:
            End of the byte range to download, inclusive.
        :param ~storagecore.models.AccessCondition access_condition:
            Conditions the resource must meet.
        :param ~storagecore.models.RequestOptions options:
            Per operation options.
        :param ~storagecore.models.OperationContext operation_context:
            The context of the operation.
        :return: the properties of the resource.
        :rtype: dict
        '''
        request = _download_to_stream_request(_get_path(path), stream, start_range, end_range,
                                              access_condition, options)
        return self._perform_request(request, path, operation_context)

    def download_to_bytes(self, path, start_range=None, end_range=None,
                          access_condition=None, options=None, operation_context=None):
        '''
        Downloads a resource, or the given range of it, as bytes. See
        download_to_stream.

        :rtype: bytes
        '''
        stream = BytesIO()
        self.download_to_stream(path, stream, start_range, end_range,
                                access_condition, options, operation_context)
        return stream.getvalue()

    def upload_from_stream(self, path, stream, count=None, headers=None, metadata=None,
                           access_condition=None, options=None, operation_context=None):
        '''
        Uploads count bytes of a seekable stream, from its current position,
        with a single PUT. Retries send the same bytes again.

        :param str path:
            The path of the resource, e.g. container/blob.
        :param stream:
            An opened seekable stream.
        :param int count:
            Number of bytes to read from the stream. Defaults to the rest of it.
        :param dict headers:
            Additional headers of the PUT, e.g. x-ms-blob-type.
        :param dict metadata:
            Name-value pairs sent as x-ms-meta-* headers.
        :param ~storagecore.models.AccessCondition access_condition:
            Conditions the resource must meet.
        :param ~storagecore.models.RequestOptions options:
            Per operation options.
        :param ~storagecore.models.OperationContext operation_context:
            The context of the operation.
        :return: the etag and last_modified of the resource.
        :rtype: dict
        '''
        request = _upload_from_stream_request(_get_path(path), stream, count, headers, metadata,
                                              access_condition, options)
        return self._perform_request(request, path, operation_context)

    def upload_from_bytes(self, path, data, headers=None, metadata=None,
                          access_condition=None, options=None, operation_context=None):
        '''
        Uploads data with a single PUT. See upload_from_stream.

        :rtype: dict
        '''
        _validate_type_bytes('data', data)
        return self.upload_from_stream(path, BytesIO(data), len(data), headers, metadata,
                                       access_condition, options, operation_context)


def _get_authentication(account_name, account_key, sas_token, use_shared_key_lite, is_table):
    if account_key:
        if is_table:
            if use_shared_key_lite:
                return _StorageTableSharedKeyLiteAuthentication(account_name, account_key)
            return _StorageTableSharedKeyAuthentication(account_name, account_key)
        if use_shared_key_lite:
            return _StorageSharedKeyLiteAuthentication(account_name, account_key)
        return _StorageSharedKeyAuthentication(account_name, account_key)
    elif sas_token:
        return _StorageSASAuthentication(sas_token)
    return _StorageNoAuthentication()
