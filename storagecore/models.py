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
import threading
import uuid

from ._error import (
    _ERROR_MISSING_PRIMARY_URI,
    _ERROR_MISSING_SECONDARY_URI,
    _validate_not_none,
)


class StorageLocation(object):
    '''
    The physical endpoint a single request is sent to.
    '''

    PRIMARY = 'primary'
    ''' The primary endpoint of the storage account. '''

    SECONDARY = 'secondary'
    ''' The read-only secondary endpoint of an RA-GRS storage account. '''


class LocationMode(object):
    '''
    Specifies the location the request should be sent to. This mode only applies
    for RA-GRS accounts which allow secondary read access. All other account types
    must use PRIMARY_ONLY.
    '''

    PRIMARY_ONLY = 'primary_only'
    ''' Requests should be sent to the primary location. '''

    PRIMARY_THEN_SECONDARY = 'primary_then_secondary'
    ''' Requests start at the primary location and alternate on retry. '''

    SECONDARY_ONLY = 'secondary_only'
    ''' Requests should be sent to the secondary location, if possible. '''

    SECONDARY_THEN_PRIMARY = 'secondary_then_primary'
    ''' Requests start at the secondary location and alternate on retry. '''


class RequestLocationMode(object):
    '''
    The locations an individual operation may be executed against. Writes are
    PRIMARY_ONLY; reads are usually PRIMARY_OR_SECONDARY.
    '''

    PRIMARY_ONLY = 'primary_only'
    SECONDARY_ONLY = 'secondary_only'
    PRIMARY_OR_SECONDARY = 'primary_or_secondary'


class StorageUri(object):
    '''
    The pair of base URIs of a storage resource. Immutable.

    :ivar str primary_uri:
        The base URI of the primary endpoint, e.g. https://account.blob.core.windows.net
    :ivar str secondary_uri:
        The base URI of the secondary endpoint, or None.
    '''

    def __init__(self, primary_uri, secondary_uri=None):
        if primary_uri is None and secondary_uri is None:
            raise ValueError(_ERROR_MISSING_PRIMARY_URI)
        self._primary_uri = primary_uri
        self._secondary_uri = secondary_uri

    @property
    def primary_uri(self):
        return self._primary_uri

    @property
    def secondary_uri(self):
        return self._secondary_uri

    def get_uri(self, location):
        if location == StorageLocation.PRIMARY:
            return self._primary_uri
        elif location == StorageLocation.SECONDARY:
            return self._secondary_uri
        raise ValueError('Unknown storage location: {0}'.format(location))

    def has_location(self, location):
        return self.get_uri(location) is not None

    def validate_location_mode(self, location_mode):
        '''Raises ValueError if location_mode needs a URI this pair lacks.'''
        if location_mode == LocationMode.PRIMARY_ONLY and self._primary_uri is None:
            raise ValueError(_ERROR_MISSING_PRIMARY_URI)
        if location_mode == LocationMode.SECONDARY_ONLY and self._secondary_uri is None:
            raise ValueError(_ERROR_MISSING_SECONDARY_URI)

    def __eq__(self, other):
        return isinstance(other, StorageUri) and \
            self._primary_uri == other._primary_uri and \
            self._secondary_uri == other._secondary_uri

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash((self._primary_uri, self._secondary_uri))

    def __repr__(self):
        return 'StorageUri(primary={0!r}, secondary={1!r})'.format(self._primary_uri, self._secondary_uri)


class RequestOptions(object):
    '''
    Per operation options. Any option left as None is filled from the client
    defaults when the operation starts.

    :ivar int timeout:
        The server side timeout of each request, in seconds. Sent as the
        timeout query parameter.
    :ivar float maximum_execution_time:
        The wall-clock budget in seconds of the whole operation, across all
        retries. None means no limit.
    :ivar str location_mode:
        The :class:`~storagecore.models.LocationMode` of the operation.
    :ivar retry_policy:
        A retry policy object or a function taking a
        :class:`~storagecore.models.RetryContext` and returning the backoff in
        seconds, or None to stop retrying.
    :ivar socket_timeout:
        The client side socket timeout of each attempt, in seconds, or a
        (connect, read) tuple.
    :ivar bool use_transactional_content_md5:
        Request and validate a Content-MD5 for every range transferred.
    :ivar bool disable_content_md5_validation:
        Skip validation of the stored Content-MD5 on downloads.
    '''

    def __init__(self, timeout=None, maximum_execution_time=None, location_mode=None,
                 retry_policy=None, socket_timeout=None, use_transactional_content_md5=None,
                 disable_content_md5_validation=None):
        self.timeout = timeout
        self.maximum_execution_time = maximum_execution_time
        self.location_mode = location_mode
        self.retry_policy = retry_policy
        self.socket_timeout = socket_timeout
        self.use_transactional_content_md5 = use_transactional_content_md5
        self.disable_content_md5_validation = disable_content_md5_validation

    def apply_defaults(self, client):
        '''Returns a copy with unset options taken from the client.'''
        options = RequestOptions(
            timeout=self.timeout,
            maximum_execution_time=self.maximum_execution_time,
            location_mode=self.location_mode,
            retry_policy=self.retry_policy,
            socket_timeout=self.socket_timeout,
            use_transactional_content_md5=self.use_transactional_content_md5,
            disable_content_md5_validation=self.disable_content_md5_validation)

        if options.maximum_execution_time is None:
            options.maximum_execution_time = getattr(client, 'maximum_execution_time', None)
        if options.location_mode is None:
            options.location_mode = getattr(client, 'location_mode', None) or LocationMode.PRIMARY_ONLY
        if options.retry_policy is None:
            options.retry_policy = getattr(client, 'retry', None)
        if options.socket_timeout is None:
            options.socket_timeout = getattr(client, 'socket_timeout', None)
        if options.use_transactional_content_md5 is None:
            options.use_transactional_content_md5 = False
        if options.disable_content_md5_validation is None:
            options.disable_content_md5_validation = False
        return options


class AccessCondition(object):
    '''
    Conditional headers sent with a request.

    :ivar str if_match:
        An ETag value, or the wildcard character (*). The request succeeds only
        if the resource's ETag matches.
    :ivar str if_none_match:
        An ETag value, or the wildcard character (*). The request succeeds only
        if the resource's ETag does not match.
    :ivar datetime if_modified_since:
        Succeed only if the resource has been modified since this time.
    :ivar datetime if_unmodified_since:
        Succeed only if the resource has not been modified since this time.
    :ivar str lease_id:
        Required if the resource has an active lease.
    '''

    def __init__(self, if_match=None, if_none_match=None, if_modified_since=None,
                 if_unmodified_since=None, lease_id=None):
        self.if_match = if_match
        self.if_none_match = if_none_match
        self.if_modified_since = if_modified_since
        self.if_unmodified_since = if_unmodified_since
        self.lease_id = lease_id

    def _with_if_match(self, etag):
        condition = AccessCondition(etag, self.if_none_match, self.if_modified_since,
                                    self.if_unmodified_since, self.lease_id)
        return condition


class RequestResult(object):
    '''
    The outcome of one physical request. Read-only once created.
    '''

    def __init__(self, target_location=None, start_time=None, stop_time=None,
                 status_code=None, status_message=None, service_request_id=None,
                 etag=None, content_md5=None, request_date=None, exception=None):
        self._target_location = target_location
        self._start_time = start_time
        self._stop_time = stop_time
        self._status_code = status_code
        self._status_message = status_message
        self._service_request_id = service_request_id
        self._etag = etag
        self._content_md5 = content_md5
        self._request_date = request_date
        self._exception = exception

    @property
    def target_location(self):
        return self._target_location

    @property
    def start_time(self):
        return self._start_time

    @property
    def stop_time(self):
        return self._stop_time

    @property
    def status_code(self):
        return self._status_code

    @property
    def status_message(self):
        return self._status_message

    @property
    def service_request_id(self):
        return self._service_request_id

    @property
    def etag(self):
        return self._etag

    @property
    def content_md5(self):
        return self._content_md5

    @property
    def request_date(self):
        return self._request_date

    @property
    def exception(self):
        return self._exception

    @property
    def succeeded(self):
        return self._exception is None

    def __repr__(self):
        return 'RequestResult(location={0}, status={1}, request_id={2}, exception={3!r})'.format(
            self._target_location, self._status_code, self._service_request_id, self._exception)


class RetryContext(object):
    '''
    Retry context. This is a pass through class which stores information about
    the request, response, exception, and location of the last attempt.

    :ivar int count:
        The number of retries performed so far.
    :ivar HTTPRequest request:
        The last request sent, or None if it could not be built.
    :ivar HTTPResponse response:
        The last response received, or None.
    :ivar Exception exception:
        The translated exception of the last attempt.
    :ivar str location_mode:
        The :class:`~storagecore.models.StorageLocation` the last attempt targeted.
    :ivar StorageUri storage_uri:
        The endpoints available to the operation.
    :ivar OperationContext operation_context:
        The context of the operation being retried.
    '''

    def __init__(self, count=0, request=None, response=None, exception=None,
                 location_mode=None, storage_uri=None, operation_context=None):
        self.count = count
        self.request = request
        self.response = response
        self.exception = exception
        self.location_mode = location_mode
        self.storage_uri = storage_uri
        self.operation_context = operation_context

    @property
    def status_code(self):
        '''
        The status of the last attempt. A status carried by the exception
        (including the client side 306) takes precedence over the response,
        so a body that failed validation after a 200 is not mistaken for a
        failure while reading.
        '''
        status = getattr(self.exception, 'status_code', None)
        if status is None and self.response is not None:
            status = self.response.status
        return status


class StorageEvent(object):
    '''
    Base class of the events fired by the execution engine.

    :ivar OperationContext operation_context:
        The context of the operation.
    :ivar HTTPRequest request:
        The request of the current attempt.
    '''

    def __init__(self, operation_context, request):
        self.operation_context = operation_context
        self.request = request


class SendingRequestEvent(StorageEvent):
    '''Fired once a request is built and signed, immediately before it is sent.'''

    def __init__(self, operation_context, request, retry_count):
        super(SendingRequestEvent, self).__init__(operation_context, request)
        self.retry_count = retry_count


class ResponseReceivedEvent(StorageEvent):
    '''
    Fired when the response status and headers arrive, before any processing.
    Listeners may inspect or alter the response, e.g. its status.
    '''

    def __init__(self, operation_context, request, response):
        super(ResponseReceivedEvent, self).__init__(operation_context, request)
        self.response = response


class RetryingEvent(StorageEvent):
    '''Fired after the retry policy allows a retry, before the backoff.'''

    def __init__(self, operation_context, request, retry_context):
        super(RetryingEvent, self).__init__(operation_context, request)
        self.retry_context = retry_context


class RequestCompletedEvent(StorageEvent):
    '''Fired when a physical attempt has finished, successfully or not.'''

    def __init__(self, operation_context, request, response, request_result):
        super(RequestCompletedEvent, self).__init__(operation_context, request)
        self.response = response
        self.request_result = request_result


class StorageEventMulticaster(object):
    '''
    A thread-safe list of listeners for one kind of event. Listeners may be
    added or removed at any time, including while the event is being fired;
    a fire call uses the listeners registered when it started.
    '''

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners = ()

    def add_listener(self, listener):
        _validate_not_none('listener', listener)
        with self._lock:
            self._listeners = self._listeners + (listener,)

    def remove_listener(self, listener):
        '''Removes the most recent registration of listener, if any.'''
        with self._lock:
            listeners = list(self._listeners)
            for i in range(len(listeners) - 1, -1, -1):
                if listeners[i] == listener:
                    del listeners[i]
                    break
            self._listeners = tuple(listeners)

    def has_listeners(self):
        return len(self._listeners) > 0

    def fire(self, event):
        for listener in self._listeners:
            listener(event)


class StorageEventHandlers(object):
    '''
    One multicaster per event type. A client owns one set as defaults for all
    its operations and each OperationContext owns one set of its own.
    '''

    def __init__(self):
        self.sending_request = StorageEventMulticaster()
        self.response_received = StorageEventMulticaster()
        self.retrying = StorageEventMulticaster()
        self.request_completed = StorageEventMulticaster()


class CancellationToken(object):
    '''
    Cancels a running operation. The engine checks the token before every
    attempt and while waiting between retries.
    '''

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self):
        return self._event.is_set()

    def wait(self, timeout):
        '''Sleeps up to timeout seconds. Returns True if cancelled meanwhile.'''
        return self._event.wait(timeout)


class OperationContext(StorageEventHandlers):
    '''
    Represents the state of one logical operation, which may span several
    physical requests.

    :ivar str client_request_id:
        A correlation id sent with every request of the operation and used to
        prefix its log entries.
    :ivar dict user_headers:
        Extra headers added to every request of the operation.
    :ivar int log_level:
        The minimum logging level for entries of this operation. None defers
        to the logger configuration.
    :ivar CancellationToken cancellation_token:
        Token used to cancel the operation, or None.
    :ivar bool location_lock:
        Whether operations sharing this context should stick to the location
        that served the first of them.
    '''

    def __init__(self, client_request_id=None, user_headers=None, log_level=None,
                 cancellation_token=None, location_lock=False):
        super(OperationContext, self).__init__()
        self.client_request_id = client_request_id or str(uuid.uuid1())
        self.user_headers = user_headers
        self.log_level = log_level
        self.cancellation_token = cancellation_token
        self.location_lock = location_lock
        self.host_location = None

        self._lock = threading.Lock()
        self._request_results = []
        self._client_time = 0

    @property
    def request_results(self):
        with self._lock:
            return list(self._request_results)

    @property
    def last_result(self):
        with self._lock:
            if not self._request_results:
                return None
            return self._request_results[-1]

    @property
    def client_time(self):
        return self._client_time

    def append_request_result(self, request_result):
        with self._lock:
            self._request_results.append(request_result)

    def _add_client_time(self, seconds):
        with self._lock:
            self._client_time += seconds

    def initialize(self):
        '''Clears per-operation state so the context can be reused.'''
        with self._lock:
            self._request_results = []
            self._client_time = 0


class ResourceTypes(object):
    '''
    Specifies the resource types that are accessible with the account SAS.

    :param bool service:
        Access to service-level APIs (e.g., Get/Set Service Properties,
        Get Service Stats, List Containers/Queues/Tables/Shares)
    :param bool container:
        Access to container-level APIs (e.g., Create/Delete Container,
        Create/Delete Queue, Create/Delete Table, Create/Delete Share,
        List Blobs/Files and Directories)
    :param bool object:
        Access to object-level APIs for blobs, queue messages, table entities, and
        files(e.g. Put Blob, Query Entity, Get Messages, Create File, etc.)
    :param str _str:
        A string representing the resource types.
    '''

    def __init__(self, service=False, container=False, object=False, _str=None):
        if not _str:
            _str = ''
        self.service = service or ('s' in _str)
        self.container = container or ('c' in _str)
        self.object = object or ('o' in _str)

    def __or__(self, other):
        return ResourceTypes(_str=str(self) + str(other))

    def __add__(self, other):
        return ResourceTypes(_str=str(self) + str(other))

    def __str__(self):
        return (('s' if self.service else '') +
                ('c' if self.container else '') +
                ('o' if self.object else ''))


ResourceTypes.SERVICE = ResourceTypes(service=True)
ResourceTypes.CONTAINER = ResourceTypes(container=True)
ResourceTypes.OBJECT = ResourceTypes(object=True)


class Services(object):
    '''
    Specifies the services accessible with the account SAS.

    :param bool blob:
        Access to the blob service.
    :param bool queue:
        Access to the queue service.
    :param bool table:
        Access to the table service.
    :param bool file:
        Access to the file service.
    :param str _str:
        A string representing the services.
    '''

    def __init__(self, blob=False, queue=False, table=False, file=False, _str=None):
        if not _str:
            _str = ''
        self.blob = blob or ('b' in _str)
        self.queue = queue or ('q' in _str)
        self.table = table or ('t' in _str)
        self.file = file or ('f' in _str)

    def __or__(self, other):
        return Services(_str=str(self) + str(other))

    def __add__(self, other):
        return Services(_str=str(self) + str(other))

    def __str__(self):
        return (('b' if self.blob else '') +
                ('q' if self.queue else '') +
                ('t' if self.table else '') +
                ('f' if self.file else ''))


Services.BLOB = Services(blob=True)
Services.QUEUE = Services(queue=True)
Services.TABLE = Services(table=True)
Services.FILE = Services(file=True)


class AccountPermissions(object):
    '''
    :class:`~ResourceTypes` class to be used with generate_account_shared_access_signature
    method and for the AccessPolicies used with set_*_acl. There are two types of
    SAS which may be used to grant resource access. One is to grant access to a
    specific resource (resource-specific). Another is to grant access to the
    entire service for a specific account and allow certain operations based on
    perms found here.

    :param bool read:
        Valid for all signed resources types (Service, Container, and Object).
        Permits read permissions to the specified resource type.
    :param bool write:
        Valid for all signed resources types (Service, Container, and Object).
        Permits write permissions to the specified resource type.
    :param bool delete:
        Valid for Container and Object resource types, except for queue messages.
    :param bool list:
        Valid for Service and Container resource types only.
    :param bool add:
        Valid for the following Object resource types only: queue messages,
        table entities, and append blobs.
    :param bool create:
        Valid for the following Object resource types only: blobs and files.
        Users can create new blobs or files, but may not overwrite existing
        blobs or files.
    :param bool update:
        Valid for the following Object resource types only: queue messages and
        table entities.
    :param bool process:
        Valid for the following Object resource type only: queue messages.
    :param str _str:
        A string representing the permissions.
    '''

    def __init__(self, read=False, write=False, delete=False, list=False,
                 add=False, create=False, update=False, process=False, _str=None):
        if not _str:
            _str = ''
        self.read = read or ('r' in _str)
        self.write = write or ('w' in _str)
        self.delete = delete or ('d' in _str)
        self.list = list or ('l' in _str)
        self.add = add or ('a' in _str)
        self.create = create or ('c' in _str)
        self.update = update or ('u' in _str)
        self.process = process or ('p' in _str)

    def __or__(self, other):
        return AccountPermissions(_str=str(self) + str(other))

    def __add__(self, other):
        return AccountPermissions(_str=str(self) + str(other))

    def __str__(self):
        return (('r' if self.read else '') +
                ('w' if self.write else '') +
                ('d' if self.delete else '') +
                ('l' if self.list else '') +
                ('a' if self.add else '') +
                ('c' if self.create else '') +
                ('u' if self.update else '') +
                ('p' if self.process else ''))


AccountPermissions.READ = AccountPermissions(read=True)
AccountPermissions.WRITE = AccountPermissions(write=True)
AccountPermissions.DELETE = AccountPermissions(delete=True)
AccountPermissions.LIST = AccountPermissions(list=True)
AccountPermissions.ADD = AccountPermissions(add=True)
AccountPermissions.CREATE = AccountPermissions(create=True)
AccountPermissions.UPDATE = AccountPermissions(update=True)
AccountPermissions.PROCESS = AccountPermissions(process=True)
