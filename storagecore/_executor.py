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
from datetime import datetime
from time import sleep

from dateutil.tz import tzutc

from ._constants import (
    DEFAULT_SOCKET_TIMEOUT,
    USER_AGENT_STRING,
    X_MS_VERSION,
)
from ._deadline import (
    _bound_socket_timeout,
    _compute_expiry,
    _has_expired,
    _now,
)
from ._deserialization import (
    _get_content_md5_header,
    _get_etag,
    _get_request_id,
    _get_response_date,
)
from ._error import (
    AzureSigningError,
    AzureStorageCancelledError,
    AzureStorageError,
    AzureStorageTimeoutError,
    _validate_not_none,
    _wrap_exception,
)
from ._location import (
    _effective_location_mode,
    _initial_location,
    _next_location,
    _sticky_location_mode,
)
from ._logger import (
    _error,
    _info,
    _warning,
)
from ._request import (
    FatalFailure,
    RetryableFailure,
    Success,
)
from ._serialization import (
    _add_date_header,
    _add_user_headers,
    _apply_location,
    _update_request,
)
from .models import (
    OperationContext,
    RequestLocationMode,
    RequestResult,
    RetryContext,
    SendingRequestEvent,
    ResponseReceivedEvent,
    RetryingEvent,
    RequestCompletedEvent,
    StorageEventHandlers,
)
from .retry import no_retry

logger = logging.getLogger(__name__)


class ExecutionEngine(object):
    '''
    Runs a :class:`~storagecore._request.StorageRequest` to completion:
    resolves the location of each attempt, builds, signs and sends the
    request, classifies the outcome and retries as the retry policy allows
    within the maximum execution time of the operation.

    :ivar ~storagecore.models.StorageEventHandlers default_events:
        Listeners notified for every operation run by this engine, before the
        listeners of the operation context.
    '''

    def __init__(self, default_events=None):
        self.default_events = default_events or StorageEventHandlers()

    def execute(self, client, target, request, retry_policy=None, operation_context=None):
        '''
        Executes request and returns the result of its post_process_response.

        :param client:
            The client holding the transport, the authentication and the
            defaults of the operation.
        :param target:
            The resource the operation acts on. Passed to build_request.
        :param ~storagecore._request.StorageRequest request:
            The operation.
        :param retry_policy:
            A retry policy object or function. Defaults to the one of the
            request options, then of the client.
        :param ~storagecore.models.OperationContext operation_context:
            The context of the operation. A new one is created if omitted.
        :raises ValueError, TypeError:
            The request could not be built. Nothing was sent.
        :raises ~storagecore._error.AzureSigningError:
            The request could not be signed. Nothing was sent.
        :raises ~storagecore._error.AzureStorageError:
            The last attempt failed and no more attempts were allowed. The
            error carries the results of all attempts.
        '''
        _validate_not_none('request', request)
        operation_context = operation_context or OperationContext()
        operation_context.initialize()

        options = request.options.apply_defaults(client)
        retry_policy = _get_retry_policy(retry_policy or options.retry_policy)
        storage_uri = request.storage_uri or client.storage_uri
        expiry = _compute_expiry(options.maximum_execution_time)

        location_mode = _effective_location_mode(
            options.location_mode, request.request_location_mode,
            _retry_to_secondary(retry_policy), storage_uri)
        if operation_context.location_lock and operation_context.host_location and \
                request.request_location_mode == RequestLocationMode.PRIMARY_OR_SECONDARY:
            location_mode = _sticky_location_mode(operation_context.host_location)
        storage_uri.validate_location_mode(location_mode)

        state = request.initial_state.copy(
            location_mode=location_mode,
            current_location=_initial_location(location_mode, storage_uri))

        retry = retry_policy.retry if hasattr(retry_policy, 'retry') else retry_policy
        last_error = None

        while True:
            self._check_deadline_and_cancellation(expiry, operation_context, last_error)

            http_request, socket_timeout = self._prepare_request(
                client, target, request, state, options, expiry, operation_context, last_error)

            self._fire(operation_context, 'sending_request',
                       SendingRequestEvent(operation_context, http_request, state.retry_count))
            _info(logger, operation_context,
                  'Outgoing request: Location=%s, Method=%s, Path=%s, Query=%s, Headers=%s.',
                  state.current_location, http_request.method, http_request.path,
                  _redact_query(http_request.query), _redact_headers(http_request.headers))

            outcome, response, value = self._send(
                client, request, http_request, state, socket_timeout, operation_context)

            if isinstance(outcome, Success):
                operation_context.host_location = state.current_location
                _info(logger, operation_context, 'Operation completed: Location=%s, HTTP Status Code=%s.',
                      state.current_location, response.status)
                return value

            error = outcome.error
            last_error = error

            if isinstance(outcome, FatalFailure) or isinstance(error, AzureSigningError):
                self._raise_terminal(error, operation_context, 'The operation failed with a fatal error')

            if getattr(error, 'error_code', None) in request.expected_errors:
                _info(logger, operation_context, 'Operation returned an expected error: ErrorCode=%s.',
                      error.error_code)
                _attach_results(error, operation_context)
                raise error

            retry_context = RetryContext(
                count=state.retry_count,
                request=http_request,
                response=response,
                exception=error,
                location_mode=state.current_location,
                storage_uri=storage_uri,
                operation_context=operation_context)

            _info(logger, operation_context,
                  'Operation failed: checking if the operation should be retried. '
                  'Current retry count=%s, HTTP status code=%s, Exception=%s.',
                  state.retry_count, retry_context.status_code, error)

            retry_interval = retry(retry_context)
            if retry_interval is None:
                self._raise_terminal(error, operation_context, 'Retry policy did not allow for a retry')

            if _has_expired(expiry, retry_interval):
                _error(logger, operation_context,
                       'Operation cannot be retried: Retry interval=%s exceeds the maximum execution time.',
                       retry_interval)
                timeout_error = AzureStorageTimeoutError(inner_exception=error)
                _attach_results(timeout_error, operation_context)
                raise timeout_error

            _warning(logger, operation_context, 'Retry policy is allowing a retry: Retry count=%s, Interval=%s.',
                     state.retry_count, retry_interval)
            self._fire(operation_context, 'retrying',
                       RetryingEvent(operation_context, http_request, retry_context))

            if request.recovery_action is not None:
                state = request.recovery_action(state, operation_context)
            state = state.next_attempt()
            state.current_location = _next_location(state.location_mode, state.current_location, storage_uri)

            self._wait(retry_interval, operation_context)

    def _prepare_request(self, client, target, request, state, options, expiry, operation_context,
                         last_error=None):
        '''
        Builds and signs the request of an attempt. Any failure here is
        raised as is: no request result is recorded and nothing is sent.
        '''
        try:
            http_request = request.build_request(client, target, state, operation_context)
            _apply_location(http_request, request.storage_uri or client.storage_uri, state.current_location)

            if request.set_headers is not None:
                request.set_headers(http_request, state, operation_context)
            _add_user_headers(http_request, operation_context.user_headers)

            _update_request(http_request, operation_context.client_request_id,
                            getattr(client, 'x_ms_version', X_MS_VERSION),
                            getattr(client, 'user_agent_string', USER_AGENT_STRING),
                            options.timeout)

            # date and auth go last so the signature covers every header
            _add_date_header(http_request)
            request.sign_request(http_request, client, operation_context)

            socket_timeout = options.socket_timeout
            if socket_timeout is None:
                socket_timeout = DEFAULT_SOCKET_TIMEOUT
            socket_timeout = _bound_socket_timeout(socket_timeout, expiry)
        except (ValueError, TypeError, AzureSigningError) as ex:
            _error(logger, operation_context, 'The request could not be built: %s', ex)
            raise
        except AzureStorageError as ex:
            if isinstance(ex, AzureStorageTimeoutError) and ex.inner_exception is None:
                ex.inner_exception = last_error
            _attach_results(ex, operation_context)
            raise

        return http_request, socket_timeout

    def _send(self, client, request, http_request, state, socket_timeout, operation_context):
        '''
        Sends one attempt and records its RequestResult.

        :return: (outcome, response, value)
        '''
        start_time = datetime.now(tzutc())
        started = _now()
        response = None
        value = None

        try:
            response = client._httpclient.perform_request(http_request, socket_timeout, request.stream)

            self._fire(operation_context, 'response_received',
                       ResponseReceivedEvent(operation_context, http_request, response))
            _info(logger, operation_context, 'Receiving Response: HTTP Status Code=%s, Message=%s, Headers=%s.',
                  response.status, response.message, response.headers)

            outcome = request.pre_process_response(response, state, operation_context)
            if isinstance(outcome, Success):
                value = request.post_process_response(response, state, operation_context, outcome.value)
        except AzureStorageError as ex:
            outcome = RetryableFailure(ex)
        except Exception as ex:
            # transport errors and any failure while reading the body
            outcome = RetryableFailure(_wrap_exception(ex))
        finally:
            if response is not None and request.stream:
                response.close()

        operation_context._add_client_time(_now() - started)

        error = None if isinstance(outcome, Success) else outcome.error
        request_result = RequestResult(
            target_location=state.current_location,
            start_time=start_time,
            stop_time=datetime.now(tzutc()),
            status_code=getattr(error, 'status_code', None) or (response.status if response is not None else None),
            status_message=response.message if response is not None else None,
            service_request_id=_get_request_id(response),
            etag=_get_etag(response),
            content_md5=_get_content_md5_header(response),
            request_date=_get_response_date(response),
            exception=error)
        operation_context.append_request_result(request_result)

        self._fire(operation_context, 'request_completed',
                   RequestCompletedEvent(operation_context, http_request, response, request_result))

        return outcome, response, value

    def _check_deadline_and_cancellation(self, expiry, operation_context, last_error):
        token = operation_context.cancellation_token
        if token is not None and token.is_cancelled:
            _error(logger, operation_context, 'Operation was cancelled.')
            cancelled = AzureStorageCancelledError()
            _attach_results(cancelled, operation_context)
            raise cancelled

        if _has_expired(expiry):
            _error(logger, operation_context, 'Operation exceeded the maximum execution time.')
            timeout_error = AzureStorageTimeoutError(inner_exception=last_error)
            _attach_results(timeout_error, operation_context)
            raise timeout_error

    def _wait(self, retry_interval, operation_context):
        token = operation_context.cancellation_token
        if token is None:
            sleep(retry_interval)
        elif token.wait(retry_interval):
            _error(logger, operation_context, 'Operation was cancelled while waiting to retry.')
            cancelled = AzureStorageCancelledError()
            _attach_results(cancelled, operation_context)
            raise cancelled

    def _fire(self, operation_context, name, event):
        getattr(self.default_events, name).fire(event)
        getattr(operation_context, name).fire(event)

    def _raise_terminal(self, error, operation_context, reason):
        _error(logger, operation_context, '%s: HTTP status code=%s, Exception=%s.',
               reason, getattr(error, 'status_code', None), error)
        _attach_results(error, operation_context)
        raise error


def _get_retry_policy(retry_policy):
    if retry_policy is None:
        return no_retry
    if hasattr(retry_policy, 'create_instance'):
        return retry_policy.create_instance()
    return retry_policy


def _retry_to_secondary(retry_policy):
    # policies may be passed as their bound retry method
    owner = getattr(retry_policy, '__self__', retry_policy)
    return getattr(owner, 'retry_to_secondary', False)


def _attach_results(error, operation_context):
    error.request_results = operation_context.request_results


def _redact_headers(headers):
    return dict((name, '*****' if name.lower() == 'authorization' else value)
                for name, value in headers.items())


def _redact_query(query):
    return dict((name, '*****' if name == 'sig' else value) for name, value in query.items())
