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
from azure.common import (
    AzureException,
    AzureHttpError,
)

_ERROR_VALUE_NONE = '{0} should not be None.'
_ERROR_VALUE_NEGATIVE = '{0} should not be negative.'
_ERROR_VALUE_SHOULD_BE_BYTES = '{0} should be of type bytes.'
_ERROR_VALUE_SHOULD_BE_SEEKABLE_STREAM = '{0} should be a seekable file-like/io.IOBase type stream object.'
_ERROR_VALUE_SHOULD_BE_STREAM = '{0} should be a file-like/io.IOBase type stream object with a read method.'
_ERROR_STORAGE_MISSING_INFO = \
    'You need to provide an account name and either an account_key or sas_token when creating a storage service.'
_ERROR_ACCOUNT_NAME_MISSING = 'An account name is required to sign requests with a shared key.'
_ERROR_INVALID_BASE64_KEY = 'The account key is not a valid base64 encoded string.'
_ERROR_START_END_NEEDED_FOR_MD5 = \
    'Both end_range and start_range need to be specified ' + \
    'for getting content MD5.'
_ERROR_RANGE_TOO_LARGE_FOR_MD5 = \
    'Getting content MD5 for a range greater than 4MB ' + \
    'is not supported.'
_ERROR_PRIMARY_ONLY = 'This operation can only be executed against the primary storage location.'
_ERROR_SECONDARY_ONLY = 'This operation can only be executed against the secondary storage location.'
_ERROR_MISSING_PRIMARY_URI = 'The primary URI is not specified for the requested location mode.'
_ERROR_MISSING_SECONDARY_URI = 'The secondary URI is not specified for the requested location mode.'
_ERROR_OPERATION_TIMED_OUT = \
    'The client could not finish the operation within specified maximum execution timeout.'
_ERROR_OPERATION_CANCELLED = 'The operation was cancelled by the caller.'
_ERROR_MD5_MISMATCH = \
    'MD5 mismatch. Expected value is \'{0}\', computed value is \'{1}\'.'
_ERROR_MISSING_MD5 = \
    'ContentMD5 header is missing in the response although transactional MD5 validation was requested.'
_ERROR_CONTENT_LENGTH_MISMATCH = \
    'An incorrect number of bytes was read from the connection. Expected {0} bytes, received {1} bytes.'

# Service error code strings used for client side failures
_OPERATION_TIMED_OUT = 'OperationTimedOut'
_OPERATION_CANCELLED = 'OperationCancelled'
_INVALID_MD5 = 'InvalidMd5'
_MISSING_MD5_HEADER = 'MissingContentMD5Header'
_CONTENT_LENGTH_MISMATCH = 'ContentLengthMismatch'


class AzureSigningError(AzureException):
    '''
    Represents a fatal error when attempting to sign a request.
    In general, the cause of this exception is user error. For example, the
    given account key is not valid. Requests are never sent or retried once
    signing fails.
    '''
    pass


class AzureStorageError(AzureHttpError):
    '''
    The translated error surfaced to callers once an operation can no longer
    be retried.

    :ivar int status_code:
        The HTTP status of the last attempt. None if no response was received.
        306 marks failures detected on the client side.
    :ivar str error_code:
        The service error code, either from the x-ms-error-code header, the
        error body, or one of the client side codes (e.g. OperationTimedOut).
    :ivar dict extended_error_information:
        Any additional elements returned in a structured error body.
    :ivar list request_results:
        The :class:`~storagecore.models.RequestResult` history of the operation.
    :ivar Exception inner_exception:
        The underlying exception, if the failure was not an HTTP error.
    '''

    def __new__(cls, *args, **kwargs):
        # AzureHttpError.__new__ requires a positional status code and swaps
        # the class for 404/409; translated errors keep their own type.
        return AzureException.__new__(cls, *args)

    def __init__(self, message, status_code=None, error_code=None,
                 extended_error_information=None, inner_exception=None):
        super(AzureStorageError, self).__init__(message, status_code)
        self.error_code = error_code
        self.extended_error_information = extended_error_information or {}
        self.inner_exception = inner_exception
        self.request_results = []


class AzureStorageTimeoutError(AzureStorageError):
    '''The maximum execution time of an operation has elapsed.'''

    def __init__(self, inner_exception=None):
        super(AzureStorageTimeoutError, self).__init__(
            _ERROR_OPERATION_TIMED_OUT,
            status_code=306,
            error_code=_OPERATION_TIMED_OUT,
            inner_exception=inner_exception)


class AzureStorageCancelledError(AzureStorageError):
    '''The operation was cancelled through its cancellation token.'''

    def __init__(self):
        super(AzureStorageCancelledError, self).__init__(
            _ERROR_OPERATION_CANCELLED,
            status_code=306,
            error_code=_OPERATION_CANCELLED)


class AzureIntegrityError(AzureStorageError):
    '''Downloaded data failed length or MD5 validation.'''

    def __init__(self, message, error_code):
        super(AzureIntegrityError, self).__init__(
            message,
            status_code=306,
            error_code=error_code)


def _translate_http_error(http_error):
    ''' Converts an HTTPError into the AzureStorageError surfaced to callers.'''
    # Imported here as deserialization depends on the error strings above
    from ._deserialization import _parse_error_body

    message = str(http_error)
    error_code, details = _parse_error_body(http_error.respheader, http_error.respbody)

    if error_code:
        message += ' ErrorCode: ' + error_code

    if http_error.respbody:
        body = http_error.respbody
        if isinstance(body, bytes):
            body = body.decode('utf-8-sig', 'replace')
        message += '\n' + body

    return AzureStorageError(message, http_error.status, error_code, details)


def _wrap_exception(ex, desired_type=AzureStorageError):
    msg = ''
    if len(ex.args) > 0:
        msg = str(ex.args[0])
    wrapped = desired_type('{}: {}'.format(ex.__class__.__name__, msg))
    wrapped.inner_exception = ex
    return wrapped


def _validate_not_none(param_name, param):
    if param is None:
        raise ValueError(_ERROR_VALUE_NONE.format(param_name))


def _validate_not_negative(param_name, param):
    if param is not None and param < 0:
        raise ValueError(_ERROR_VALUE_NEGATIVE.format(param_name))


def _validate_type_bytes(param_name, param):
    if not isinstance(param, bytes):
        raise TypeError(_ERROR_VALUE_SHOULD_BE_BYTES.format(param_name))


def _validate_stream(param_name, param):
    if not hasattr(param, 'read'):
        raise TypeError(_ERROR_VALUE_SHOULD_BE_STREAM.format(param_name))

