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
from time import monotonic

from ._error import (
    AzureStorageTimeoutError,
    _validate_not_negative,
)


def _now():
    return monotonic()


def _compute_expiry(maximum_execution_time):
    '''
    Converts a relative execution budget (seconds) into an absolute expiry on
    the monotonic clock. None means the operation may run forever.
    '''
    if maximum_execution_time is None:
        return None

    _validate_not_negative('maximum_execution_time', maximum_execution_time)
    return _now() + maximum_execution_time


def _has_expired(expiry, additional_interval=0):
    '''
    True if the budget would be exceeded now, or after waiting
    additional_interval more seconds.
    '''
    if expiry is None:
        return False
    return expiry < _now() + additional_interval


def _get_remaining_timeout(expiry):
    '''
    Seconds left before expiry, or None for an infinite budget. Raises
    AzureStorageTimeoutError rather than returning a zero or negative value.
    '''
    if expiry is None:
        return None

    remaining = expiry - _now()
    if remaining <= 0:
        raise AzureStorageTimeoutError()
    return remaining


def _bound_socket_timeout(socket_timeout, expiry):
    '''
    Derives the transport timeout of the next attempt so a single attempt
    cannot outlive the remaining budget. socket_timeout may be a number or a
    (connect, read) tuple as accepted by requests.
    '''
    remaining = _get_remaining_timeout(expiry)
    if remaining is None:
        return socket_timeout

    if socket_timeout is None:
        return remaining

    if isinstance(socket_timeout, tuple):
        return tuple(remaining if t is None else min(t, remaining) for t in socket_timeout)

    return min(socket_timeout, remaining)
