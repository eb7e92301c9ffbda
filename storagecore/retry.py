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
import random

from .models import StorageLocation


class _Retry(object):
    '''
    The base class for Exponential and Linear retries containing shared code.
    Policies hold configuration only; the retry count lives on the
    RetryContext handed to retry().
    '''

    def __init__(self, max_attempts, retry_to_secondary):
        '''
        Constructs a base retry object.

        :param int max_attempts:
            The maximum number of retry attempts.
        :param bool retry_to_secondary:
            Whether the request should be retried to secondary, if able. This should
            only be enabled if RA-GRS accounts are used and potentially stale data
            can be handled.
        '''
        self.max_attempts = max_attempts
        self.retry_to_secondary = retry_to_secondary

    def _should_retry(self, context):
        '''
        A function which determines whether or not to retry.

        :param ~storagecore.models.RetryContext context:
            The retry context. This contains the request, response, and other data
            which can be used to determine whether or not to retry.
        :return:
            A boolean indicating whether or not to retry the request.
        :rtype: bool
        '''
        # If max attempts are reached, do not retry.
        if context.count >= self.max_attempts:
            return False

        status = context.status_code

        if status is None:
            # No response was received: connection reset, socket timeout
            # and the like. These are transient.
            return True
        elif 200 <= status < 300:
            # This method is called after a successful response, meaning we failed
            # during the response body download or parsing. So, success codes should
            # be retried.
            return True
        elif 300 <= status < 500:
            # An exception occured, but in most cases it was expected. Examples could
            # include a 409 Conflict or 412 Precondition Failed.
            if status == 404 and context.location_mode == StorageLocation.SECONDARY:
                # Response code 404 should be retried if secondary was used as it
                # may not have propagated yet.
                return True
            if status == 408:
                # Response code 408 is a timeout and should be retried.
                return True
            return False
        elif status >= 500:
            # Response codes above 500 with the exception of 501 Not Implemented and
            # 505 Version Not Supported indicate a server issue and should be retried.
            if status == 501 or status == 505:
                return False
            return True
        else:
            # If something else happened, it's unexpected. Retry.
            return True

    def _retry(self, context, backoff):
        '''
        A function which determines whether and how to retry.

        :param ~storagecore.models.RetryContext context:
            The retry context.
        :param function() backoff:
            A function which returns the backoff time if a retry is to be performed.
        :return:
            An integer indicating how long to wait before retrying the request,
            or None to indicate no retry should be performed.
        :rtype: int or None
        '''
        if self._should_retry(context):
            return backoff(context)
        return None

    def create_instance(self):
        '''
        A copy of this policy for one operation. Subclasses keeping state
        between calls to retry() must make sure the copy does not share it.
        '''
        return copy.copy(self)


class ExponentialRetry(_Retry):
    '''
    Exponential retry.

    The wait before retry n (counting from 0) is
    min_backoff + (2**n - 1) * a random delta in [0.8, 1.2] * initial_backoff,
    capped at max_backoff. With the defaults the waits are about 3, 33 and
    90 seconds.
    '''

    def __init__(self, initial_backoff=30, min_backoff=3, max_backoff=90, max_attempts=3,
                 retry_to_secondary=False):
        '''
        Constructs an Exponential retry object.

        :param int initial_backoff:
            The delta backoff, in seconds, which is randomized and multiplied
            by 2**n - 1.
        :param int min_backoff:
            The minimum wait between two attempts, in seconds.
        :param int max_backoff:
            The maximum wait between two attempts, in seconds.
        :param int max_attempts:
            The maximum number of retry attempts.
        :param bool retry_to_secondary:
            Whether the request should be retried to secondary, if able. This should
            only be enabled if RA-GRS accounts are used and potentially stale data
            can be handled.
        '''
        if max_backoff < min_backoff:
            raise ValueError(
                'max backoff {} less than min backoff {}'.format(max_backoff, min_backoff))
        self.initial_backoff = initial_backoff
        self.min_backoff = min_backoff
        self.max_backoff = max_backoff
        super(ExponentialRetry, self).__init__(max_attempts, retry_to_secondary)

    def retry(self, context):
        '''
        A function which determines whether and how to retry.

        :param ~storagecore.models.RetryContext context:
            The retry context. This contains the request, response, and other data
            which can be used to determine whether or not to retry.
        :return:
            The number of seconds to wait before retrying the request,
            or None to indicate no retry should be performed.
        :rtype: float or None
        '''
        return self._retry(context, self._backoff)

    def _backoff(self, context):
        delta = random.uniform(0.8 * self.initial_backoff, 1.2 * self.initial_backoff)
        increment = (pow(2, context.count) - 1) * delta
        return min(self.max_backoff, self.min_backoff + increment)


class LinearRetry(_Retry):
    '''
    Linear retry.
    '''

    def __init__(self, backoff=30, max_attempts=3, retry_to_secondary=False):
        '''
        Constructs a Linear retry object.

        :param int backoff:
            The backoff interval, in seconds, between retries.
        :param int max_attempts:
            The maximum number of retry attempts.
        :param bool retry_to_secondary:
            Whether the request should be retried to secondary, if able. This should
            only be enabled if RA-GRS accounts are used and potentially stale data
            can be handled.
        '''
        self.backoff = backoff
        super(LinearRetry, self).__init__(max_attempts, retry_to_secondary)

    def retry(self, context):
        '''
        A function which determines whether and how to retry.

        :param ~storagecore.models.RetryContext context:
            The retry context. This contains the request, response, and other data
            which can be used to determine whether or not to retry.
        :return:
            The number of seconds to wait before retrying the request,
            or None to indicate no retry should be performed.
        :rtype: float or None
        '''
        return self._retry(context, self._backoff)

    def _backoff(self, context):
        return self.backoff


def no_retry(context):
    '''
    Specifies never to retry.

    :param ~storagecore.models.RetryContext context:
        The retry context.
    :return:
        Always returns None to indicate never to retry.
    :rtype: None
    '''
    return None
