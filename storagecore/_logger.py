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


def _client_request_id_prefix(operation_context):
    if operation_context is None:
        return 'Client-Request-ID=*:'
    return 'Client-Request-ID={0}:'.format(operation_context.client_request_id)


def _should_log(logger, operation_context, level):
    if operation_context is not None and operation_context.log_level is not None:
        if level < operation_context.log_level:
            return False
    return logger.isEnabledFor(level)


def _log(logger, operation_context, level, msg, *args):
    '''
    Logs msg prefixed with the operation's client request id. The operation
    context log level, when set, filters out anything less severe.
    '''
    if not _should_log(logger, operation_context, level):
        return

    # keep each entry on a single line
    args = tuple(str(arg).replace('\n', '') if isinstance(arg, (str, dict, list)) else arg
                 for arg in args)
    logger.log(level, '%s ' + msg, _client_request_id_prefix(operation_context), *args)


def _debug(logger, operation_context, msg, *args):
    _log(logger, operation_context, logging.DEBUG, msg, *args)


def _info(logger, operation_context, msg, *args):
    _log(logger, operation_context, logging.INFO, msg, *args)


def _warning(logger, operation_context, msg, *args):
    _log(logger, operation_context, logging.WARNING, msg, *args)


def _error(logger, operation_context, msg, *args):
    _log(logger, operation_context, logging.ERROR, msg, *args)
