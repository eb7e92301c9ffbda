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
import platform

__author__ = 'Microsoft Corp. <ptvshelp@microsoft.com>'
__version__ = '0.1.0'

# x-ms-version for storage service.
X_MS_VERSION = '2017-04-17'

# UserAgent string sample: 'Azure-Storage/0.1.0 (Python CPython 3.11.4; Linux 6.1)'
USER_AGENT_STRING = 'Azure-Storage/{} (Python {} {}; {} {})'.format(
    __version__,
    platform.python_implementation(),
    platform.python_version(),
    platform.system(),
    platform.release())

DEFAULT_PROTOCOL = 'https'

# Socket timeout in seconds applied to each physical attempt
DEFAULT_SOCKET_TIMEOUT = 20

_CLIENT_REQUEST_ID_HEADER = 'x-ms-client-request-id'
_REQUEST_ID_HEADER = 'x-ms-request-id'
_ERROR_CODE_HEADER = 'x-ms-error-code'
_CONTENT_MD5_HEADER = 'content-md5'
_RANGE_CONTENT_MD5_HEADER = 'x-ms-range-get-content-md5'

# Transactional MD5 is only computed by the service for ranges up to 4MB
_MAX_RANGE_CONTENT_MD5_SIZE = 4 * 1024 * 1024

# Size of each read while streaming a response body
_DOWNLOAD_CHUNK_SIZE = 64 * 1024
