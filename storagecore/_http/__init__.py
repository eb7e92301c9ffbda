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


class HTTPError(Exception):
    '''
    Represents an HTTP Exception when response status code >= 300.

    :ivar int status:
        the status code of the response
    :ivar str message:
        the message
    :ivar dict respheader:
        the returned headers
    :ivar bytes respbody:
        the body of the response
    '''

    def __init__(self, status, message, respheader, respbody):
        self.status = status
        self.respheader = respheader
        self.respbody = respbody
        Exception.__init__(self, message)


class HTTPResponse(object):
    '''
    Represents a response from an HTTP request.

    :ivar int status:
        the status code of the response
    :ivar str message:
        the message
    :ivar dict headers:
        the returned headers, lower-cased except for metadata
    :ivar bytes body:
        the body of the response. None for streamed responses until read.
    '''

    def __init__(self, status, message, headers, body, raw=None):
        self.status = status
        self.message = message
        self.headers = headers
        self.body = body
        self._raw = raw

    def iter_content(self, chunk_size):
        '''Yields the body in chunks, reading from the wire if streamed.'''
        if self._raw is None:
            if self.body:
                for i in range(0, len(self.body), chunk_size):
                    yield self.body[i:i + chunk_size]
            return

        for chunk in self._raw.iter_content(chunk_size):
            if chunk:
                yield chunk

    def read_body(self):
        if self.body is None and self._raw is not None:
            self.body = self._raw.content
        return self.body

    def close(self):
        if self._raw is not None:
            self._raw.close()


class HTTPRequest(object):
    '''
    Represents an HTTP Request.

    :ivar str protocol:
        the protocol to use, 'http' or 'https'. None uses the client default.
    :ivar str host:
        the host name to connect to
    :ivar str method:
        the method to use to connect (string such as GET, POST, PUT, etc.)
    :ivar str path:
        the uri fragment
    :ivar dict query:
        query parameters
    :ivar dict headers:
        header values
    :ivar bytes body:
        the body of the request, bytes or a readable stream.
    :ivar StorageLocation location:
        the storage location the request targets
    '''

    def __init__(self):
        self.protocol = None
        self.host = ''
        self.method = ''
        self.path = ''
        self.query = {}
        self.headers = {}
        self.body = ''
        self.location = None
