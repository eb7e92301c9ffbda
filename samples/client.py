# coding: utf-8

# -------------------------------------------------------------------------
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
# --------------------------------------------------------------------------
from datetime import datetime, timedelta

import requests

from storagecore import (
    AccountPermissions,
    CancellationToken,
    LocationMode,
    OperationContext,
    RequestOptions,
    ResourceTypes,
    Services,
    SharedAccessSignature,
    StorageClient,
)
from storagecore.retry import (
    ExponentialRetry,
    LinearRetry,
    no_retry,
)


class ClientSamples():
    def __init__(self, account_name, account_key):
        self.account_name = account_name
        self.account_key = account_key

    def _client(self, **kwargs):
        return StorageClient(account_name=self.account_name, account_key=self.account_key,
                             primary_endpoint=self.account_name + '.blob.core.windows.net',
                             secondary_endpoint=self.account_name + '-secondary.blob.core.windows.net',
                             **kwargs)

    def run_all_samples(self):
        self.retries()
        self.read_from_secondary()
        self.timeouts()
        self.request_session()
        self.proxy()
        self.events()
        self.cancellation()
        self.sas()

    def retries(self):
        # By default, retries are performed with an exponential backoff.
        # Any custom retry logic may be used by simply defining a retry function,
        # but several easy pre-written options are available with modifiable settings.
        client = self._client()

        # Use an exponential retry, but modify the backoff settings
        client.retry = ExponentialRetry(initial_backoff=10, max_backoff=60, max_attempts=5)

        # Use a default linear retry policy instead
        client.retry = LinearRetry()

        # Turn off retries
        client.retry = no_retry

        # Or retry only server busy errors, once, after two seconds
        def retry_server_busy(context):
            if context.count == 0 and context.status_code == 503:
                return 2
            return None

        client.retry = retry_server_busy

    def read_from_secondary(self):
        # If you are using RA-GRS accounts, you may want to enable reading from the
        # secondary endpoint. Note that your application will have to handle this
        # data potentially being out of date as the secondary may be behind the
        # primary.
        client = self._client()

        # Reads go to secondary first and alternate on retry. Writes continue to
        # go to primary as they are not allowed on secondary.
        client.location_mode = LocationMode.SECONDARY_THEN_PRIMARY

        # Alternatively keep primary as the default and let the retry policy
        # fall back to secondary when primary fails.
        client.location_mode = LocationMode.PRIMARY_ONLY
        client.retry = ExponentialRetry(retry_to_secondary=True)

        # Operations sharing a locked context keep reading from the location
        # which served the first of them.
        context = OperationContext(location_lock=True)
        client.get_properties('mycontainer/myblob', operation_context=context)
        client.download_to_bytes('mycontainer/myblob', operation_context=context)

    def timeouts(self):
        client = self._client(socket_timeout=30)

        # The whole operation, retries and backoff included, must finish in a minute
        client.maximum_execution_time = 60

        # Per operation overrides, including a (connect, read) socket timeout
        options = RequestOptions(maximum_execution_time=10, socket_timeout=(5, 20), timeout=5)
        client.get_properties('mycontainer/myblob', options=options)

    def request_session(self):
        # A custom request session may be used to set special network options
        session = requests.Session()
        client = self._client(request_session=session)

        # Set later
        client = self._client()
        client.request_session = session

    def proxy(self):
        # Unauthenticated
        client = self._client()
        client.set_proxy('127.0.0.1', '8888')

        # Authenticated
        client = self._client()
        proxy_user = '1'
        proxy_password = '1'
        client.set_proxy('127.0.0.1', '8888', user=proxy_user, password=proxy_password)

    def events(self):
        # Listeners on the client see every operation, listeners on an
        # operation context only the operations it is passed to.
        client = self._client()

        def response_received(event):
            status = event.response.status
            headers = event.response.headers

        client.events.response_received.add_listener(response_received)

        context = OperationContext(user_headers={'x-ms-meta-source': 'samples'})

        def retrying(event):
            print('Retrying after {0}'.format(event.retry_context.status_code))

        context.retrying.add_listener(retrying)
        client.get_properties('mycontainer/myblob', operation_context=context)

        # Every physical request of the operation is recorded
        for result in context.request_results:
            print(result.target_location, result.status_code, result.service_request_id)

        client.events.response_received.remove_listener(response_received)

    def cancellation(self):
        # The token is checked before each attempt and while waiting to retry.
        # Call cancel() from another thread to stop the operation.
        client = self._client()
        token = CancellationToken()
        context = OperationContext(cancellation_token=token)
        client.download_to_bytes('mycontainer/myblob', operation_context=context)

    def sas(self):
        sas = SharedAccessSignature(self.account_name, self.account_key)
        token = sas.generate_account(Services.BLOB, ResourceTypes.OBJECT, AccountPermissions.READ,
                                     datetime.utcnow() + timedelta(hours=1))

        # A client holding only the token
        client = StorageClient(sas_token=token,
                               primary_endpoint=self.account_name + '.blob.core.windows.net')
        client.download_to_bytes('mycontainer/myblob')

        # Or a url to hand to someone else
        url = client.make_url('mycontainer/myblob')
