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
import unittest

from storagecore import (
    LocationMode,
    RequestLocationMode,
    StorageLocation,
    StorageUri,
)
from storagecore._location import (
    _effective_location_mode,
    _initial_location,
    _next_location,
    _sticky_location_mode,
)
from tests.testcase import (
    FakeSession,
    StorageTestCase,
    make_response,
)

PRIMARY_URI = 'https://storagename.blob.core.windows.net'
SECONDARY_URI = 'https://storagename-secondary.blob.core.windows.net'


# ------------------------------------------------------------------------------
class StorageLocationTest(StorageTestCase):

    def setUp(self):
        super(StorageLocationTest, self).setUp()
        self.both = StorageUri(PRIMARY_URI, SECONDARY_URI)
        self.primary_only = StorageUri(PRIMARY_URI)

    # --Test cases for effective location mode -----------------------------
    def test_primary_only_operation(self):
        self.assertEqual(
            LocationMode.PRIMARY_ONLY,
            _effective_location_mode(LocationMode.PRIMARY_THEN_SECONDARY, RequestLocationMode.PRIMARY_ONLY))
        self.assertEqual(
            LocationMode.PRIMARY_ONLY,
            _effective_location_mode(LocationMode.SECONDARY_THEN_PRIMARY, RequestLocationMode.PRIMARY_ONLY))

        with self.assertRaises(ValueError):
            _effective_location_mode(LocationMode.SECONDARY_ONLY, RequestLocationMode.PRIMARY_ONLY)

    def test_secondary_only_operation(self):
        self.assertEqual(
            LocationMode.SECONDARY_ONLY,
            _effective_location_mode(LocationMode.PRIMARY_THEN_SECONDARY, RequestLocationMode.SECONDARY_ONLY))

        with self.assertRaises(ValueError):
            _effective_location_mode(LocationMode.PRIMARY_ONLY, RequestLocationMode.SECONDARY_ONLY)

    def test_operation_on_either_location(self):
        for mode in (LocationMode.PRIMARY_ONLY, LocationMode.PRIMARY_THEN_SECONDARY,
                     LocationMode.SECONDARY_ONLY, LocationMode.SECONDARY_THEN_PRIMARY):
            self.assertEqual(mode, _effective_location_mode(mode, RequestLocationMode.PRIMARY_OR_SECONDARY))

        self.assertEqual(LocationMode.PRIMARY_ONLY,
                         _effective_location_mode(None, RequestLocationMode.PRIMARY_OR_SECONDARY))

    def test_retry_to_secondary_upgrade(self):
        self.assertEqual(
            LocationMode.PRIMARY_THEN_SECONDARY,
            _effective_location_mode(LocationMode.PRIMARY_ONLY, RequestLocationMode.PRIMARY_OR_SECONDARY,
                                     True, self.both))

        # no secondary to retry to
        self.assertEqual(
            LocationMode.PRIMARY_ONLY,
            _effective_location_mode(LocationMode.PRIMARY_ONLY, RequestLocationMode.PRIMARY_OR_SECONDARY,
                                     True, self.primary_only))

        # writes are never upgraded
        self.assertEqual(
            LocationMode.PRIMARY_ONLY,
            _effective_location_mode(LocationMode.PRIMARY_ONLY, RequestLocationMode.PRIMARY_ONLY,
                                     True, self.both))

    # --Test cases for location selection ----------------------------------
    def test_initial_location(self):
        self.assertEqual(StorageLocation.PRIMARY,
                         _initial_location(LocationMode.PRIMARY_ONLY, self.both))
        self.assertEqual(StorageLocation.PRIMARY,
                         _initial_location(LocationMode.PRIMARY_THEN_SECONDARY, self.both))
        self.assertEqual(StorageLocation.SECONDARY,
                         _initial_location(LocationMode.SECONDARY_ONLY, self.both))
        self.assertEqual(StorageLocation.SECONDARY,
                         _initial_location(LocationMode.SECONDARY_THEN_PRIMARY, self.both))

    def test_initial_location_without_secondary(self):
        self.assertEqual(StorageLocation.PRIMARY,
                         _initial_location(LocationMode.SECONDARY_THEN_PRIMARY, self.primary_only))

        with self.assertRaises(ValueError):
            _initial_location(LocationMode.SECONDARY_ONLY, self.primary_only)

    def test_locations_alternate(self):
        for mode, first, second in (
                (LocationMode.PRIMARY_THEN_SECONDARY, StorageLocation.PRIMARY, StorageLocation.SECONDARY),
                (LocationMode.SECONDARY_THEN_PRIMARY, StorageLocation.SECONDARY, StorageLocation.PRIMARY)):
            location = _initial_location(mode, self.both)
            seen = [location]
            for _ in range(4):
                location = _next_location(mode, location, self.both)
                seen.append(location)

            self.assertEqual([first, second, first, second, first], seen)

    def test_single_location_modes_never_move(self):
        self.assertEqual(StorageLocation.PRIMARY,
                         _next_location(LocationMode.PRIMARY_ONLY, StorageLocation.PRIMARY, self.both))
        self.assertEqual(StorageLocation.SECONDARY,
                         _next_location(LocationMode.SECONDARY_ONLY, StorageLocation.SECONDARY, self.both))

    def test_no_alternation_without_secondary(self):
        self.assertEqual(
            StorageLocation.PRIMARY,
            _next_location(LocationMode.PRIMARY_THEN_SECONDARY, StorageLocation.PRIMARY, self.primary_only))

    def test_sticky_location_mode(self):
        self.assertEqual(LocationMode.PRIMARY_ONLY, _sticky_location_mode(StorageLocation.PRIMARY))
        self.assertEqual(LocationMode.SECONDARY_ONLY, _sticky_location_mode(StorageLocation.SECONDARY))

    # --Test cases for storage uri ------------------------------------------
    def test_storage_uri(self):
        self.assertEqual(PRIMARY_URI, self.both.get_uri(StorageLocation.PRIMARY))
        self.assertEqual(SECONDARY_URI, self.both.get_uri(StorageLocation.SECONDARY))
        self.assertFalse(self.primary_only.has_location(StorageLocation.SECONDARY))
        self.assertEqual(StorageUri(PRIMARY_URI, SECONDARY_URI), self.both)
        self.assertNotEqual(self.primary_only, self.both)

        with self.assertRaises(ValueError):
            StorageUri(None, None)

        with self.assertRaises(ValueError):
            self.primary_only.validate_location_mode(LocationMode.SECONDARY_ONLY)

    # --Test cases through the client ---------------------------------------
    def test_write_with_secondary_only_client_fails_before_sending(self):
        # Arrange
        session = FakeSession(make_response(201))
        client = self._create_storage_client(session)
        client.location_mode = LocationMode.SECONDARY_ONLY

        # Act
        with self.assertRaises(ValueError):
            client.upload_from_bytes('container/blob', b'abc')

        # Assert
        self.assertEqual([], session.sent)

    def test_secondary_only_without_secondary_endpoint(self):
        session = FakeSession(make_response(200))
        client = self._create_storage_client(session, secondary=False)
        client.location_mode = LocationMode.SECONDARY_ONLY

        with self.assertRaises(ValueError):
            client.get_properties('container/blob')
        self.assertEqual([], session.sent)

    def test_make_url(self):
        client = self._create_storage_client()

        self.assertEqual('https://storagename.blob.core.windows.net/container/blob',
                         client.make_url('container/blob'))
        self.assertEqual('https://storagename-secondary.blob.core.windows.net/container/blob',
                         client.make_url('container/blob', StorageLocation.SECONDARY))
        self.assertEqual('https://storagename.blob.core.windows.net/container/blob?sv=1&sig=x',
                         client.make_url('/container/blob', sas_token='?sv=1&sig=x'))


# ------------------------------------------------------------------------------
if __name__ == '__main__':
    unittest.main()
