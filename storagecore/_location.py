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
from ._error import (
    _ERROR_MISSING_PRIMARY_URI,
    _ERROR_MISSING_SECONDARY_URI,
    _ERROR_PRIMARY_ONLY,
    _ERROR_SECONDARY_ONLY,
)
from .models import (
    LocationMode,
    RequestLocationMode,
    StorageLocation,
)


def _effective_location_mode(location_mode, request_location_mode, retry_to_secondary=False,
                             storage_uri=None):
    '''
    Combines the configured LocationMode with what the operation permits.
    An operation restricted to one location always wins over the configured
    mode; a configuration that asks for the other location only is an error.

    retry_to_secondary upgrades PRIMARY_ONLY to PRIMARY_THEN_SECONDARY for
    operations that may be read from the secondary, if one exists.
    '''
    location_mode = location_mode or LocationMode.PRIMARY_ONLY

    if request_location_mode == RequestLocationMode.PRIMARY_ONLY:
        if location_mode == LocationMode.SECONDARY_ONLY:
            raise ValueError(_ERROR_PRIMARY_ONLY)
        return LocationMode.PRIMARY_ONLY

    if request_location_mode == RequestLocationMode.SECONDARY_ONLY:
        if location_mode == LocationMode.PRIMARY_ONLY:
            raise ValueError(_ERROR_SECONDARY_ONLY)
        return LocationMode.SECONDARY_ONLY

    if retry_to_secondary and location_mode == LocationMode.PRIMARY_ONLY and \
            storage_uri is not None and storage_uri.secondary_uri is not None:
        return LocationMode.PRIMARY_THEN_SECONDARY

    return location_mode


def _initial_location(location_mode, storage_uri):
    '''The location of the first attempt of an operation.'''
    if location_mode in (LocationMode.PRIMARY_ONLY, LocationMode.PRIMARY_THEN_SECONDARY):
        location = StorageLocation.PRIMARY
    elif location_mode in (LocationMode.SECONDARY_ONLY, LocationMode.SECONDARY_THEN_PRIMARY):
        location = StorageLocation.SECONDARY
    else:
        raise ValueError('Unknown location mode: {0}'.format(location_mode))

    if location_mode == LocationMode.SECONDARY_THEN_PRIMARY and storage_uri.secondary_uri is None:
        location = StorageLocation.PRIMARY

    _validate_location(location, storage_uri)
    return location


def _next_location(location_mode, last_location, storage_uri):
    '''
    The location of a retry. The *_ONLY modes never move; the *_THEN_* modes
    alternate whenever the other URI is available.
    '''
    if location_mode == LocationMode.PRIMARY_ONLY:
        location = StorageLocation.PRIMARY
    elif location_mode == LocationMode.SECONDARY_ONLY:
        location = StorageLocation.SECONDARY
    elif last_location is None:
        return _initial_location(location_mode, storage_uri)
    else:
        other = StorageLocation.SECONDARY if last_location == StorageLocation.PRIMARY \
            else StorageLocation.PRIMARY
        location = other if storage_uri.has_location(other) else last_location

    _validate_location(location, storage_uri)
    return location


def _sticky_location_mode(location):
    '''The mode which pins every later attempt to location.'''
    if location == StorageLocation.SECONDARY:
        return LocationMode.SECONDARY_ONLY
    return LocationMode.PRIMARY_ONLY


def _validate_location(location, storage_uri):
    if not storage_uri.has_location(location):
        raise ValueError(_ERROR_MISSING_PRIMARY_URI if location == StorageLocation.PRIMARY
                         else _ERROR_MISSING_SECONDARY_URI)
