# Copyright (C) 2015-2021 Regents of the University of California
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Local, offline judgement of whether a hardware UUID looks like it came from EC2.

EC2 stamps its system UUIDs with a leading "ec2". Depending on the firmware or
hypervisor, the UUID's time_low field (the first 4 bytes) is reported either as
stored or with its byte order reversed, so both renderings are checked.
See <https://docs.aws.amazon.com/AWSEC2/latest/UserGuide/identify_ec2_instances.html>.
"""
import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

EC2_UUID_PREFIX = 'ec2'

# Bytes in a UUID's time_low field.
TIME_LOW_BYTES = 4

_hex_digits = re.compile(r'[0-9a-fA-F]+')


def decode_time_low(uuid: str) -> Optional[str]:
    """
    Read the first dash-delimited field of a UUID as a little-endian 32-bit
    number and render it as lowercase hex, without zero padding.

    Returns None when the field is not an even run of hex digits at least 4
    bytes long. Bytes past the first 4 are ignored.

    >>> decode_time_low('45E12AEC-DCD1-B213-94ED-012345ABCDEF')
    'ec2ae145'
    >>> decode_time_low('00000000-0000-0000-0000-000000000000')
    '0'
    >>> decode_time_low('not-a-uuid') is None
    True
    """
    if not isinstance(uuid, str):
        return None
    time_low = uuid.split('-', 1)[0]
    if len(time_low) % 2 != 0 or not _hex_digits.fullmatch(time_low):
        return None
    raw = bytes.fromhex(time_low)
    if len(raw) < TIME_LOW_BYTES:
        return None
    return format(int.from_bytes(raw[:TIME_LOW_BYTES], 'little'), 'x')


def _has_ec2_prefix(candidate: str) -> bool:
    return candidate[:len(EC2_UUID_PREFIX)].lower() == EC2_UUID_PREFIX


def looks_like_ec2(uuid: str) -> bool:
    """
    Return True if the UUID looks like one EC2 would hand out.

    This is only a heuristic; nothing here touches the network.

    >>> looks_like_ec2('EC2E1916-9099-7CAF-FD21-012345ABCDEF')
    True
    >>> looks_like_ec2('45E12AEC-DCD1-B213-94ED-012345ABCDEF')
    True
    >>> looks_like_ec2('4d8a1234-dcd1-b213-94ed-012345abcdef')
    False
    """
    if not isinstance(uuid, str):
        return False
    if _has_ec2_prefix(uuid):
        return True
    decoded = decode_time_low(uuid)
    if decoded is None:
        logger.debug("Cannot read the time_low field of '%s'; checking it literally only.", uuid)
        return False
    return _has_ec2_prefix(decoded)
