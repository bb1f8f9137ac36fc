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
Decide whether this host is an EC2 instance.

Hardware UUIDs are checked locally first. Only if one of them looks like EC2's
is the metadata service asked, and then only once for the whole batch.
If the UUIDs don't look right, we never touch the network.
"""
import logging
from typing import Callable, Iterable, Optional

from ec2detect.identity import looks_like_ec2
from ec2detect.lib.context import Context
from ec2detect.metadata import confirm_ec2
from ec2detect.sources import IdentifierSource, platform_identifiers

logger = logging.getLogger(__name__)

# Seconds is_ec2() allows itself when the caller doesn't bound it.
DEFAULT_DETECTION_TIMEOUT = 10.0

Prober = Callable[[Context], bool]


def is_ec2_with_identifiers(context: Context,
                            identifiers: Iterable[str],
                            prober: Optional[Prober] = None) -> bool:
    """
    Return True if any of the given UUIDs looks like EC2's and the prober confirms it.

    UUIDs are checked in order and checking stops at the first that looks
    right. The prober is called at most once. Never raises: identifiers
    that cannot be read, like a prober that fails, mean "not EC2".

    :param context: Passed to the prober, to bound the network check.
    :param identifiers: Raw hardware UUIDs, in order of preference.
    :param prober: Confirms a suspected EC2 host. Defaults to confirm_ec2.
    """
    prober = prober if prober is not None else confirm_ec2

    try:
        for uuid in identifiers:
            if looks_like_ec2(uuid):
                logger.debug("UUID '%s' looks like EC2; asking for confirmation.", uuid)
                break
        else:
            logger.debug("No hardware UUID looks like EC2.")
            return False
    except Exception as e:
        logger.warning("Could not read hardware UUIDs: %s", e)
        return False

    try:
        confirmed = bool(prober(context))
    except Exception as e:
        # Any failure to confirm means not EC2.
        logger.warning("Could not confirm that this is EC2: %s", e, exc_info=True)
        return False
    logger.debug("EC2 %s.", "confirmed" if confirmed else "not confirmed")
    return confirmed


def is_ec2(context: Optional[Context] = None,
           source: Optional[IdentifierSource] = None,
           prober: Optional[Prober] = None) -> bool:
    """
    Return True if we are currently running on EC2, and False otherwise.

    Never raises.

    :param context: Bounds the check. Defaults to a context that expires after
        DEFAULT_DETECTION_TIMEOUT seconds.
    :param source: Where to get hardware UUIDs from. Defaults to whatever this
        operating system offers.
    :param prober: Confirms a suspected EC2 host. Defaults to confirm_ec2.
    """
    if context is None:
        context = Context(timeout=DEFAULT_DETECTION_TIMEOUT)
    source = source if source is not None else platform_identifiers

    try:
        identifiers = list(source())
    except Exception as e:
        logger.warning("Could not read hardware UUIDs from %s: %s", source, e)
        return False
    return is_ec2_with_identifiers(context, identifiers, prober)
