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
Confirm a suspected EC2 host by asking the instance metadata service.

A UUID that looks like EC2's is not proof. Only EC2 instances can reach the
link-local metadata service, so a 200 from it is what we trust.
"""
import logging
from typing import Optional

import requests
from requests.exceptions import (InvalidSchema,
                                 InvalidURL,
                                 MissingSchema,
                                 RequestException)

from ec2detect.lib.context import Context
from ec2detect.lib.exceptions import Cancelled, RequestConstructionError
from ec2detect.lib.retry import retry_with_context
from ec2detect.lib.web import web_session

logger = logging.getLogger(__name__)

EC2_METADATA_URL = 'http://169.254.169.254'
# This path only exists on AWS.
AMI_ID_PATH = '/latest/metadata/ami-id'

# Fixed retry policy: at most 3 requests, 2 seconds apart.
MAX_ATTEMPTS = 3
RETRY_INTERVAL = 2

# Seconds to wait on a single request. The service is link-local, so it
# answers quickly or not at all.
DEFAULT_REQUEST_TIMEOUT = 0.1


def ami_id_url(base_url: Optional[str] = None) -> str:
    """
    Get the URL probed to confirm EC2.

    >>> ami_id_url()
    'http://169.254.169.254/latest/metadata/ami-id'
    >>> ami_id_url('http://localhost:8080/')
    'http://localhost:8080/latest/metadata/ami-id'
    """
    return (base_url or EC2_METADATA_URL).rstrip('/') + AMI_ID_PATH


def _request_timeout(context: Context, timeout: float) -> float:
    """
    Never let one request outlive the context's deadline.

    :raises Cancelled: if the deadline has already come, so no time is left to send anything.
    """
    remaining = context.remaining()
    if remaining is None:
        return timeout
    if remaining <= 0:
        raise Cancelled()
    return min(timeout, remaining)


def _probe_once(context: Context, session: requests.Session, url: str, timeout: float) -> bool:
    """
    Send one GET to the metadata service.

    Returns True on exactly HTTP 200, False on any other status.

    :raises RequestConstructionError: if no request could be built or routed for the URL.
    :raises Cancelled: if the context's deadline passed before the request could be sent.
    :raises requests.exceptions.RequestException: on transport problems, which are worth retrying.
    """
    request_timeout = _request_timeout(context, timeout)
    try:
        request = session.prepare_request(requests.Request('GET', url))
        response = session.send(request, timeout=request_timeout)
    except (MissingSchema, InvalidSchema, InvalidURL) as e:
        raise RequestConstructionError(url, e) from e
    try:
        logger.debug("Metadata service answered %s with HTTP %i", url, response.status_code)
        return response.status_code == 200
    finally:
        response.close()


def confirm_ec2(context: Context,
                session: Optional[requests.Session] = None,
                base_url: Optional[str] = None,
                timeout: Optional[float] = None) -> bool:
    """
    Return True if the EC2 metadata service answers, and False otherwise.

    Makes at most MAX_ATTEMPTS requests, RETRY_INTERVAL seconds apart, and
    only retries transport failures: any HTTP answer other than 200 is final.
    Never raises; every failure means "not EC2".

    :param context: Bounds the whole check. If it is already done, no request is made.
    :param session: Session to send requests through. Defaults to the shared web_session.
    :param base_url: Root of the metadata service. Defaults to EC2_METADATA_URL.
    :param timeout: Seconds to allow each request. Defaults to DEFAULT_REQUEST_TIMEOUT.
    """
    if context.done():
        logger.debug("Context finished before the metadata service was asked; not EC2.")
        return False

    session = session if session is not None else web_session
    timeout = timeout if timeout is not None else DEFAULT_REQUEST_TIMEOUT
    if not timeout > 0:
        logger.warning("Request timeout must be positive, not %s; not asking the metadata service.", timeout)
        return False
    url = ami_id_url(base_url)

    try:
        return retry_with_context(context,
                                  lambda: _probe_once(context, session, url, timeout),
                                  attempts=MAX_ATTEMPTS,
                                  interval=RETRY_INTERVAL,
                                  errors=[RequestException])
    except RequestConstructionError as e:
        logger.debug("Giving up on the metadata service: %s", e)
    except Cancelled as e:
        logger.debug("Stopped asking the metadata service: %s", e)
    except RequestException as e:
        logger.debug("Metadata service unreachable after %i attempts: %s", MAX_ATTEMPTS, e)
    return False
