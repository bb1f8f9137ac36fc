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
This file holds retry_with_context(), a bounded retry loop bound to a Context.

It retries a callable when it fails with any of the exceptions listed in
"errors", waiting a fixed interval between attempts, for at most a fixed
number of attempts. Before every attempt, and during every wait, it checks the
Context; once the Context is done it stops and raises Cancelled.

For example, retrying a GET on connection problems only::

    from requests import get
    from requests.exceptions import ConnectionError

    def fetch():
        return get('http://169.254.169.254/latest/meta-data/ami-id', timeout=1)

    response = retry_with_context(ctx, fetch, attempts=3, interval=2,
                                  errors=[ConnectionError])

Anything the callable raises that is not in "errors" propagates immediately,
and so does anything it returns: a callable that wants the loop to stop early
with a negative answer should return that answer rather than raise.

When the last attempt fails, its exception is re-raised unchanged.

>>> from ec2detect.lib.context import Context
>>> calls = []
>>> def flaky():
...     calls.append(None)
...     if len(calls) < 2:
...         raise RuntimeError('not yet')
...     return 'ok'
>>> retry_with_context(Context(), flaky, attempts=3, interval=0, errors=[RuntimeError])
'ok'
>>> len(calls)
2
"""
import logging
from typing import Callable, Iterable, Optional, Tuple, Type, TypeVar

from ec2detect.lib.context import Context
from ec2detect.lib.exceptions import Cancelled

logger = logging.getLogger(__name__)

T = TypeVar('T')


def retry_with_context(context: Context,
                       func: Callable[[], T],
                       attempts: int,
                       interval: float,
                       errors: Optional[Iterable[Type[BaseException]]] = None,
                       log_message: Optional[Tuple[Callable[[str], None], str]] = None) -> T:
    """
    Call func until it returns, it raises something not in errors, the attempts
    run out, or the context is done.

    :param context: Checked before every attempt and watched during every wait.
    :param func: The operation to attempt. Takes no arguments.
    :param attempts: Maximum number of times to call func. Must be at least 1.
    :param interval: Seconds to wait between attempts.
    :param errors: Exception types that are worth another attempt. Defaults to Exception.
    :param log_message: Optional tuple of ("log/print function()", "message string") that will precede each attempt.
    :return: Whatever func returned.
    :raises Cancelled: if the context was done before an attempt could start.
    """
    if attempts < 1:
        raise ValueError(f'Need at least one attempt, not {attempts}')
    retriable_errors = tuple(errors) if errors else (Exception,)

    for attempt in range(1, attempts + 1):
        if context.done():
            raise Cancelled(attempt - 1)
        if log_message:
            post_message_function, message = log_message
            post_message_function(message)
        try:
            return func()
        except retriable_errors as e:
            if attempt == attempts:
                logger.debug("Error in %s: %s. Giving up after %i attempts.", func, e, attempts)
                raise
            logger.debug("Error in %s: %s. Retrying after %s s (attempt %i of %i)...",
                         func, e, interval, attempt, attempts)
            if context.wait(interval):
                raise Cancelled(attempt) from e
    # Every pass through the loop returns or raises.
    raise AssertionError('unreachable')
