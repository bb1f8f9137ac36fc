# Copyright (C) 2015-2022 Regents of the University of California
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
"""Reports whether this host is an EC2 instance."""
import logging
import signal
import sys
import threading
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from ec2detect.common import Config, parser_with_common_options
from ec2detect.detect import is_ec2
from ec2detect.lib.context import Context
from ec2detect.logs import set_logging_from_options

logger = logging.getLogger(__name__)

EXIT_ON_EC2 = 0
EXIT_NOT_EC2 = 1


@contextmanager
def cancel_on_signals(context: Context) -> Iterator[None]:
    """Cancel the context on SIGINT or SIGTERM while in the with block."""
    if threading.current_thread() is not threading.main_thread():
        # Only the main thread may install signal handlers.
        yield
        return

    def handle(signum: int, frame: Any) -> None:
        logger.debug("Got signal %i; abandoning detection.", signum)
        context.cancel()

    previous = {signum: signal.signal(signum, handle) for signum in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


def main(argv: Optional[List[str]] = None) -> None:
    parser = parser_with_common_options(prog="detect-ec2")
    options = parser.parse_args(argv)
    set_logging_from_options(options)
    config = Config()
    config.setOptions(options)

    with Context(timeout=config.detectionTimeout) as context, cancel_on_signals(context):
        on_ec2 = is_ec2(context, source=config.source(), prober=config.prober())

    logger.info("This host %s an EC2 instance.", "is" if on_ec2 else "is not")
    print("true" if on_ec2 else "false")
    sys.exit(EXIT_ON_EC2 if on_ec2 else EXIT_NOT_EC2)
