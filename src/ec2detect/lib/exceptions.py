# Copyright (C) 2015-2018 Regents of the University of California
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
"""Exceptions raised inside ec2detect helpers. The public detection functions never let these escape."""
from typing import Optional


class Ec2DetectException(Exception):
    """Base class for errors raised by ec2detect."""


class Cancelled(Ec2DetectException):
    """
    The context an operation was bound to finished (it was cancelled or its
    deadline passed) before the operation could complete.
    """

    def __init__(self, attempts: int = 0) -> None:
        super().__init__(f"Context finished after {attempts} attempt(s)")
        self.attempts = attempts


class RequestConstructionError(Ec2DetectException):
    """
    A request could not even be built, so there is nothing to send or retry.
    Usually the base URL is malformed or uses a scheme we cannot speak.
    """

    def __init__(self, url: str, cause: Optional[Exception] = None) -> None:
        super().__init__(f"Cannot build a request for '{url}': {cause}")
        self.url = url
        self.cause = cause
