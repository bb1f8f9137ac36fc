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
import logging

import pytest

from ec2detect.lib.context import Context
from ec2detect.lib.exceptions import Cancelled
from ec2detect.lib.retry import retry_with_context
from ec2detect.test import RecordingContext

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.DEBUG)


class Counter:
    """A callable that fails a given number of times and then returns 'done'."""

    def __init__(self, failures: int, error: type = ConnectionError) -> None:
        self.failures = failures
        self.error = error
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error(f"failure {self.calls}")
        return 'done'


class TestRetryWithContext:
    def test_success_first_time(self) -> None:
        ctx = RecordingContext()
        func = Counter(0)
        assert retry_with_context(ctx, func, attempts=3, interval=2, errors=[ConnectionError]) == 'done'
        assert func.calls == 1
        assert ctx.waits == []

    def test_success_after_retries(self) -> None:
        ctx = RecordingContext()
        func = Counter(2)
        assert retry_with_context(ctx, func, attempts=3, interval=2, errors=[ConnectionError]) == 'done'
        assert func.calls == 3
        assert ctx.waits == [2, 2]

    def test_gives_up_with_last_error(self) -> None:
        ctx = RecordingContext()
        func = Counter(10)
        with pytest.raises(ConnectionError, match="failure 3"):
            retry_with_context(ctx, func, attempts=3, interval=2, errors=[ConnectionError])
        assert func.calls == 3
        # No wait after the final attempt
        assert ctx.waits == [2, 2]

    def test_other_errors_are_not_retried(self) -> None:
        ctx = RecordingContext()
        func = Counter(10, error=KeyError)
        with pytest.raises(KeyError):
            retry_with_context(ctx, func, attempts=3, interval=2, errors=[ConnectionError])
        assert func.calls == 1
        assert ctx.waits == []

    def test_default_errors(self) -> None:
        func = Counter(1, error=ValueError)
        assert retry_with_context(RecordingContext(), func, attempts=2, interval=0) == 'done'

    def test_done_context_means_no_attempts(self) -> None:
        ctx = Context()
        ctx.cancel()
        func = Counter(0)
        with pytest.raises(Cancelled) as info:
            retry_with_context(ctx, func, attempts=3, interval=2)
        assert func.calls == 0
        assert info.value.attempts == 0

    def test_cancelled_during_wait(self) -> None:
        ctx = RecordingContext(cancel_after_waits=1)
        func = Counter(10)
        with pytest.raises(Cancelled) as info:
            retry_with_context(ctx, func, attempts=3, interval=2, errors=[ConnectionError])
        assert func.calls == 1
        assert info.value.attempts == 1
        assert isinstance(info.value.__cause__, ConnectionError)

    def test_real_wait_is_interrupted_by_deadline(self) -> None:
        ctx = Context(timeout=0.1)
        func = Counter(10)
        with pytest.raises(Cancelled):
            retry_with_context(ctx, func, attempts=3, interval=30, errors=[ConnectionError])
        assert func.calls == 1

    def test_log_message(self) -> None:
        messages = []
        retry_with_context(RecordingContext(), Counter(1), attempts=3, interval=0,
                           errors=[ConnectionError], log_message=(messages.append, "trying"))
        assert messages == ["trying", "trying"]

    def test_needs_an_attempt(self) -> None:
        with pytest.raises(ValueError):
            retry_with_context(Context(), Counter(0), attempts=0, interval=1)
