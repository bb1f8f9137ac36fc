"""Base testing class for ec2detect."""
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
import datetime
import logging
import os
import shutil
import tempfile
import unittest
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union, cast
from unittest.util import strclass

import pytest
import pytz
import requests
from requests.adapters import BaseAdapter

from ec2detect.lib.context import Context

logger = logging.getLogger(__name__)


class Ec2DetectTest(unittest.TestCase):
    """
    A common base class for ec2detect tests.

    Please have every unittest-style test case directly or indirectly inherit this one.

    When running tests you may optionally set the EC2DETECT_TEST_TEMP environment variable
    to the path of a directory where you want temporary test files be placed. The
    directory will be created if it doesn't exist. If EC2DETECT_TEST_TEMP is not
    defined, temporary files and directories will be created in the system's
    default location for such files and any temporary files or directories left
    over from tests will be removed automatically during tear down.
    Otherwise, left-over files will not be removed.
    """

    _tempBaseDir: Optional[str] = None
    _tempDirs: List[str] = []

    def setup_method(self, method: Any) -> None:
        western = pytz.timezone('America/Los_Angeles')
        california_time = western.localize(datetime.datetime.now())
        timestamp = california_time.strftime("%b %d %Y %H:%M:%S:%f %Z")
        print(f"\n\n[TEST] {strclass(self.__class__)}:{self._testMethodName} ({timestamp})\n\n")

    @classmethod
    def setUpClass(cls) -> None:
        super().setUpClass()
        tempBaseDir = os.environ.get('EC2DETECT_TEST_TEMP', None)
        if tempBaseDir is not None:
            tempBaseDir = os.path.abspath(tempBaseDir)
            os.makedirs(tempBaseDir, exist_ok=True)
        cls._tempBaseDir = tempBaseDir

    @classmethod
    def tearDownClass(cls) -> None:
        if cls._tempBaseDir is None:
            while cls._tempDirs:
                tempDir = cls._tempDirs.pop()
                if os.path.exists(tempDir):
                    shutil.rmtree(tempDir)
        else:
            cls._tempDirs = []
        super().tearDownClass()

    def setUp(self) -> None:
        logger.info("Setting up %s ...", self.id())
        super().setUp()

    def tearDown(self) -> None:
        super().tearDown()
        logger.info("Tore down %s", self.id())

    def _createTempDir(self, purpose: Optional[str] = None) -> str:
        return self._createTempDirEx(self._testMethodName, purpose)

    @classmethod
    def _createTempDirEx(cls, *names: Optional[str]) -> str:
        classname = strclass(cls)
        if classname.startswith("ec2detect.test."):
            classname = classname[len("ec2detect.test."):]
        prefix = ["ec2detect", "test", classname]
        prefix.extend([_f for _f in names if _f])
        prefix.append('')
        temp_dir_path = os.path.realpath(
            tempfile.mkdtemp(dir=cls._tempBaseDir, prefix="-".join(prefix))
        )
        cls._tempDirs.append(temp_dir_path)
        return temp_dir_path

    def _writeFile(self, directory: str, name: str, contents: str) -> str:
        path = os.path.join(directory, name)
        with open(path, 'w') as f:
            f.write(contents)
        return path


class RecordingContext(Context):
    """
    A Context whose waits return at once and are written down instead of slept.

    :param cancel_after_waits: If set, the context cancels itself during that many-th wait.
    """

    def __init__(self, timeout: Optional[float] = None, cancel_after_waits: Optional[int] = None) -> None:
        super().__init__(timeout=timeout)
        self.waits: List[float] = []
        self.cancel_after_waits = cancel_after_waits

    def wait(self, seconds: float) -> bool:
        if self.done():
            return True
        self.waits.append(seconds)
        if self.cancel_after_waits is not None and len(self.waits) >= self.cancel_after_waits:
            self.cancel()
            return True
        return False


class StubAdapter(BaseAdapter):
    """
    A Requests transport adapter that answers from a script instead of the network.

    Each call to send() takes the next entry of the script: an int is answered
    as a response with that status code, an exception instance is raised. The
    last entry is repeated once the script runs out. Every request sent is
    kept in self.requests.
    """

    def __init__(self, script: Sequence[Union[int, BaseException]]) -> None:
        super().__init__()
        assert script, "Need something to answer with"
        self.script = list(script)
        self.requests: List[requests.PreparedRequest] = []
        self.timeouts: List[Any] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def send(self, request: requests.PreparedRequest, stream: bool = False, timeout: Any = None,
             verify: Any = True, cert: Any = None, proxies: Optional[Mapping[str, str]] = None) -> requests.Response:
        self.requests.append(request)
        self.timeouts.append(timeout)
        step = self.script[min(len(self.requests), len(self.script)) - 1]
        if isinstance(step, BaseException):
            raise step
        response = requests.Response()
        response.status_code = step
        response.url = request.url
        response.request = request
        response._content = b''
        return response

    def close(self) -> None:
        pass


def stub_session(script: Sequence[Union[int, BaseException]]) -> Tuple[requests.Session, StubAdapter]:
    """Make a session whose HTTP and HTTPS traffic all goes to a new StubAdapter."""
    session = requests.Session()
    adapter = StubAdapter(script)
    session.mount('http://', adapter)
    session.mount('https://', adapter)
    return session, adapter


MT = TypeVar("MT", bound=Callable[..., Any])


def _mark_test(name: str, test_item: MT) -> MT:
    return cast(MT, getattr(pytest.mark, name)(test_item))


def slow(test_item: MT) -> MT:
    """
    Use this decorator to identify tests that are slow and not critical.
    Skip if EC2DETECT_TEST_QUICK is true.
    """
    test_item = _mark_test('slow', test_item)
    if os.environ.get('EC2DETECT_TEST_QUICK', '').lower() != 'true':
        return test_item
    else:
        return unittest.skip('Skipped because EC2DETECT_TEST_QUICK is "True"')(test_item)
