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
import subprocess
import typing
from typing import List, Optional

logger = logging.getLogger(__name__)


class CalledProcessErrorStderr(subprocess.CalledProcessError):
    """Version of CalledProcessError that include stderr in the error message if it is set"""

    def __str__(self) -> str:
        if (self.returncode < 0) or (self.stderr is None):
            return super().__str__()
        else:
            err = self.stderr if isinstance(self.stderr, str) else self.stderr.decode("ascii", errors="replace")
            return "Command '%s' exit status %d: %s" % (self.cmd, self.returncode, err.rstrip())


def call_command(cmd: List[str], timeout: Optional[float] = None,
                 useCLocale: bool = True, env: Optional[typing.Dict[str, str]] = None) -> str:
    """
    Simplified calling of external commands.

    If the process fails, CalledProcessErrorStderr is raised. If it takes
    longer than the timeout, it is killed and subprocess.TimeoutExpired is
    raised.

    Always logs the command and its output at debug log level.

    :param useCLocale: If True, C locale is forced, so that the output of
           system inventory tools does not depend on the user's language.

    :returns: Command standard output, decoded as utf-8.
    """
    if useCLocale:
        env = dict(os.environ) if env is None else dict(env)  # copy since modifying
        env["LANGUAGE"] = env["LC_ALL"] = "C"

    logger.debug("run command: {}".format(" ".join(cmd)))
    start_time = datetime.datetime.now()
    proc = subprocess.Popen(cmd, stdin=subprocess.DEVNULL,
                            stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                            encoding='utf-8', errors="replace", env=env)
    try:
        stdout, stderr = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.communicate()
        logger.debug("command timed out after %ss: %s", timeout, " ".join(cmd))
        raise
    runtime = (datetime.datetime.now() - start_time).total_seconds()
    if proc.returncode != 0:
        logger.debug("command failed in {}s: {}: {}".format(runtime, " ".join(cmd), stderr.rstrip()))
        raise CalledProcessErrorStderr(proc.returncode, cmd, output=stdout, stderr=stderr)
    logger.debug("command succeeded in {}s: {}{}".format(runtime, " ".join(cmd), ': ' + stdout.rstrip()))
    return stdout
