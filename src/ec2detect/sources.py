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
Where hardware UUIDs come from on each operating system.

An identifier source is any callable that takes no arguments and returns the
raw UUID strings the machine reports, possibly none. Detection only ever sees
the strings, so tests can swap in a plain function or a FileIdentifierSource.
"""
import logging
import platform
import subprocess
from typing import Callable, Iterable, List, Sequence

from ec2detect.lib.misc import call_command

logger = logging.getLogger(__name__)

IdentifierSource = Callable[[], Iterable[str]]

# Xen based instances publish the hypervisor's idea of our UUID here.
HYPERVISOR_UUID_PATH = '/sys/hypervisor/uuid'
# Nitro based instances only have the SMBIOS UUID, which is readable by root only.
DMI_PRODUCT_UUID_PATH = '/sys/class/dmi/id/product_uuid'

WMI_QUERY_TIMEOUT = 30


class FileIdentifierSource:
    """
    Read one identifier from each of the given files.

    Files that are missing or unreadable are skipped, as are empty ones.
    """

    def __init__(self, paths: Sequence[str]) -> None:
        self.paths = list(paths)

    def __call__(self) -> List[str]:
        identifiers = []
        for path in self.paths:
            try:
                with open(path) as f:
                    value = f.read().strip()
            except OSError as e:
                logger.debug("Cannot read an identifier from %s: %s", path, e)
                continue
            if value:
                identifiers.append(value)
        return identifiers

    def __repr__(self) -> str:
        return f'FileIdentifierSource({self.paths!r})'


linux_identifiers = FileIdentifierSource([HYPERVISOR_UUID_PATH, DMI_PRODUCT_UUID_PATH])


def windows_identifiers() -> List[str]:
    """
    Get the UUIDs of Win32_ComputerSystemProduct from WMI.

    A failed query yields no identifiers.
    """
    try:
        output = call_command(['powershell.exe', '-NoProfile', '-NonInteractive', '-Command',
                               '(Get-CimInstance -ClassName Win32_ComputerSystemProduct).UUID'],
                              timeout=WMI_QUERY_TIMEOUT)
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug("Cannot query WMI for the system UUID: %s", e)
        return []
    return [line.strip() for line in output.splitlines() if line.strip()]


def platform_identifiers() -> List[str]:
    """Get the hardware UUIDs of this machine, using whatever this operating system offers."""
    system = platform.system()
    if system == 'Linux':
        return linux_identifiers()
    if system == 'Windows':
        return windows_identifiers()
    logger.debug("No way to read a hardware UUID on %s", system or 'this platform')
    return []
