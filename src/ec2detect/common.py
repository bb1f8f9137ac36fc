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
import argparse
import functools
import logging
from argparse import ArgumentDefaultsHelpFormatter, Namespace
from typing import List, Optional

from configargparse import ArgParser, YAMLConfigFileParser

from ec2detect.detect import DEFAULT_DETECTION_TIMEOUT, Prober
from ec2detect.logs import add_logging_options
from ec2detect.metadata import (DEFAULT_REQUEST_TIMEOUT,
                                EC2_METADATA_URL,
                                confirm_ec2)
from ec2detect.sources import IdentifierSource, platform_identifiers
from ec2detect.version import version

logger = logging.getLogger(__name__)


def parse_positive_float(s: str) -> float:
    """
    Parse a strictly positive number of seconds, for use as an argparse type.

    >>> parse_positive_float('2.5')
    2.5
    >>> parse_positive_float('0')
    Traceback (most recent call last):
    ...
    argparse.ArgumentTypeError: 0 is not a positive number
    """
    try:
        value = float(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{s} is not a number")
    if not value > 0:
        raise argparse.ArgumentTypeError(f"{s} is not a positive number")
    return value


class Config:
    """Class to represent the configuration of one EC2 detection run."""
    logLevel: Optional[str]
    logFile: Optional[str]
    logRotating: bool

    # Detection options
    metadataURL: str
    requestTimeout: float
    detectionTimeout: float
    uuids: Optional[List[str]]
    """Hardware UUIDs to check instead of asking the operating system."""

    def __init__(self) -> None:
        self.logLevel = None
        self.logFile = None
        self.logRotating = False

        self.metadataURL = EC2_METADATA_URL
        self.requestTimeout = DEFAULT_REQUEST_TIMEOUT
        self.detectionTimeout = DEFAULT_DETECTION_TIMEOUT
        self.uuids = None

    def setOptions(self, options: Namespace) -> None:
        """Creates a config object from the options object."""

        def set_option(option_name: str) -> None:
            """
            Copy the option from the options object, if it has a non-None value there.
            """
            option_value = getattr(options, option_name, None)
            if option_value is not None or not hasattr(self, option_name):
                setattr(self, option_name, option_value)

        set_option("logLevel")
        set_option("logFile")
        set_option("logRotating")

        set_option("metadataURL")
        set_option("requestTimeout")
        set_option("detectionTimeout")
        set_option("uuids")

    def prober(self) -> Prober:
        """Get the metadata check, aimed at the configured service."""
        return functools.partial(confirm_ec2, base_url=self.metadataURL, timeout=self.requestTimeout)

    def source(self) -> IdentifierSource:
        """Get where hardware UUIDs should come from."""
        if self.uuids is None:
            return platform_identifiers
        uuids = list(self.uuids)
        return lambda: uuids


def add_detection_options(parser: ArgParser) -> None:
    group = parser.add_argument_group("Detection Options")
    group.add_argument("--metadataURL", dest="metadataURL", default=EC2_METADATA_URL,
                       env_var="EC2DETECT_METADATA_URL", metavar="URL",
                       help="Root URL of the EC2 instance metadata service.")
    group.add_argument("--requestTimeout", dest="requestTimeout", default=DEFAULT_REQUEST_TIMEOUT,
                       type=parse_positive_float, env_var="EC2DETECT_REQUEST_TIMEOUT", metavar="SECONDS",
                       help="How long to wait for the metadata service to answer a single request.")
    group.add_argument("--detectionTimeout", dest="detectionTimeout", default=DEFAULT_DETECTION_TIMEOUT,
                       type=parse_positive_float, env_var="EC2DETECT_DETECTION_TIMEOUT", metavar="SECONDS",
                       help="How long the whole detection may take, retries included.")
    group.add_argument("--uuid", dest="uuids", action="append", default=None, metavar="UUID",
                       help="Check this hardware UUID instead of the one the operating system reports. "
                            "May be given more than once.")


def parser_with_common_options(prog: Optional[str] = None,
                               default_log_level: Optional[int] = None) -> ArgParser:
    parser = ArgParser(prog=prog or "ec2detect",
                       formatter_class=ArgumentDefaultsHelpFormatter,
                       config_file_parser_class=YAMLConfigFileParser)
    parser.add_argument("--config", dest="config", is_config_file_arg=True, default=None, metavar="PATH",
                        help="Get options from a YAML file.")

    add_detection_options(parser)

    # always add these
    add_logging_options(parser, default_log_level)
    parser.add_argument("--version", action='version', version=version)
    return parser
