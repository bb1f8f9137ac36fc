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
Find out at startup whether the host is an AWS EC2 instance.

Typical use, bounding the whole check to ten seconds::

    from ec2detect import Context, is_ec2

    with Context(timeout=10) as ctx:
        on_ec2 = is_ec2(ctx)
"""
from ec2detect.detect import is_ec2, is_ec2_with_identifiers
from ec2detect.lib.context import Context

__all__ = ['Context', 'is_ec2', 'is_ec2_with_identifiers']
