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
"""Template for src/ec2detect/version.py, expanded by setup.py when that file is missing.

Run it to print the module it would generate, or pass one attribute name to
print just that value. Attributes starting or ending with an underscore are
left out, and callables are replaced by what they return."""

# Note to maintainers:
#
#  - don't import at module level unless you want the imported value to be
#    included in the output
#  - only import from the Python standard run-time library (you can't have any
#    dependencies)
#  - don't import even standard modules at global scope without renaming them
#    to have leading/trailing underscores

baseVersion = '1.2.0'


def version():
    """
    A version identifier that includes the full-length commit SHA1 and an optional suffix to
    indicate that the working copy is dirty.
    """
    return '-'.join(filter(None, [distVersion(), currentCommit(), ('dirty' if dirty() else None)]))


def distVersion():
    """The distribution version identifying a published release on PyPI."""
    return baseVersion


def currentCommit():
    import os
    from subprocess import DEVNULL, CalledProcessError, check_output
    try:
        git_root_dir = os.path.dirname(os.path.abspath(__file__))
        output = check_output(['git', 'log', '--pretty=oneline', '-n', '1', '--', git_root_dir],
                              cwd=git_root_dir,
                              stderr=DEVNULL).decode('utf-8').split()
    except (OSError, CalledProcessError):
        # Return this if we are not in a git environment.
        return '000'
    return output[0] if output else '000'


def dirty():
    import os
    from subprocess import DEVNULL, call
    try:
        git_root_dir = os.path.dirname(os.path.abspath(__file__))
        return 0 != call(['git', 'diff', '--quiet', 'HEAD'],
                         cwd=git_root_dir,
                         stdout=DEVNULL,
                         stderr=DEVNULL)
    except OSError:
        return False  # In case git is not installed.


def expand_(name=None):
    """
    Returns the source of version.py: every public global, resolved.

    :param str name: If set, only the value of the given symbol is returned.
    """
    variables = {k: v for k, v in globals().items()
                 if not k.startswith('_') and not k.endswith('_')}

    def resolve(k):
        v = variables.get(k, None)
        if callable(v):
            v = v()
        return v

    if name is None:
        return ''.join("%s = %s\n" % (k, repr(resolve(k))) for k, v in variables.items())
    else:
        return resolve(name)


def _main():
    import sys
    sys.stdout.write(expand_(*sys.argv[1:]))


if __name__ == '__main__':
    _main()
