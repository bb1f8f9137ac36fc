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
import os
import sys
import types
from importlib.machinery import SourceFileLoader
from tempfile import NamedTemporaryFile

from setuptools import find_packages, setup

SETUP_DIR = os.path.dirname(os.path.abspath(__file__))
README = os.path.join(SETUP_DIR, "README.rst")

# The version template lives next to this file and is only needed at build time.
sys.path.insert(0, SETUP_DIR)


def get_requirements(extra=None):
    """
    Load the requirements for the given extra.

    Uses the appropriate requirements-extra.txt, or the main requirements.txt
    if no extra is specified.
    """
    filename = f"requirements-{extra}.txt" if extra else "requirements.txt"

    with open(os.path.join(SETUP_DIR, filename)) as fp:
        # Parse out as one per line, dropping comments
        return [
            l.split("#")[0].strip() for l in fp.readlines() if l.split("#")[0].strip()
        ]


def run_setup():
    """
    Call setup().

    This function exists so the setup() invocation preceded more internal functionality.
    The `version` module is imported dynamically by import_version() below.
    """
    install_requires = get_requirements()

    extras_require = {"test": get_requirements("test")}
    setup(
        name="ec2detect",
        version=version.distVersion,
        long_description=open(README).read(),
        long_description_content_type="text/x-rst",
        description="Decide at agent startup whether the host is an AWS EC2 instance.",
        author="The ec2detect developers",
        classifiers=[
            "Development Status :: 5 - Production/Stable",
            "Environment :: Console",
            "Intended Audience :: Developers",
            "Intended Audience :: System Administrators",
            "License :: OSI Approved :: Apache Software License",
            "Natural Language :: English",
            "Operating System :: MacOS :: MacOS X",
            "Operating System :: Microsoft :: Windows",
            "Operating System :: POSIX",
            "Operating System :: POSIX :: Linux",
            "Programming Language :: Python :: 3.9",
            "Programming Language :: Python :: 3.10",
            "Programming Language :: Python :: 3.11",
            "Programming Language :: Python :: 3.12",
            "Programming Language :: Python :: 3.13",
            "Topic :: System :: Monitoring",
            "Topic :: System :: Systems Administration",
            "Topic :: Utilities",
        ],
        license="Apache License v2.0",
        python_requires=">=3.9",
        install_requires=install_requires,
        extras_require=extras_require,
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        include_package_data=True,
        entry_points={
            "console_scripts": [
                "detect-ec2 = ec2detect.utils.detectEC2:main",
            ]
        },
    )


def import_version():
    """Return the module object for src/ec2detect/version.py, generate from the template if required."""
    version_path = os.path.join(SETUP_DIR, "src", "ec2detect", "version.py")
    if not os.path.exists(version_path):
        # Use the template to generate src/ec2detect/version.py
        import version_template

        with NamedTemporaryFile(
            mode="w", dir=os.path.dirname(version_path), prefix="version.py.", delete=False
        ) as f:
            f.write(version_template.expand_())
        os.rename(f.name, version_path)

    # A plain import would run src/ec2detect/__init__.py, whose dependencies
    # may not be installed yet when setup.py is invoked.
    loader = SourceFileLoader("ec2detect.version", version_path)
    mod = types.ModuleType(loader.name)
    loader.exec_module(mod)
    return mod


version = import_version()
run_setup()
