"""setup.py: setuptools control."""

import codecs
import os.path
import sys
from typing import List

from setuptools import find_packages, setup


ROOT_DIR = os.path.abspath(os.path.dirname(__file__))


def read_file(rel_path: str) -> str:
    """Read a file and return the contents."""
    _path = os.path.join(ROOT_DIR, rel_path)
    if os.path.isfile(_path):
        with codecs.open(_path, "r") as fp:
            return fp.read()
    else:
        return ""


def get_project_name_and_version(rel_path: str) -> List[str]:
    """Get the project name and version from a file specified by __version__ = name@version."""
    for line in read_file(rel_path).splitlines():
        if line.startswith("__version__"):
            delim = '"' if '"' in line else "'"
            return line.split(delim)[1].split("@")
    else:
        raise RuntimeError("Unable to find version string.")


def _read_requirements(filename: str) -> List[str]:
    """Read a requirements file, resolving `-r` includes and skipping blanks and comments."""
    requirements = read_file(filename).strip().split("\n")
    resolved_requirements = []
    for line in requirements:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("-r "):
            resolved_requirements += _read_requirements(line.split()[1])
        else:
            resolved_requirements.append(line)
    return resolved_requirements


def get_requirements() -> List[str]:
    """Get Python package dependencies from requirements.txt."""
    return _read_requirements("requirements.txt")


name, version = get_project_name_and_version("budkubestate/__about__.py")
version_range_max = max(sys.version_info[1], 12) + 1

setup(
    name=name,
    version=version,
    description=(
        "budkubestate projects Kubernetes node objects into a deterministic set of Prometheus metric families, "
        "with byte-stable text output and a metadata-only view of every family."
    ),
    long_description=read_file("README.md"),
    long_description_content_type="text/markdown",
    url="https://github.com/BudEcosystem/budkubestate",
    keywords="kubernetes prometheus metrics kube-state node exporter",
    license="Apache 2.0 License",
    author="Bud Ecosystem Inc.",
    packages=find_packages(
        exclude=(
            "docs",
            "docs.*",
            "examples",
            "tests",
            "tests.*",
            "scripts",
        ),
    ),
    package_data={"budkubestate": ["py.typed"]},
    include_package_data=True,
    python_requires=">=3.11.0",
    install_requires=get_requirements(),
    extras_require={"test": _read_requirements("requirements-test.txt")},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: System :: Monitoring",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
    ]
    + [f"Programming Language :: Python :: 3.{i}" for i in range(11, version_range_max)],
)
