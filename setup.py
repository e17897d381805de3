"""
Setup script for blockell

Kernels are compiled at first call by numba, so no native build step is
needed here. This script reads the version from the package and the long
description from README.md.
"""

from pathlib import Path
from setuptools import setup, find_packages


# Read version from src/blockell/__init__.py
def get_version():
    version_file = Path("src/blockell/__init__.py")
    if version_file.exists():
        for line in version_file.read_text().splitlines():
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"').strip("'")
    return "0.1.0"


# Read long description from README
def get_long_description():
    readme = Path("README.md")
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


setup(
    name="blockell",
    version=get_version(),
    description="BCRS and ELLPACK sparse storage with parallel SpMV kernels",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.22",
        "scipy>=1.8",
        "numba>=0.57",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    zip_safe=False,
)
