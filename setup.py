#!/usr/bin/env python3
"""Setup script for the Jira to OpenProject issue sync.
"""

from setuptools import find_packages, setup

# Read requirements from requirements.txt file
with open("requirements.txt") as f:
    requirements = f.read().splitlines()

# Remove any comments or blank lines from requirements
requirements = [line for line in requirements if line and not line.startswith("#")]

setup(
    name="jira-openproject-sync",
    version="0.1.0",
    description="Sync Jira issues into OpenProject work packages",
    packages=find_packages(include=["src", "src.*"]),
    include_package_data=True,
    python_requires=">=3.12,<4.0",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
    license="MIT",
    entry_points={
        "console_scripts": [
            "jos=src.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
)
