#!/usr/bin/env python3
"""
Setup script for the AirType gesture typing pipeline
"""

from pathlib import Path

from setuptools import setup, find_packages


def read_requirements():
    """Read required packages from requirements.txt"""
    path = Path(__file__).parent / "requirements.txt"
    with open(path, "r") as f:
        return [line.strip() for line in f if line.strip() and not line.startswith("#")]


setup(
    name="airtype",
    version="0.1.0",
    description="Hand gesture letter recognition and typing pipeline",
    packages=find_packages(include=["airtype", "airtype.*"]),
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "airtype-replay=airtype.main:main",
        ],
    },
)
