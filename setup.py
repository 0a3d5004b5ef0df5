#!/usr/bin/env python3
"""Setup script for the GameCube loader."""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""

setup(
    name="gamecube-loader",
    version="0.1.0",
    description="Load Nintendo GameCube DOL and REL binaries and apply linker map symbols",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["gamecube_loader", "gamecube_loader.*"]),
    package_data={
        "gamecube_loader": ["config.json"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Disassemblers",
    ],
    python_requires=">=3.8",
    install_requires=[
        # No external dependencies for core functionality
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "mypy>=1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gamecube-loader=gamecube_loader.cli:main",
        ],
    },
)
