"""
Setup script for the officeresolver package.
"""

from pathlib import Path

from setuptools import find_packages, setup

HERE = Path(__file__).parent


def read_requirements(name):
    lines = (HERE / "requirements" / name).read_text().splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]


setup(
    name="officeresolver",
    version="0.1.0",
    description="Entity resolution and incremental merging for re-scraped office listings and project analyses",
    packages=find_packages(include=["officeresolver", "officeresolver.*"]),
    python_requires=">=3.9",
    install_requires=read_requirements("requirements.txt"),
    extras_require={
        "dev": [
            "ruff>=0.1.3",
            "black>=24.0.0",
            "mypy>=1.5.1",
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-mock>=3.11.1",
        ],
    },
    entry_points={
        "console_scripts": [
            "officeresolver=officeresolver.cli.main:cli",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Topic :: Text Processing",
    ],
)
