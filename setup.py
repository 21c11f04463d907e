"""
Setup script for the Packet Protocol Classifier.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""

setup(
    name="packet-protocol-classifier",
    version="0.1.0",
    description="Packet-to-feature pipeline and TCP/UDP classifier for captured network traces",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Packet Classifier Team",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "pandas>=1.3.0",
        "numpy>=1.21.0",
        "scikit-learn>=1.0.0",
        "joblib>=1.1.0",
        "dpkt>=1.9.8",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=22.0.0",
            "flake8>=5.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "packet-classifier=packet_classifier.cli:main",
        ],
    },
)
