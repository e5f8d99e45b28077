# setup.py
from setuptools import setup, find_packages

setup(
    name="tractree",
    version="0.2.0",
    description="Taxonomic aggregation trees and A matrices for tree-aggregated log-contrast regression",
    author="tractree Contributors",
    url="https://github.com/tractree/tractree",
    packages=find_packages(exclude=["tests", "tests.*"]),
    entry_points={
        "console_scripts": [
            "tractree=tractree.cli:main",
        ],
    },
    install_requires=[
        "numpy>=1.11",
        "pandas>=1.1",
        "scipy>=1.0",
        "biopython",
        "flatten-dict",
    ],
    extras_require={
        "test": [
            "pytest>=6.0",
        ],
    },
    python_requires=">=3.7",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
    ],
)
