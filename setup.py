"""
Setup script for sql-gremlin package
Install with: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="sql-gremlin",
    version="0.1.0",
    description="SQL to Gremlin traversal translator for property graphs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*", "examples", "docs"]),
    package_data={
        "sql_gremlin": ["sql/grammar.lark"],
    },
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "lark>=1.1.9",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
