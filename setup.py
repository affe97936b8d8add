"""
Json2Dart - Flutter model & layer generator
Install: pip install -e .
"""

from setuptools import setup, find_packages

setup(
    name="json2dart",
    version="1.0.0",
    author="Diegoproggramer",
    author_email="",
    description="Generate Dart models, mappers and data layers from JSON samples",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Code Generators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "json2dart=json2dart.cli:cli_main",
        ],
    },
    keywords="flutter, dart, json, generator, code-generator, equatable",
)
