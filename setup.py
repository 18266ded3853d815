"""
Setuptools build script for Terminal AI.

This file allows installation of the ``terminalai`` package via
``pip install .``.  It declares the required dependencies and
registers the console script entry points: ``tai`` for the
orchestrator and configuration commands, and one ``<skill>_ai`` tool
per compiled-in skill.
"""

from setuptools import setup, find_packages

setup(
    name="terminalai",
    version="0.1.0",
    description="AI-powered terminal tools translating natural language into confirmed shell commands",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "click>=8.0",
        "PyYAML>=5.4",
        "httpx>=0.24",
        "fastapi>=0.100",
        "pydantic>=1.10",
        "uvicorn>=0.20",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tai=terminalai.cli:main",
            "cp_ai=terminalai.cli:cp_ai",
            "grep_ai=terminalai.cli:grep_ai",
            "find_ai=terminalai.cli:find_ai",
            "ps_ai=terminalai.cli:ps_ai",
            "resolve_ai=terminalai.cli:resolve_ai",
        ],
    },
    include_package_data=True,
    package_data={"terminalai": ["data/*.conf"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
    ],
)
