# setup.py
from setuptools import setup, find_packages

setup(
    name="site-ingest",
    version="0.1.0",
    description="Same-domain website crawler that stores clean page text per workspace",
    packages=find_packages(include=["site_ingest", "site_ingest.*"]),
    install_requires=[
        "aiohttp>=3.9",
        "aiosqlite>=0.19",
        "beautifulsoup4>=4.12",
        "click>=8.1",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "site-ingest=site_ingest.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
