# setup.py
from setuptools import setup, find_packages

setup(
    name="site_audit",
    version="0.1.0",
    description="Краулер и SEO-аудит сайта SiteAudit",
    packages=find_packages(exclude=["tests", "tests.*"]),  # найдёт пакет site_audit и подпакеты
    install_requires=[
        "aiohttp",
        "beautifulsoup4",
        "pydantic>=2",
        "PyYAML",
        "click",
    ],
    extras_require={
        "test": ["pytest", "pytest-asyncio"],
    },
    entry_points={
        "console_scripts": ["site-audit=site_audit.cli:cli"],
    },
    python_requires=">=3.11",
)
