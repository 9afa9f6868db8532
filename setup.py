# setup.py
from setuptools import setup, find_packages

setup(
    name="sitemap_streams",
    version="0.1.0",
    description="Потоковая генерация sitemap с ротацией файлов и индексом",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "click>=8.1",
        "pydantic>=2.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "lxml>=4.9",
        ],
    },
    entry_points={
        "console_scripts": [
            "sitemap-streams=sitemap_streams.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
