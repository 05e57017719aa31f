# setup.py
from setuptools import setup, find_packages

setup(
    name="nrtk-sync",
    version="0.1.0",
    description="Синхронизация контента Newsroom Toolkit в локальное дерево и его раздача по HTTP",
    packages=find_packages(exclude=["tests", "tests.*"]),  # найдёт nrtk_sync и подпакеты
    install_requires=[
        "aiohttp>=3.10",
        "pydantic>=2.6",
        "pydantic-settings>=2.2",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "click>=8.1",
        "lxml>=5.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "nrtk-sync=nrtk_sync.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
