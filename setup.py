from setuptools import setup, find_packages

setup(
    name="ekko-client",
    version="0.1.0",
    description="Live transcript client for the ekko recording and transcription server",
    author="",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "rich>=12.5.0",
        "pydantic>=2.0.0",
        "pyyaml>=6.0.0",
        "blinker>=1.6.0",
        "aiohttp>=3.8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ekko-client=ekko_client.main:main",
        ],
    },
)
