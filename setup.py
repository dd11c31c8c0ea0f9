from setuptools import setup, find_namespace_packages

setup(
    name="health-center-notifications",
    version="1.0.0",
    description="SMS and email patient notification service for the Maybunga Health Center",
    author="Your Team",
    packages=find_namespace_packages(include=["src", "src.*", "config"]),
    python_requires=">=3.11",
    install_requires=[
        line.strip()
        for line in open("requirements.txt")
        if line.strip() and not line.startswith("#")
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
            "httpx>=0.25",
        ],
    },
)
