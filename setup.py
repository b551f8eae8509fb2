from setuptools import find_packages, setup

setup(
    name="causaltopos",
    version="0.1.0",
    packages=find_packages(include=["causaltopos", "causaltopos.*"]),
    package_data={"causaltopos": ["config.yaml"]},
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "networkx>=3.0",
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "prometheus_client>=0.17",
        "rich>=13.0",
        "fastapi>=0.100",
    ],
    extras_require={
        "test": ["pytest>=7", "pytest-asyncio>=0.21", "hypothesis>=6", "httpx>=0.24"],
    },
)
